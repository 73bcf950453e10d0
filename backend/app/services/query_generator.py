"""
Query Generation Engine
Generates versioned, reproducible scan questions from templates
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from app.config import get_settings, QUERY_INTENTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanQuery:
    """A question put to every platform in a scan"""
    question: str
    intent: str
    template_name: str = ""


class QueryGenerator:
    """
    Builds scan questions from the YAML templates of one version.

    Questions cycle through intents in QUERY_INTENTS order so that even a
    short scan mixes best-of, comparison and alternatives questions.
    The same inputs always yield the same questions in the same order.
    """

    TEMPLATES_DIR = Path(__file__).parent.parent / "prompts" / "templates"

    def __init__(self, version: Optional[str] = None):
        self.version = version or get_settings().PROMPT_TEMPLATE_VERSION
        self._templates_cache: Optional[Dict[str, List[dict]]] = None

    def load_templates(self) -> Dict[str, List[dict]]:
        """Load all templates for this version, grouped by intent"""
        if self._templates_cache is not None:
            return self._templates_cache

        version_dir = self.TEMPLATES_DIR / self.version
        if not version_dir.exists():
            raise ValueError(f"Template version {self.version} not found")

        templates: Dict[str, List[dict]] = {intent: [] for intent in QUERY_INTENTS}
        for yaml_file in sorted(version_dir.glob("*.yaml")):
            with open(yaml_file, "r") as f:
                data = yaml.safe_load(f) or {}

            intent = data.get("type")
            if intent not in templates:
                logger.warning(f"Skipping {yaml_file.name}: unknown intent {intent!r}")
                continue

            for template in data.get("templates", []):
                template["version"] = data.get("version")
                template["intent"] = intent
                templates[intent].append(template)

        self._templates_cache = templates
        return templates

    def available_count(self, topic: Optional[str] = None) -> int:
        """Number of distinct questions these templates can produce"""
        return sum(
            len(self._usable(items, topic))
            for items in self.load_templates().values()
        )

    def generate(
        self,
        domain: str,
        brand_name: str,
        query_count: int,
        topic: Optional[str] = None,
    ) -> List[ScanQuery]:
        """
        Generate scan questions.

        Args:
            domain: Tracked hostname
            brand_name: Tracked brand name
            query_count: Number of questions wanted
            topic: Category label for best-of/informational templates;
                templates needing it are skipped when absent

        Returns:
            Up to query_count ScanQuery objects, round-robin over intents
        """
        usable = {
            intent: self._usable(items, topic)
            for intent, items in self.load_templates().items()
        }
        available = sum(len(items) for items in usable.values())
        if query_count > available:
            logger.warning(
                f"Requested {query_count} queries but only {available} templates "
                f"are available for version {self.version}"
            )

        variables = {"brand": brand_name, "domain": domain, "topic": topic or ""}
        queries: List[ScanQuery] = []
        seen = set()
        round_index = 0

        while len(queries) < query_count and any(
            round_index < len(items) for items in usable.values()
        ):
            for intent in QUERY_INTENTS:
                items = usable.get(intent, [])
                if round_index >= len(items):
                    continue

                template = items[round_index]
                question = template["template"].format(**variables).strip()
                if question.lower() in seen:
                    continue
                seen.add(question.lower())
                queries.append(ScanQuery(
                    question=question,
                    intent=intent,
                    template_name=template.get("name", ""),
                ))
                if len(queries) >= query_count:
                    break
            round_index += 1

        return queries

    @staticmethod
    def _usable(templates: List[dict], topic: Optional[str]) -> List[dict]:
        if topic:
            return list(templates)
        return [t for t in templates if not t.get("requires_topic")]


def load_competitor_catalog(path: Optional[str] = None) -> Dict[str, dict]:
    """Load the per-category competitor catalog"""
    path = path or get_settings().COMPETITORS_FILE
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return data.get("categories", {})


def competitors_for(category: Optional[str], path: Optional[str] = None) -> List[str]:
    """Configured competitor names for a category (empty when unknown)"""
    if not category:
        return []
    entry = load_competitor_catalog(path).get(category.strip().lower())
    if not entry:
        logger.info(f"No competitor list configured for category {category!r}")
        return []
    return list(entry.get("competitors", []))


def topic_for(category: Optional[str], path: Optional[str] = None) -> Optional[str]:
    """Human topic label for a category, used to fill query templates"""
    if not category:
        return None
    entry = load_competitor_catalog(path).get(category.strip().lower())
    if entry:
        return entry.get("topic") or category
    return category
