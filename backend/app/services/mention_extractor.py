"""
Mention Extraction Service
Classifies one platform response against a tracked domain and brand
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Tuple

from app.adapters.llm import PlatformId, PlatformResponse
from app.adapters.parsing import (
    BrandConfig,
    BrandMatcher,
    CitationExtractor,
    get_context,
    is_disclaimer,
)
from app.utils.domain import normalize_domain

SNIPPET_LENGTH = 200


@dataclass(frozen=True)
class MentionResult:
    """
    How one AI answer treats the tracked brand.

    A mention is genuine when the domain shows up in the answer or its
    sources. `mentioned_brand` on its own is only an echo of the name and
    is kept as a separate signal.
    """
    platform: PlatformId
    query: str = ""
    mentioned_brand: bool = False
    domain_found: bool = False
    in_citations: bool = False
    competitor_brands: FrozenSet[str] = frozenset()
    mention_position: Optional[float] = None  # None = no genuine mention
    genuine_mention_count: int = 0
    mentioned_domains: Tuple[str, ...] = ()
    disclaimed: bool = False
    snippet: str = ""
    cited_url: Optional[str] = None

    @property
    def is_genuine(self) -> bool:
        return self.domain_found or self.in_citations

    @property
    def is_echo(self) -> bool:
        return self.mentioned_brand and not self.is_genuine

    @classmethod
    def empty(cls, platform: PlatformId, query: str = "") -> "MentionResult":
        """All-false result for a platform that produced no data"""
        return cls(platform=platform, query=query)


class MentionExtractor:
    """
    Deterministic classifier for platform responses.
    No network and no randomness: the same response, domain and brand
    always produce the same MentionResult.
    """

    def __init__(self, citation_extractor: Optional[CitationExtractor] = None):
        self.citations = citation_extractor or CitationExtractor()

    def extract(
        self,
        response: PlatformResponse,
        domain: str,
        brand_name: str,
        competitors: Iterable[str] = (),
    ) -> MentionResult:
        """
        Classify a response.

        Args:
            response: Normalized platform response
            domain: Tracked hostname (with or without www.)
            brand_name: Tracked brand name
            competitors: Known competitor names for this domain's category

        Returns:
            MentionResult for this response
        """
        text = response.raw_text or ""
        domain = normalize_domain(domain)

        matcher = BrandMatcher(
            own_brands=[BrandConfig(name=brand_name)] if brand_name.strip() else [],
            competitor_brands=[
                BrandConfig(name=name, is_own_brand=False)
                for name in competitors
                if name.strip() and name.strip().lower() != brand_name.strip().lower()
            ],
        )
        mentions = matcher.find_mentions(text)
        own_mentions = matcher.get_own_brand_mentions(mentions)
        competitor_brands = frozenset(
            m.normalized_name for m in matcher.get_competitor_mentions(mentions)
        )

        domain_offset = self.citations.find_domain(text, domain)
        matching_urls = self.citations.matching_citations(response.cited_urls, domain)

        in_citations = bool(matching_urls)
        domain_found = domain_offset >= 0 or in_citations
        genuine = domain_found or in_citations

        first_offset = self._first_genuine_offset(
            genuine,
            domain_offset,
            own_mentions[0].character_offset if own_mentions else -1,
        )

        return MentionResult(
            platform=response.platform,
            query=response.query,
            mentioned_brand=bool(own_mentions),
            domain_found=domain_found,
            in_citations=in_citations,
            competitor_brands=competitor_brands,
            mention_position=self._position(genuine, first_offset, len(text)),
            genuine_mention_count=(
                self.citations.count_domain(text, domain) + len(matching_urls)
                if genuine else 0
            ),
            mentioned_domains=tuple(
                d for d in self.citations.extract_mentioned_domains(text, response.cited_urls)
                if domain not in d
            ),
            disclaimed=is_disclaimer(text),
            snippet=self._snippet(text, first_offset, len(domain)),
            cited_url=matching_urls[0] if matching_urls else None,
        )

    @staticmethod
    def _first_genuine_offset(genuine: bool, domain_offset: int, brand_offset: int) -> int:
        if not genuine:
            return -1
        offsets = [o for o in (domain_offset, brand_offset) if o >= 0]
        return min(offsets) if offsets else -1

    @staticmethod
    def _position(genuine: bool, offset: int, length: int) -> Optional[float]:
        """
        Normalized position of the first genuine mention.
        Cited-only answers that never name the brand in prose rank last.
        """
        if not genuine:
            return None
        if offset < 0 or length == 0:
            return 1.0
        return min(1.0, max(0.0, offset / length))

    @staticmethod
    def _snippet(text: str, offset: int, match_length: int) -> str:
        if offset >= 0:
            return get_context(text, offset, offset + match_length)
        return text[:SNIPPET_LENGTH].strip()
