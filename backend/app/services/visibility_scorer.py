"""
Visibility Scoring Engine
Calculates transparent, explainable visibility scores
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from app.adapters.llm import PlatformId
from app.config import get_settings, VISIBILITY_SCORE_WEIGHTS, SCORE_SUMMARY_MESSAGES
from app.services.mention_extractor import MentionResult

PLATFORM_ORDER = list(PlatformId)


class InsufficientDataError(Exception):
    """No platform produced a usable response; a score would be invented"""

    def __init__(self, message: str = "Insufficient data to score visibility, try again"):
        super().__init__(message)


@dataclass
class ScoreComponent:
    """A component of the visibility score with explanation"""
    name: str
    raw_value: float  # Before weighting, 0.0 - 1.0
    weight: float
    weighted_value: float  # raw_value * weight
    explanation: str


@dataclass
class VisibilityScore:
    """Aggregate visibility of one domain across one scan"""
    overall_score: int
    platform_scores: Dict[PlatformId, int]
    is_invisible: bool
    competitors_detected: FrozenSet[str]
    factors: List[ScoreComponent] = field(default_factory=list)
    explanation: str = ""
    summary_message: str = ""

    def factor(self, name: str) -> ScoreComponent:
        return next(f for f in self.factors if f.name == name)


def merge_platform_results(results: Iterable[MentionResult]) -> Dict[PlatformId, MentionResult]:
    """
    Collapse per-query results into one result per platform.

    A platform counts as citing/finding/echoing the brand if any of its
    answers did. Competitors are unioned, genuine mentions summed and the
    earliest genuine position kept.
    """
    grouped: Dict[PlatformId, List[MentionResult]] = defaultdict(list)
    for result in results:
        grouped[result.platform].append(result)

    merged = {}
    for platform in sorted(grouped, key=PLATFORM_ORDER.index):
        items = grouped[platform]
        if len(items) == 1:
            merged[platform] = items[0]
            continue

        positions = [r.mention_position for r in items if r.mention_position is not None]
        shown = next((r for r in items if r.is_genuine), None) \
            or next((r for r in items if r.mentioned_brand), items[0])
        domains: Dict[str, None] = {}
        for r in items:
            domains.update(dict.fromkeys(r.mentioned_domains))

        merged[platform] = MentionResult(
            platform=platform,
            query=shown.query,
            mentioned_brand=any(r.mentioned_brand for r in items),
            domain_found=any(r.domain_found for r in items),
            in_citations=any(r.in_citations for r in items),
            competitor_brands=frozenset().union(*(r.competitor_brands for r in items)),
            mention_position=min(positions) if positions else None,
            genuine_mention_count=sum(r.genuine_mention_count for r in items),
            mentioned_domains=tuple(domains),
            disclaimed=all(r.disclaimed for r in items),
            snippet=shown.snippet,
            cited_url=next((r.cited_url for r in items if r.cited_url), None),
        )

    return merged


class VisibilityScorer:
    """
    Combines mention results into a 0-100 score with full transparency.

    Scoring Model (weights in app.config.VISIBILITY_SCORE_WEIGHTS):
    - 40 Citation Presence: share of platforms citing the domain as a source
    - 25 Domain Visibility: share of platforms naming the domain
    - 12 Position Bonus: how early the first genuine mention appears
    - 10 Mention Depth: log-scaled count of genuine mentions
    -  8 Brand Echo: share of platforms naming the brand at all
    -  5 Market Crowding: decays with the number of competitors named
      alongside a genuine mention

    Echo is capped at 8 so a brand that is only repeated back from the
    prompt can never look visible.
    """

    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        crowding_k: Optional[float] = None,
        max_expected_mentions: Optional[int] = None,
    ):
        settings = get_settings()
        self.weights = dict(weights or VISIBILITY_SCORE_WEIGHTS)
        self.crowding_k = settings.MARKET_CROWDING_K if crowding_k is None else crowding_k
        self.max_expected_mentions = max(
            1, max_expected_mentions or settings.MAX_EXPECTED_MENTIONS
        )

    def score(
        self,
        results: Sequence[MentionResult],
        platforms_attempted: Optional[int] = None,
    ) -> VisibilityScore:
        """
        Score a scan.

        Args:
            results: Mention results from platforms that answered
            platforms_attempted: Platforms queried, including failed ones;
                failed platforms count as finding nothing

        Returns:
            VisibilityScore with factor breakdown

        Raises:
            InsufficientDataError: If no results are available
        """
        merged = merge_platform_results(results)
        if not merged:
            raise InsufficientDataError()

        denominator = max(platforms_attempted or 0, len(merged))
        factors = self._calculate_factors(list(merged.values()), denominator)
        overall = self._total(factors)

        platform_scores = {
            platform: self._total(self._calculate_factors([result], 1))
            for platform, result in merged.items()
        }

        is_invisible = all(
            self._by_name(factors, name).weighted_value == 0
            for name in ("citation_presence", "domain_visibility", "brand_echo")
        )

        return VisibilityScore(
            overall_score=overall,
            platform_scores=platform_scores,
            is_invisible=is_invisible,
            competitors_detected=frozenset().union(
                *(r.competitor_brands for r in merged.values())
            ),
            factors=factors,
            explanation=self._generate_explanation(list(merged.values()), denominator, overall),
            summary_message=summary_message(overall),
        )

    def _calculate_factors(
        self,
        results: List[MentionResult],
        denominator: int,
    ) -> List[ScoreComponent]:
        return [
            self._calculate_citation_presence(results, denominator),
            self._calculate_domain_visibility(results, denominator),
            self._calculate_position_bonus(results),
            self._calculate_mention_depth(results),
            self._calculate_brand_echo(results, denominator),
            self._calculate_market_crowding(results),
        ]

    def _fraction_component(
        self,
        name: str,
        count: int,
        denominator: int,
        label: str,
    ) -> ScoreComponent:
        fraction = count / denominator if denominator else 0.0
        weight = self.weights[name]
        return ScoreComponent(
            name=name,
            raw_value=fraction,
            weight=weight,
            weighted_value=weight * fraction,
            explanation=f"{label} on {count} of {denominator} platform(s)",
        )

    def _calculate_citation_presence(self, results, denominator) -> ScoreComponent:
        cited = sum(1 for r in results if r.in_citations)
        return self._fraction_component(
            "citation_presence", cited, denominator, "Domain cited as a source"
        )

    def _calculate_domain_visibility(self, results, denominator) -> ScoreComponent:
        found = sum(1 for r in results if r.domain_found)
        return self._fraction_component(
            "domain_visibility", found, denominator, "Domain referenced"
        )

    def _calculate_brand_echo(self, results, denominator) -> ScoreComponent:
        echoed = sum(1 for r in results if r.mentioned_brand)
        return self._fraction_component(
            "brand_echo", echoed, denominator, "Brand named"
        )

    def _calculate_position_bonus(self, results) -> ScoreComponent:
        """Average of (1 - position) over platforms with a genuine mention"""
        weight = self.weights["position_bonus"]
        positions = [
            r.mention_position for r in results
            if r.is_genuine and r.mention_position is not None
        ]
        if not positions:
            return ScoreComponent(
                name="position_bonus",
                raw_value=0,
                weight=weight,
                weighted_value=0,
                explanation="No genuine mention, no position bonus",
            )

        raw = sum(1 - p for p in positions) / len(positions)
        return ScoreComponent(
            name="position_bonus",
            raw_value=raw,
            weight=weight,
            weighted_value=weight * raw,
            explanation=f"First genuine mention on average {1 - raw:.0%} into the answer",
        )

    def _calculate_mention_depth(self, results) -> ScoreComponent:
        """Diminishing returns on the number of genuine mentions"""
        weight = self.weights["mention_depth"]
        count = sum(r.genuine_mention_count for r in results if r.is_genuine)
        raw = min(1.0, math.log1p(count) / math.log1p(self.max_expected_mentions))
        return ScoreComponent(
            name="mention_depth",
            raw_value=raw,
            weight=weight,
            weighted_value=weight * raw,
            explanation=f"{count} genuine mention(s)",
        )

    def _calculate_market_crowding(self, results) -> ScoreComponent:
        """Competitors named alongside a genuine mention dilute it"""
        weight = self.weights["market_crowding"]
        if not any(r.is_genuine for r in results):
            return ScoreComponent(
                name="market_crowding",
                raw_value=0,
                weight=weight,
                weighted_value=0,
                explanation="No genuine mention to compare against competitors",
            )

        competitors = frozenset().union(*(r.competitor_brands for r in results))
        raw = math.exp(-self.crowding_k * len(competitors))
        return ScoreComponent(
            name="market_crowding",
            raw_value=raw,
            weight=weight,
            weighted_value=weight * raw,
            explanation=f"{len(competitors)} competitor(s) named alongside the brand",
        )

    @staticmethod
    def _by_name(factors: List[ScoreComponent], name: str) -> ScoreComponent:
        return next(f for f in factors if f.name == name)

    @staticmethod
    def _total(factors: List[ScoreComponent]) -> int:
        total = sum(f.weighted_value for f in factors)
        return int(max(0, min(100, round(total))))

    @staticmethod
    def _generate_explanation(
        results: List[MentionResult],
        denominator: int,
        score: int,
    ) -> str:
        """Generate human-readable score explanation"""
        cited = sum(1 for r in results if r.in_citations)
        found = sum(1 for r in results if r.domain_found)
        known = sum(1 for r in results if r.mentioned_brand)

        parts = []
        if cited > 0:
            parts.append(f"Cited as a source by {cited} of {denominator} platforms")
        if found > 0:
            parts.append(f"Domain referenced in {found} of {denominator} responses")
        if known > 0 and cited == 0 and found == 0:
            parts.append(f"Brand named by {known} of {denominator} platforms, but never as a source")
        if known == 0 and found == 0:
            parts.append("Not recognized by any AI platform tested")
        if score < 15:
            parts.append("AI has no knowledge of your brand yet")
        elif score < 40:
            parts.append("AI has limited awareness of your brand")
        elif score < 60:
            parts.append("AI recognizes your brand but could cite you more")

        return ". ".join(parts) + "."


def summary_message(score: int) -> str:
    """Tiered one-line summary for a score"""
    for upper, message in SCORE_SUMMARY_MESSAGES:
        if score < upper:
            return message
    return SCORE_SUMMARY_MESSAGES[-1][1]
