"""
Scan Orchestrator
Fans questions out to every platform, then extracts and scores the answers
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Union
from uuid import UUID

from app.adapters.llm import (
    BasePlatformAdapter,
    PlatformId,
    PlatformResponse,
    ProviderError,
    get_adapter,
)
from app.config import get_settings
from app.services.mention_extractor import MentionExtractor, MentionResult
from app.services.query_generator import (
    QueryGenerator,
    ScanQuery,
    competitors_for,
    topic_for,
)
from app.services.visibility_scorer import (
    VisibilityScore,
    VisibilityScorer,
    merge_platform_results,
)
from app.utils.domain import InvalidInputError, extract_brand_name, validate_domain

logger = logging.getLogger(__name__)

# Calls left running after their scan was cancelled
_background_calls: Set[asyncio.Task] = set()


class ScanFailureReason(str, Enum):
    ALL_PROVIDERS_UNAVAILABLE = "all_providers_unavailable"


class ScanError(Exception):
    """A scan produced nothing that can be scored"""

    def __init__(
        self,
        reason: ScanFailureReason,
        message: Optional[str] = None,
        errors: Optional[Dict[PlatformId, str]] = None,
    ):
        super().__init__(message or reason.value)
        self.reason = reason
        self.errors = errors or {}


@dataclass(frozen=True)
class CitationRecord:
    """A confirmed citation of the tracked domain"""
    site_id: UUID
    platform: PlatformId
    query: str
    snippet: str
    cited_url: Optional[str]
    cited_at: datetime
    scan_id: Optional[UUID] = None


@dataclass
class QueryResult:
    """Outcome of one (question, platform) call"""
    query: ScanQuery
    platform: PlatformId
    response: Optional[PlatformResponse] = None
    mention: Optional[MentionResult] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.response is not None


@dataclass(frozen=True)
class CompetitorGap:
    """A question where rivals were named and the tracked brand was not"""
    query: str
    platform: PlatformId
    competitors: FrozenSet[str]


@dataclass
class ScanReport:
    """Everything a scan learned, ready to return or persist"""
    domain: str
    brand_name: str
    score: VisibilityScore
    platform_results: Dict[PlatformId, MentionResult]
    query_results: List[QueryResult]
    platforms_attempted: List[PlatformId]
    platform_errors: Dict[PlatformId, str] = field(default_factory=dict)
    competitor_gaps: List[CompetitorGap] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: datetime = field(default_factory=datetime.utcnow)
    total_cost_usd: float = 0.0

    @property
    def queries(self) -> List[ScanQuery]:
        seen = []
        for result in self.query_results:
            if result.query not in seen:
                seen.append(result.query)
        return seen

    def citation_records(
        self,
        site_id: UUID,
        scan_id: Optional[UUID] = None,
    ) -> List[CitationRecord]:
        """One record per answer that cited the tracked domain"""
        records = []
        for result in self.query_results:
            if not result.mention or not result.mention.in_citations:
                continue
            records.append(CitationRecord(
                site_id=site_id,
                platform=result.platform,
                query=result.query.question,
                snippet=result.mention.snippet,
                cited_url=result.mention.cited_url,
                cited_at=result.response.fetched_at,
                scan_id=scan_id,
            ))
        return records


class ScanOrchestrator:
    """
    Runs one visibility scan.

    Every (question, platform) pair is its own task with its own timeout.
    Failures are recorded and scoring proceeds with whatever succeeded;
    only a scan where every call failed is an error.
    """

    def __init__(
        self,
        adapters: Optional[Dict[PlatformId, BasePlatformAdapter]] = None,
        extractor: Optional[MentionExtractor] = None,
        scorer: Optional[VisibilityScorer] = None,
        generator: Optional[QueryGenerator] = None,
        call_timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.adapters = dict(adapters or {})
        self.extractor = extractor or MentionExtractor()
        self.scorer = scorer or VisibilityScorer()
        self.generator = generator or QueryGenerator()
        self.call_timeout = call_timeout or settings.SCAN_CALL_TIMEOUT
        self.max_queries = settings.SCAN_MAX_QUERIES

    def _adapter_for(self, platform: PlatformId) -> BasePlatformAdapter:
        if platform not in self.adapters:
            self.adapters[platform] = get_adapter(platform)
        return self.adapters[platform]

    async def run_scan(
        self,
        domain: str,
        brand_name: Optional[str],
        query_count: int,
        platforms: Iterable[Union[PlatformId, str]],
        competitors: Optional[Sequence[str]] = None,
        category: Optional[str] = None,
    ) -> ScanReport:
        """
        Scan a domain across platforms.

        Args:
            domain: Tracked hostname
            brand_name: Tracked brand (derived from the domain when None)
            query_count: Number of questions to ask each platform
            platforms: Platforms to query
            competitors: Competitor names; defaults to the category list
            category: Category key in the competitor catalog

        Returns:
            ScanReport with score, per-platform results and competitor gaps

        Raises:
            InvalidInputError: Before any provider call, for bad input
            ScanError: If every provider call failed
        """
        domain, brand_name, platforms = self._validate(
            domain, brand_name, query_count, platforms
        )
        if competitors is None:
            competitors = competitors_for(category)

        if query_count > self.max_queries:
            logger.warning(f"Capping query count {query_count} to {self.max_queries}")
            query_count = self.max_queries

        queries = self.generator.generate(
            domain, brand_name, query_count, topic=topic_for(category)
        )
        started_at = datetime.utcnow()
        logger.info(
            f"Scanning {domain}: {len(queries)} queries x {len(platforms)} platforms"
        )

        outcomes = await self._dispatch(domain, queries, platforms)

        succeeded = [o for o in outcomes if o.succeeded]
        platform_errors = self._platform_errors(outcomes, platforms)

        if not succeeded:
            logger.error(f"Scan of {domain} failed: no platform answered")
            raise ScanError(
                ScanFailureReason.ALL_PROVIDERS_UNAVAILABLE,
                "All AI platforms were unavailable",
                errors=platform_errors,
            )

        for outcome in succeeded:
            outcome.mention = self.extractor.extract(
                outcome.response, domain, brand_name, competitors
            )

        mentions = [o.mention for o in succeeded]
        score = self.scorer.score(mentions, platforms_attempted=len(platforms))

        report = ScanReport(
            domain=domain,
            brand_name=brand_name,
            score=score,
            platform_results=merge_platform_results(mentions),
            query_results=outcomes,
            platforms_attempted=platforms,
            platform_errors=platform_errors,
            competitor_gaps=self._competitor_gaps(succeeded),
            started_at=started_at,
            finished_at=datetime.utcnow(),
            total_cost_usd=sum(o.response.estimated_cost_usd or 0.0 for o in succeeded),
        )

        logger.info(
            f"Scan of {domain} scored {score.overall_score} "
            f"({len(succeeded)}/{len(outcomes)} calls succeeded)"
        )
        return report

    def _validate(self, domain, brand_name, query_count, platforms):
        domain = validate_domain(domain)

        if brand_name is None:
            brand_name = extract_brand_name(domain)
        if not isinstance(brand_name, str) or not brand_name.strip():
            raise InvalidInputError("Brand name must be non-empty", field="brand_name")

        if not isinstance(query_count, int) or query_count < 1:
            raise InvalidInputError("query_count must be at least 1", field="query_count")

        resolved: List[PlatformId] = []
        for platform in platforms or []:
            try:
                platform = PlatformId(platform)
            except ValueError:
                raise InvalidInputError(f"Unsupported platform: {platform}", field="platforms")
            if platform not in resolved:
                resolved.append(platform)
        if not resolved:
            raise InvalidInputError("At least one platform is required", field="platforms")

        return domain, brand_name.strip(), resolved

    async def _dispatch(
        self,
        domain: str,
        queries: List[ScanQuery],
        platforms: List[PlatformId],
    ) -> List[QueryResult]:
        """Run every call concurrently and wait for all of them"""
        tasks = []
        for query in queries:
            for platform in platforms:
                task = asyncio.ensure_future(
                    self._call(self._adapter_for(platform), domain, query)
                )
                _background_calls.add(task)
                task.add_done_callback(_background_calls.discard)
                tasks.append(task)

        try:
            return list(await asyncio.shield(asyncio.gather(*tasks)))
        except asyncio.CancelledError:
            pending = sum(1 for t in tasks if not t.done())
            logger.warning(
                f"Scan of {domain} cancelled; {pending} provider calls will finish "
                "in the background and be discarded"
            )
            raise

    async def _call(
        self,
        adapter: BasePlatformAdapter,
        domain: str,
        query: ScanQuery,
    ) -> QueryResult:
        """One bounded provider call; failures become a failed QueryResult"""
        platform = adapter.platform
        try:
            response = await adapter.query(
                domain, query.question, timeout=self.call_timeout
            )
        except ProviderError as e:
            logger.warning(f"{platform.value} failed for {query.question!r}: {e}")
            return QueryResult(
                query=query,
                platform=platform,
                error=str(e),
                error_type=type(e).__name__,
            )
        except Exception as e:
            logger.exception(f"Unexpected error from {platform.value}")
            return QueryResult(
                query=query,
                platform=platform,
                error=str(e) or type(e).__name__,
                error_type=type(e).__name__,
            )

        return QueryResult(query=query, platform=platform, response=response)

    @staticmethod
    def _platform_errors(
        outcomes: List[QueryResult],
        platforms: List[PlatformId],
    ) -> Dict[PlatformId, str]:
        """Platforms where no call succeeded, with their last error"""
        errors = {}
        for platform in platforms:
            results = [o for o in outcomes if o.platform == platform]
            if results and not any(o.succeeded for o in results):
                errors[platform] = results[-1].error or "unavailable"
        return errors

    @staticmethod
    def _competitor_gaps(results: List[QueryResult]) -> List[CompetitorGap]:
        gaps = []
        for result in results:
            mention = result.mention
            if mention and mention.competitor_brands and not mention.is_genuine:
                gaps.append(CompetitorGap(
                    query=result.query.question,
                    platform=result.platform,
                    competitors=mention.competitor_brands,
                ))
        return gaps
