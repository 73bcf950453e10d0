"""
Scan Schemas
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.adapters.llm import PlatformId
from app.services.mention_extractor import MentionResult
from app.services.scan_orchestrator import ScanReport


class ScanRequest(BaseModel):
    """Run a visibility scan"""
    domain: Optional[str] = Field(None, description="Hostname to scan, e.g. acme.io")
    brand_name: Optional[str] = Field(None, description="Derived from the domain when omitted")
    query_count: int = Field(5, ge=1, le=20)
    platforms: List[PlatformId] = Field(default_factory=lambda: list(PlatformId))
    competitors: Optional[List[str]] = None
    category: Optional[str] = Field(None, description="Competitor catalog key, e.g. crm")
    site_id: Optional[UUID] = Field(None, description="Persist the result for this site")


class ScoreFactorResponse(BaseModel):
    name: str
    raw_value: float
    weight: float
    weighted_value: float
    explanation: str


class MentionResultResponse(BaseModel):
    platform: PlatformId
    query: str
    mentioned_brand: bool
    domain_found: bool
    in_citations: bool
    is_genuine: bool
    competitor_brands: List[str]
    mention_position: Optional[float]
    genuine_mention_count: int
    mentioned_domains: List[str]
    disclaimed: bool
    snippet: str
    cited_url: Optional[str]

    @classmethod
    def from_result(cls, result: MentionResult) -> "MentionResultResponse":
        return cls(
            platform=result.platform,
            query=result.query,
            mentioned_brand=result.mentioned_brand,
            domain_found=result.domain_found,
            in_citations=result.in_citations,
            is_genuine=result.is_genuine,
            competitor_brands=sorted(result.competitor_brands),
            mention_position=result.mention_position,
            genuine_mention_count=result.genuine_mention_count,
            mentioned_domains=list(result.mentioned_domains),
            disclaimed=result.disclaimed,
            snippet=result.snippet,
            cited_url=result.cited_url,
        )


class QueryResultResponse(BaseModel):
    question: str
    intent: str
    platform: PlatformId
    succeeded: bool
    error: Optional[str] = None
    error_type: Optional[str] = None
    cited_urls: List[str] = []
    mention: Optional[MentionResultResponse] = None


class CompetitorGapResponse(BaseModel):
    query: str
    platform: PlatformId
    competitors: List[str]


class ScanReportResponse(BaseModel):
    """Scan outcome with full score breakdown"""
    scan_id: Optional[UUID] = None
    domain: str
    brand_name: str
    overall_score: int = Field(ge=0, le=100)
    platform_scores: Dict[str, int]
    is_invisible: bool
    summary_message: str
    explanation: str
    competitors_detected: List[str]
    factors: List[ScoreFactorResponse]
    platform_results: List[MentionResultResponse]
    queries: List[QueryResultResponse]
    platforms_attempted: List[PlatformId]
    platform_errors: Dict[str, str]
    competitor_gaps: List[CompetitorGapResponse]
    started_at: datetime
    finished_at: datetime
    total_cost_usd: float

    @classmethod
    def from_report(cls, report: ScanReport, scan_id: Optional[UUID] = None) -> "ScanReportResponse":
        score = report.score
        return cls(
            scan_id=scan_id,
            domain=report.domain,
            brand_name=report.brand_name,
            overall_score=score.overall_score,
            platform_scores={p.value: s for p, s in score.platform_scores.items()},
            is_invisible=score.is_invisible,
            summary_message=score.summary_message,
            explanation=score.explanation,
            competitors_detected=sorted(score.competitors_detected),
            factors=[
                ScoreFactorResponse(
                    name=f.name,
                    raw_value=round(f.raw_value, 4),
                    weight=f.weight,
                    weighted_value=round(f.weighted_value, 2),
                    explanation=f.explanation,
                )
                for f in score.factors
            ],
            platform_results=[
                MentionResultResponse.from_result(r) for r in report.platform_results.values()
            ],
            queries=[
                QueryResultResponse(
                    question=r.query.question,
                    intent=r.query.intent,
                    platform=r.platform,
                    succeeded=r.succeeded,
                    error=r.error,
                    error_type=r.error_type,
                    cited_urls=list(r.response.cited_urls) if r.response else [],
                    mention=MentionResultResponse.from_result(r.mention) if r.mention else None,
                )
                for r in report.query_results
            ],
            platforms_attempted=report.platforms_attempted,
            platform_errors={p.value: e for p, e in report.platform_errors.items()},
            competitor_gaps=[
                CompetitorGapResponse(
                    query=g.query,
                    platform=g.platform,
                    competitors=sorted(g.competitors),
                )
                for g in report.competitor_gaps
            ],
            started_at=report.started_at,
            finished_at=report.finished_at,
            total_cost_usd=round(report.total_cost_usd, 6),
        )
