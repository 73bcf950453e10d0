"""
Citation Store
Persists scans and confirmed citations, and reports on them over time
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.llm import PlatformId
from app.models import Citation, Scan
from app.services.scan_orchestrator import CitationRecord, ScanReport

logger = logging.getLogger(__name__)

# A citation for the same site, platform and query is stored once per window
DEDUPE_WINDOW = timedelta(hours=24)

TOP_N = 5


@dataclass
class CitationReport:
    """Citation activity for one site over a reporting period"""
    site_id: UUID
    period_days: int
    total_citations: int
    citations_this_period: int
    citations_last_period: int
    platform_breakdown: Dict[str, int] = field(default_factory=dict)
    top_cited_pages: List[Tuple[str, int]] = field(default_factory=list)
    top_queries: List[str] = field(default_factory=list)
    current_score: Optional[int] = None
    score_change: int = 0

    @property
    def citation_change(self) -> int:
        return self.citations_this_period - self.citations_last_period


class CitationStore:
    """
    Storage for scan results.
    Citation rows are append-only; they go away only with their site.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def save_scan(self, site_id: UUID, report: ScanReport) -> Scan:
        """
        Store a scan summary and the citations it found.

        Args:
            site_id: Tracked site the scan belongs to
            report: Completed scan report

        Returns:
            The stored Scan row
        """
        score = report.score
        scan = Scan(
            id=uuid4(),
            site_id=site_id,
            overall_score=score.overall_score,
            platform_scores={p.value: s for p, s in score.platform_scores.items()},
            is_invisible=score.is_invisible,
            competitors_detected=sorted(score.competitors_detected),
            factors=[
                {
                    "name": f.name,
                    "raw_value": round(f.raw_value, 4),
                    "weight": f.weight,
                    "weighted_value": round(f.weighted_value, 2),
                    "explanation": f.explanation,
                }
                for f in score.factors
            ],
            explanation=score.explanation,
            query_count=len(report.queries),
            platforms_attempted=[p.value for p in report.platforms_attempted],
            platform_errors={p.value: e for p, e in report.platform_errors.items()},
            total_cost_usd=report.total_cost_usd,
            started_at=report.started_at,
            completed_at=report.finished_at,
        )
        self.db.add(scan)
        await self.db.flush()

        stored = 0
        seen = set()
        for record in report.citation_records(site_id, scan.id):
            key = (record.platform, record.query)
            if key in seen or await self._is_duplicate(record):
                continue
            seen.add(key)
            self.db.add(Citation(
                site_id=record.site_id,
                scan_id=record.scan_id,
                platform=record.platform,
                query=record.query,
                snippet=record.snippet,
                cited_url=record.cited_url,
                cited_at=record.cited_at,
            ))
            stored += 1

        await self.db.commit()
        logger.info(f"Stored scan {scan.id} for site {site_id} with {stored} new citations")
        return scan

    async def _is_duplicate(self, record: CitationRecord) -> bool:
        result = await self.db.execute(
            select(Citation.id).where(
                Citation.site_id == record.site_id,
                Citation.platform == record.platform,
                Citation.query == record.query,
                Citation.cited_at >= record.cited_at - DEDUPE_WINDOW,
            ).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_citations(
        self,
        site_id: UUID,
        since: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[CitationRecord]:
        """Stored citations for a site, newest first"""
        query = select(Citation).where(Citation.site_id == site_id)
        if since is not None:
            query = query.where(Citation.cited_at >= since)
        query = query.order_by(Citation.cited_at.desc()).limit(limit)

        result = await self.db.execute(query)
        return [self._to_record(row) for row in result.scalars().all()]

    async def citation_report(self, site_id: UUID, days: int = 30) -> CitationReport:
        """
        Summarize citation activity.

        Compares the last `days` days with the period before it and
        reports the score change since the start of the period.
        """
        now = datetime.utcnow()
        start = now - timedelta(days=days)
        previous_start = start - timedelta(days=days)

        total = await self.db.scalar(
            select(func.count(Citation.id)).where(Citation.site_id == site_id)
        )

        result = await self.db.execute(
            select(Citation).where(
                Citation.site_id == site_id,
                Citation.cited_at >= start,
            )
        )
        current = result.scalars().all()

        previous = await self.db.scalar(
            select(func.count(Citation.id)).where(
                Citation.site_id == site_id,
                Citation.cited_at >= previous_start,
                Citation.cited_at < start,
            )
        )

        breakdown = {p.value: 0 for p in PlatformId}
        for c in current:
            breakdown[PlatformId(c.platform).value] += 1

        pages = Counter(c.cited_url for c in current if c.cited_url)
        queries = Counter(c.query for c in current)

        history = await self.score_history(site_id, limit=1)
        current_score = history[0].overall_score if history else None
        baseline = await self._latest_scan_before(site_id, start)
        score_change = 0
        if current_score is not None and baseline is not None:
            score_change = current_score - baseline.overall_score

        return CitationReport(
            site_id=site_id,
            period_days=days,
            total_citations=total or 0,
            citations_this_period=len(current),
            citations_last_period=previous or 0,
            platform_breakdown=breakdown,
            top_cited_pages=pages.most_common(TOP_N),
            top_queries=[q for q, _ in queries.most_common(TOP_N)],
            current_score=current_score,
            score_change=score_change,
        )

    async def score_history(self, site_id: UUID, limit: int = 30) -> List[Scan]:
        """Most recent scans for a site, newest first"""
        result = await self.db.execute(
            select(Scan)
            .where(Scan.site_id == site_id)
            .order_by(Scan.completed_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def _latest_scan_before(self, site_id: UUID, before: datetime) -> Optional[Scan]:
        result = await self.db.execute(
            select(Scan)
            .where(Scan.site_id == site_id, Scan.completed_at < before)
            .order_by(Scan.completed_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_record(row: Citation) -> CitationRecord:
        return CitationRecord(
            site_id=row.site_id,
            platform=PlatformId(row.platform),
            query=row.query,
            snippet=row.snippet or "",
            cited_url=row.cited_url,
            cited_at=row.cited_at,
            scan_id=row.scan_id,
        )
