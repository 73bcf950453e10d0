"""
Site, Citation & History Routes
"""

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Site
from app.schemas.site import (
    SiteCreate,
    SiteResponse,
    CitationResponse,
    CitedPageResponse,
    CitationReportResponse,
    ScanSummaryResponse,
)
from app.services.citation_store import CitationStore
from app.utils.database import get_db
from app.utils.domain import InvalidInputError, clean_domain_input, extract_brand_name, validate_domain

router = APIRouter()


async def _get_site(site_id: UUID, db: AsyncSession) -> Site:
    site = await db.get(Site, site_id)
    if not site:
        raise HTTPException(status_code=404, detail="Site not found")
    return site


@router.post("", response_model=SiteResponse, status_code=status.HTTP_201_CREATED)
async def create_site(
    site_data: SiteCreate,
    db: AsyncSession = Depends(get_db),
):
    """Register a domain for tracking"""
    try:
        domain = validate_domain(clean_domain_input(site_data.domain))
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    site = Site(
        domain=domain,
        brand_name=(site_data.brand_name or "").strip() or extract_brand_name(domain),
        category=site_data.category,
        competitors=site_data.competitors,
    )
    db.add(site)
    await db.commit()
    await db.refresh(site)
    return site


@router.get("/{site_id}/citations", response_model=List[CitationResponse])
async def list_citations(
    site_id: UUID,
    days: Optional[int] = Query(None, ge=1, le=365),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Stored citations for a site, newest first"""
    await _get_site(site_id, db)
    since = datetime.utcnow() - timedelta(days=days) if days else None
    records = await CitationStore(db).list_citations(site_id, since=since, limit=limit)
    return [
        CitationResponse(
            platform=r.platform,
            query=r.query,
            snippet=r.snippet,
            cited_url=r.cited_url,
            cited_at=r.cited_at,
            scan_id=r.scan_id,
        )
        for r in records
    ]


@router.get("/{site_id}/citations/report", response_model=CitationReportResponse)
async def citation_report(
    site_id: UUID,
    days: int = Query(30, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """Citation activity compared with the previous period"""
    await _get_site(site_id, db)
    report = await CitationStore(db).citation_report(site_id, days=days)
    return CitationReportResponse(
        site_id=report.site_id,
        period_days=report.period_days,
        total_citations=report.total_citations,
        citations_this_period=report.citations_this_period,
        citations_last_period=report.citations_last_period,
        citation_change=report.citation_change,
        platform_breakdown=report.platform_breakdown,
        top_cited_pages=[
            CitedPageResponse(url=url, citations=count)
            for url, count in report.top_cited_pages
        ],
        top_queries=report.top_queries,
        current_score=report.current_score,
        score_change=report.score_change,
    )


@router.get("/{site_id}/scans", response_model=List[ScanSummaryResponse])
async def score_history(
    site_id: UUID,
    limit: int = Query(30, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    """Score history for trend display"""
    await _get_site(site_id, db)
    return await CitationStore(db).score_history(site_id, limit=limit)
