"""
Scan Routes
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Site
from app.schemas.scan import ScanRequest, ScanReportResponse
from app.services.citation_store import CitationStore
from app.services.scan_orchestrator import ScanError, ScanOrchestrator
from app.services.visibility_scorer import InsufficientDataError
from app.utils.database import get_db
from app.utils.domain import InvalidInputError

logger = logging.getLogger(__name__)

router = APIRouter()

INSUFFICIENT_DATA_DETAIL = "Insufficient data — try again"


def get_orchestrator() -> ScanOrchestrator:
    """Dependency for the scan orchestrator"""
    return ScanOrchestrator()


@router.post("", response_model=ScanReportResponse)
async def run_scan(
    request: ScanRequest,
    db: AsyncSession = Depends(get_db),
    orchestrator: ScanOrchestrator = Depends(get_orchestrator),
):
    """
    Run a visibility scan now and return the scored report.
    When site_id is given the scan and its citations are stored.
    """
    site = None
    if request.site_id:
        site = await db.get(Site, request.site_id)
        if not site:
            raise HTTPException(status_code=404, detail="Site not found")

    domain = request.domain or (site.domain if site else None)
    if not domain:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="domain or site_id is required",
        )

    competitors = request.competitors
    if competitors is None and site and site.competitors:
        competitors = site.competitors

    try:
        report = await orchestrator.run_scan(
            domain=domain,
            brand_name=request.brand_name or (site.brand_name if site else None),
            query_count=request.query_count,
            platforms=request.platforms,
            competitors=competitors,
            category=request.category or (site.category if site else None),
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except (ScanError, InsufficientDataError) as e:
        logger.warning(f"Scan of {domain} produced no data: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=INSUFFICIENT_DATA_DETAIL,
        )

    scan_id = None
    if site:
        scan = await CitationStore(db).save_scan(site.id, report)
        scan_id = scan.id

    return ScanReportResponse.from_report(report, scan_id)
