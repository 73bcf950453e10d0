"""
Scan Tasks
Entry point for the external scheduler to scan a stored site
"""

import asyncio
from typing import Dict, List, Optional
from uuid import UUID

from celery.utils.log import get_task_logger

from app.adapters.llm import PlatformId
from app.models import Site
from app.services.citation_store import CitationStore
from app.services.scan_orchestrator import ScanError, ScanOrchestrator
from app.services.visibility_scorer import InsufficientDataError
from app.utils.database import close_db, get_db_context
from app.utils.domain import InvalidInputError
from app.workers.celery_app import celery_app

logger = get_task_logger(__name__)


def run_async(coro):
    """Run async function in sync context"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@celery_app.task(
    bind=True,
    name="app.workers.tasks.scan_tasks.execute_site_scan",
    max_retries=0,
)
def execute_site_scan(
    self,
    site_id: str,
    query_count: int = 5,
    platforms: Optional[List[str]] = None,
) -> Dict:
    """
    Scan a stored site and persist the result.

    Args:
        site_id: UUID of the Site to scan
        query_count: Questions per platform
        platforms: Platform ids; all platforms when omitted

    Returns:
        Dict with the stored scan id and score, or an error
    """
    return run_async(_execute_site_scan(site_id, query_count, platforms))


async def _execute_site_scan(
    site_id: str,
    query_count: int,
    platforms: Optional[List[str]],
    orchestrator: Optional[ScanOrchestrator] = None,
) -> Dict:
    try:
        async with get_db_context() as db:
            site = await db.get(Site, UUID(site_id))
            if not site:
                logger.error(f"Site not found: {site_id}")
                return {"error": "Site not found", "site_id": site_id}
            if not site.is_active:
                logger.info(f"Skipping inactive site {site_id}")
                return {"skipped": True, "site_id": site_id}

            orchestrator = orchestrator or ScanOrchestrator()
            try:
                report = await orchestrator.run_scan(
                    domain=site.domain,
                    brand_name=site.brand_name,
                    query_count=query_count,
                    platforms=platforms or list(PlatformId),
                    competitors=site.competitors or None,
                    category=site.category,
                )
            except (ScanError, InsufficientDataError, InvalidInputError) as e:
                logger.warning(f"Scan of site {site_id} failed: {e}")
                return {"error": str(e), "site_id": site_id}

            scan = await CitationStore(db).save_scan(site.id, report)
            logger.info(f"Site {site_id} scored {report.score.overall_score}")
            return {
                "site_id": site_id,
                "scan_id": str(scan.id),
                "overall_score": report.score.overall_score,
                "platform_errors": {p.value: e for p, e in report.platform_errors.items()},
            }
    finally:
        # Each task runs on a fresh event loop; pooled connections cannot be reused
        await close_db()
