"""
Tests for the scheduled scan task
"""

from contextlib import asynccontextmanager
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.adapters.llm import PlatformId, ProviderUnavailableError
from app.models import Citation, Scan
from app.services.scan_orchestrator import ScanOrchestrator
from app.workers.tasks import scan_tasks

P = PlatformId.PERPLEXITY


@pytest.fixture
def task_db(monkeypatch, db_session):
    @asynccontextmanager
    async def db_context():
        yield db_session

    async def no_close():
        return None

    monkeypatch.setattr(scan_tasks, "get_db_context", db_context)
    monkeypatch.setattr(scan_tasks, "close_db", no_close)
    return db_session


class TestExecuteSiteScan:

    @pytest.mark.asyncio
    async def test_scans_and_persists(self, task_db, site, fake_adapter, acme_answer):
        orchestrator = ScanOrchestrator(adapters={
            P: fake_adapter(P, acme_answer["text"], acme_answer["cited_urls"]),
        })

        result = await scan_tasks._execute_site_scan(str(site.id), 1, ["perplexity"], orchestrator)

        assert result["overall_score"] == 95
        assert await task_db.scalar(select(func.count(Scan.id))) == 1
        assert await task_db.scalar(select(func.count(Citation.id))) == 1

    @pytest.mark.asyncio
    async def test_unknown_site(self, task_db):
        site_id = str(uuid4())
        result = await scan_tasks._execute_site_scan(site_id, 1, None)
        assert result == {"error": "Site not found", "site_id": site_id}

    @pytest.mark.asyncio
    async def test_failed_scan_stores_nothing(self, task_db, site, fake_adapter):
        orchestrator = ScanOrchestrator(adapters={
            P: fake_adapter(P, error=ProviderUnavailableError("down", P)),
        })

        result = await scan_tasks._execute_site_scan(str(site.id), 1, ["perplexity"], orchestrator)

        assert "error" in result
        assert await task_db.scalar(select(func.count(Scan.id))) == 0
