"""
Tests for the HTTP API
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.adapters.llm import PlatformId, ProviderUnavailableError
from app.api.routes.scans import get_orchestrator
from app.main import app
from app.models import Base
from app.services.scan_orchestrator import ScanOrchestrator
from app.utils.database import get_db

P, G = PlatformId.PERPLEXITY, PlatformId.GOOGLE_AI


def make_client(orchestrator: ScanOrchestrator) -> TestClient:
    state = {}

    async def override_get_db():
        # Created lazily so the engine lives on the client's event loop
        if "session_maker" not in state:
            engine = create_async_engine(
                "sqlite+aiosqlite://",
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            state["session_maker"] = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )
        async with state["session_maker"]() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    return TestClient(app)


@pytest.fixture
def client(fake_adapter, acme_answer, crm_answer):
    orchestrator = ScanOrchestrator(adapters={
        P: fake_adapter(P, acme_answer["text"], acme_answer["cited_urls"]),
        G: fake_adapter(G, crm_answer["text"]),
    })
    with make_client(orchestrator) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client(fake_adapter):
    orchestrator = ScanOrchestrator(adapters={
        P: fake_adapter(P, error=ProviderUnavailableError("down", P)),
    })
    with make_client(orchestrator) as c:
        yield c
    app.dependency_overrides.clear()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestScanEndpoint:

    def test_run_scan(self, client):
        response = client.post("/api/v1/scans", json={
            "domain": "acme.io",
            "brand_name": "Acme",
            "query_count": 1,
            "platforms": ["perplexity", "google_ai"],
            "competitors": ["HubSpot", "Pipedrive"],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["scan_id"] is None
        assert 0 <= data["overall_score"] <= 100
        assert data["platform_scores"]["perplexity"] == 95
        assert data["platform_scores"]["google_ai"] == 0
        assert data["competitors_detected"] == ["HubSpot", "Pipedrive"]
        assert len(data["factors"]) == 6
        assert len(data["queries"]) == 2
        assert data["competitor_gaps"][0]["platform"] == "google_ai"
        assert data["summary_message"]

    def test_invalid_domain_is_422(self, client):
        response = client.post("/api/v1/scans", json={
            "domain": "https://acme.io/pricing",
            "platforms": ["perplexity"],
        })
        assert response.status_code == 422

    def test_unknown_platform_is_422(self, client):
        response = client.post("/api/v1/scans", json={
            "domain": "acme.io",
            "platforms": ["claude"],
        })
        assert response.status_code == 422

    def test_all_providers_down_is_503(self, failing_client):
        response = failing_client.post("/api/v1/scans", json={
            "domain": "acme.io",
            "platforms": ["perplexity"],
            "query_count": 1,
        })
        assert response.status_code == 503
        assert response.json()["detail"] == "Insufficient data — try again"


class TestSiteEndpoints:

    def test_scan_site_and_read_citations(self, client):
        created = client.post("/api/v1/sites", json={
            "domain": "https://www.acme.io",
            "brand_name": "Acme",
            "category": "crm",
        })
        assert created.status_code == 201
        site = created.json()
        assert site["domain"] == "acme.io"

        scanned = client.post("/api/v1/scans", json={
            "site_id": site["id"],
            "query_count": 1,
            "platforms": ["perplexity", "google_ai"],
        })
        assert scanned.status_code == 200
        assert scanned.json()["scan_id"] is not None
        assert scanned.json()["domain"] == "acme.io"

        citations = client.get(f"/api/v1/sites/{site['id']}/citations")
        assert citations.status_code == 200
        rows = citations.json()
        assert len(rows) == 1
        assert rows[0]["platform"] == "perplexity"
        assert rows[0]["cited_url"] == "https://acme.io/pricing"

        report = client.get(f"/api/v1/sites/{site['id']}/citations/report", params={"days": 7})
        assert report.status_code == 200
        assert report.json()["citations_this_period"] == 1
        assert report.json()["platform_breakdown"]["perplexity"] == 1

        history = client.get(f"/api/v1/sites/{site['id']}/scans")
        assert history.status_code == 200
        assert len(history.json()) == 1

    def test_unknown_site_is_404(self, client):
        response = client.get("/api/v1/sites/00000000-0000-0000-0000-000000000000/citations")
        assert response.status_code == 404

    def test_brand_defaults_from_domain(self, client):
        created = client.post("/api/v1/sites", json={"domain": "notion.so"})
        assert created.status_code == 201
        assert created.json()["brand_name"] == "notion"
