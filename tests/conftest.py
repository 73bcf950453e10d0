"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import asyncio
import os

# Never reach a real provider or database from the test suite
os.environ["OPENAI_API_KEY"] = ""
os.environ["GOOGLE_AI_API_KEY"] = ""
os.environ["PERPLEXITY_API_KEY"] = ""
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["APP_ENV"] = "test"

from typing import Iterable, Optional, Sequence

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.adapters.llm import (
    BasePlatformAdapter,
    LLMConfig,
    PlatformId,
    PlatformResponse,
    ProviderError,
)
from app.models import Base, Site
from app.services.mention_extractor import MentionResult


# ============================================================================
# Fake Platform Adapters
# ============================================================================

class FakeAdapter(BasePlatformAdapter):
    """Scripted adapter: same answer for every question, or a fixed error"""

    def __init__(
        self,
        platform: PlatformId,
        text: str = "",
        cited_urls: Sequence[str] = (),
        error: Optional[ProviderError] = None,
        delay: float = 0.0,
    ):
        super().__init__(
            api_key="test-key",
            config=LLMConfig(model="fake-model", retry_delay=0),
        )
        self._platform = platform
        self.text = text
        self.cited_urls = tuple(cited_urls)
        self.error = error
        self.delay = delay
        self.calls = 0
        self.completed = 0
        self.questions = []

    @property
    def platform(self) -> PlatformId:
        return self._platform

    @property
    def default_model(self) -> str:
        return "fake-model"

    async def _execute(self, question: str, cfg: LLMConfig) -> PlatformResponse:
        self.calls += 1
        self.questions.append(question)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.completed += 1
        return PlatformResponse(
            platform=self._platform,
            query=question,
            raw_text=self.text,
            cited_urls=self.cited_urls,
            model=cfg.model,
            estimated_cost_usd=0.001,
        )


@pytest.fixture
def fake_adapter():
    """Factory for scripted adapters"""
    return FakeAdapter


@pytest.fixture
def acme_answer() -> dict:
    """An answer that names, mentions and cites acme.io"""
    return {
        "text": "Acme is a great CRM, see acme.io for details",
        "cited_urls": ["https://acme.io/pricing"],
    }


@pytest.fixture
def crm_answer() -> dict:
    """An answer that names only competitors"""
    return {
        "text": "The best CRMs are HubSpot and Pipedrive",
        "cited_urls": [],
    }


# ============================================================================
# Mention Result Builders
# ============================================================================

def mention(
    platform: PlatformId = PlatformId.PERPLEXITY,
    *,
    brand: bool = False,
    domain: bool = False,
    cited: bool = False,
    competitors: Iterable[str] = (),
    position: Optional[float] = None,
    count: int = 0,
    query: str = "Best CRM tools?",
) -> MentionResult:
    genuine = domain or cited
    if genuine and position is None:
        position = 0.0
    return MentionResult(
        platform=platform,
        query=query,
        mentioned_brand=brand,
        domain_found=domain or cited,
        in_citations=cited,
        competitor_brands=frozenset(competitors),
        mention_position=position if genuine else None,
        genuine_mention_count=(count or 1) if genuine else 0,
    )


@pytest.fixture
def make_mention():
    return mention


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
async def db_session() -> AsyncSession:
    """In-memory SQLite session with all tables created"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
async def site(db_session) -> Site:
    site = Site(domain="acme.io", brand_name="Acme", category="crm", competitors=[])
    db_session.add(site)
    await db_session.commit()
    return site
