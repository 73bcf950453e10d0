"""
CabbageSEO Database Models
SQLAlchemy ORM (PostgreSQL in production)
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime,
    ForeignKey, Enum, JSON, Index, Uuid,
)
from sqlalchemy.orm import declarative_base, relationship

from app.adapters.llm.base import PlatformId

Base = declarative_base()


def _platform_enum():
    # Store "perplexity", not "PERPLEXITY"
    return Enum(
        PlatformId,
        name="platform_id",
        native_enum=False,
        length=32,
        values_callable=lambda enum: [member.value for member in enum],
    )


# ============================================================================
# SITES
# ============================================================================

class Site(Base):
    """A tracked domain"""
    __tablename__ = "sites"

    id = Column(Uuid, primary_key=True, default=uuid4)
    domain = Column(String(253), nullable=False)
    brand_name = Column(String(255), nullable=False)

    # Key into the competitor catalog
    category = Column(String(100))
    # Explicit competitor list; overrides the category list when set
    competitors = Column(JSON, default=list)

    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    scans = relationship("Scan", back_populates="site", cascade="all, delete-orphan")
    citations = relationship("Citation", back_populates="site", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_site_domain", "domain"),
    )


# ============================================================================
# SCANS
# ============================================================================

class Scan(Base):
    """Summary of one completed scan, kept for trend reporting"""
    __tablename__ = "scans"

    id = Column(Uuid, primary_key=True, default=uuid4)
    site_id = Column(Uuid, ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)

    overall_score = Column(Integer, nullable=False)
    platform_scores = Column(JSON, default=dict)  # {"perplexity": 72, ...}
    is_invisible = Column(Boolean, default=False)
    competitors_detected = Column(JSON, default=list)
    factors = Column(JSON, default=list)  # ScoreComponent breakdown
    explanation = Column(Text)

    query_count = Column(Integer, default=0)
    platforms_attempted = Column(JSON, default=list)
    platform_errors = Column(JSON, default=dict)
    total_cost_usd = Column(Float, default=0.0)

    started_at = Column(DateTime)
    completed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    site = relationship("Site", back_populates="scans")
    citations = relationship("Citation", back_populates="scan")

    __table_args__ = (
        Index("idx_scan_site_completed", "site_id", "completed_at"),
    )


# ============================================================================
# CITATIONS
# ============================================================================

class Citation(Base):
    """An AI answer that cited the tracked domain as a source. Never updated."""
    __tablename__ = "citations"

    id = Column(Uuid, primary_key=True, default=uuid4)
    site_id = Column(Uuid, ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    scan_id = Column(Uuid, ForeignKey("scans.id", ondelete="SET NULL"))

    platform = Column(_platform_enum(), nullable=False)
    query = Column(Text, nullable=False)
    snippet = Column(Text, default="")
    cited_url = Column(Text)

    cited_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    site = relationship("Site", back_populates="citations")
    scan = relationship("Scan", back_populates="citations")

    __table_args__ = (
        Index("idx_citation_site_cited", "site_id", "cited_at"),
        Index("idx_citation_dedupe", "site_id", "platform", "query"),
    )
