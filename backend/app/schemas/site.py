"""
Site, Citation & History Schemas
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.adapters.llm import PlatformId


class SiteCreate(BaseModel):
    """Register a domain for tracking"""
    domain: str = Field(..., min_length=3, max_length=253)
    brand_name: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    competitors: List[str] = []


class SiteResponse(BaseModel):
    id: UUID
    domain: str
    brand_name: str
    category: Optional[str]
    competitors: List[str] = []
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CitationResponse(BaseModel):
    """A stored citation of the tracked domain"""
    platform: PlatformId
    query: str
    snippet: str
    cited_url: Optional[str]
    cited_at: datetime
    scan_id: Optional[UUID] = None

    class Config:
        from_attributes = True


class CitedPageResponse(BaseModel):
    url: str
    citations: int


class CitationReportResponse(BaseModel):
    """Citation activity over a reporting period"""
    site_id: UUID
    period_days: int
    total_citations: int
    citations_this_period: int
    citations_last_period: int
    citation_change: int
    platform_breakdown: Dict[str, int]
    top_cited_pages: List[CitedPageResponse]
    top_queries: List[str]
    current_score: Optional[int]
    score_change: int


class ScanSummaryResponse(BaseModel):
    """One point of score history"""
    id: UUID
    overall_score: int
    platform_scores: Dict[str, int]
    is_invisible: bool
    competitors_detected: List[str]
    query_count: int
    completed_at: datetime

    class Config:
        from_attributes = True
