"""
Pydantic Schemas for API Request/Response validation
"""

from .scan import (
    ScanRequest,
    ScanReportResponse,
    ScoreFactorResponse,
    MentionResultResponse,
    QueryResultResponse,
    CompetitorGapResponse,
)
from .site import (
    SiteCreate,
    SiteResponse,
    CitationResponse,
    CitedPageResponse,
    CitationReportResponse,
    ScanSummaryResponse,
)

__all__ = [
    # Scan
    "ScanRequest",
    "ScanReportResponse",
    "ScoreFactorResponse",
    "MentionResultResponse",
    "QueryResultResponse",
    "CompetitorGapResponse",
    # Site
    "SiteCreate",
    "SiteResponse",
    "CitationResponse",
    "CitedPageResponse",
    "CitationReportResponse",
    "ScanSummaryResponse",
]
