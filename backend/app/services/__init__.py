"""
Business Logic Services
"""

from .mention_extractor import MentionExtractor, MentionResult
from .visibility_scorer import (
    VisibilityScorer,
    VisibilityScore,
    ScoreComponent,
    InsufficientDataError,
    merge_platform_results,
)
from .query_generator import QueryGenerator, ScanQuery, competitors_for
from .scan_orchestrator import (
    ScanOrchestrator,
    ScanReport,
    ScanError,
    ScanFailureReason,
    QueryResult,
    CompetitorGap,
    CitationRecord,
)
from .citation_store import CitationStore, CitationReport

__all__ = [
    "MentionExtractor",
    "MentionResult",
    "VisibilityScorer",
    "VisibilityScore",
    "ScoreComponent",
    "InsufficientDataError",
    "merge_platform_results",
    "QueryGenerator",
    "ScanQuery",
    "competitors_for",
    "ScanOrchestrator",
    "ScanReport",
    "ScanError",
    "ScanFailureReason",
    "QueryResult",
    "CompetitorGap",
    "CitationRecord",
    "CitationStore",
    "CitationReport",
]
