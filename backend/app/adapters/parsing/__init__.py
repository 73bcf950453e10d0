"""
Response Parsing Adapters
"""

from .brand_matcher import BrandMatcher, BrandMatch, BrandConfig, get_context, is_disclaimer
from .citation_extractor import CitationExtractor

__all__ = [
    "BrandMatcher",
    "BrandMatch",
    "BrandConfig",
    "CitationExtractor",
    "get_context",
    "is_disclaimer",
]
