"""
Database Models for CabbageSEO
"""

from .database import (
    Base,
    Site,
    Scan,
    Citation,
)

__all__ = [
    "Base",
    "Site",
    "Scan",
    "Citation",
]
