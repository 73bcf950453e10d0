"""
Utility modules for CabbageSEO

Database helpers live in app.utils.database and are imported from there.
"""

from .domain import (
    InvalidInputError,
    clean_domain_input,
    is_valid_domain,
    normalize_domain,
    validate_domain,
    validate_question,
    extract_brand_name,
)

__all__ = [
    # Domain input
    "InvalidInputError",
    "clean_domain_input",
    "is_valid_domain",
    "normalize_domain",
    "validate_domain",
    "validate_question",
    "extract_brand_name",
]
