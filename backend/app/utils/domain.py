"""
Domain and brand input helpers
Cleaning, validation and brand-name derivation for scan inputs
"""

import re
from typing import Optional

# Lowercase hostname with at least one dot, RFC 1035 label rules
DOMAIN_PATTERN = re.compile(
    r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9-]*[a-z0-9])?)+$"
)

TLD_PATTERN = re.compile(
    r"\.(com|io|co|ai|app|dev|org|net|so|sh|me|cc|biz|info|xyz|tech|tools|"
    r"software|cloud|studio|design|agency|pro|team|run|build|gg|fm|tv|to|ly|"
    r"it|is|in|us|uk|de|fr|eu|co\.uk|com\.au|co\.in)$"
)

MAX_DOMAIN_LENGTH = 253


class InvalidInputError(ValueError):
    """Scan input rejected before any provider call"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def clean_domain_input(domain: str) -> str:
    """
    Normalize user input into a bare hostname.

    "https://www.Acme.io/pricing" -> "acme.io"
    """
    cleaned = domain.strip().lower()
    cleaned = re.sub(r"^https?://", "", cleaned)
    if cleaned.startswith("www."):
        cleaned = cleaned[4:]
    cleaned = cleaned.split("/")[0]
    return cleaned


def is_valid_domain(domain: str) -> bool:
    """Check that a string is a bare hostname (no scheme, no path)"""
    if not domain or len(domain) > MAX_DOMAIN_LENGTH:
        return False
    return bool(DOMAIN_PATTERN.match(domain))


def normalize_domain(domain: str) -> str:
    """Lowercase a hostname and drop a leading www."""
    domain = domain.strip().lower()
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def validate_domain(domain: str) -> str:
    """
    Validate a hostname and return its normalized form.

    Raises:
        InvalidInputError: If the value has a scheme, a path or bad labels
    """
    if not isinstance(domain, str) or not domain.strip():
        raise InvalidInputError("Domain must be a non-empty hostname", field="domain")

    normalized = normalize_domain(domain)
    if not is_valid_domain(normalized):
        raise InvalidInputError(
            f"Invalid domain '{domain}': expected a hostname like 'example.com' "
            "without scheme or path",
            field="domain",
        )
    return normalized


def validate_question(question: str) -> str:
    """Reject empty questions before they cost a provider call"""
    if not isinstance(question, str) or not question.strip():
        raise InvalidInputError("Question must be non-empty", field="question")
    return question.strip()


def extract_brand_name(domain: str) -> str:
    """
    Derive a brand name from a domain when the caller did not supply one.

    "acme.io" -> "acme", "app.notion.so" -> "notion"
    """
    cleaned = TLD_PATTERN.sub("", normalize_domain(domain))
    name = cleaned.split(".")[-1]
    if "-" in name and len(name) > 20:
        return domain
    return name
