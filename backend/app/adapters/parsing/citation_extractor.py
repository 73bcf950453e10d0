"""
Citation Extractor
Finds a target domain in AI answers and their cited sources
"""

import re
from typing import Iterable, List, Optional
from urllib.parse import urlparse


class CitationExtractor:
    """
    Locates domains in response text and cited URL lists.
    Matching is literal and case-insensitive: the target domain is
    compared as a substring, so "acme.io" also matches "www.acme.io"
    and "https://acme.io/pricing".
    """

    # Bare domains written in prose ("see acme.io for details")
    DOMAIN_PATTERN = re.compile(
        r"\b((?:[a-z0-9-]+\.)+(?:com|io|co|ai|app|dev|org|net|me|sh|cc|so|biz|"
        r"xyz|tech|tools|software|cloud|pro|gg|fm|tv|to|ly))\b",
        re.IGNORECASE,
    )

    # Domains that are commonly hallucinated
    SUSPICIOUS_DOMAINS = [
        "example.com",
        "placeholder.com",
        "yoursite.com",
        "company.com",
        "brandname.com",
    ]

    def normalize_domain(self, url: str) -> str:
        """Extract and normalize domain from URL"""
        url = self._clean_url(url)
        if "://" not in url:
            url = "https://" + url
        try:
            domain = (urlparse(url).hostname or "").lower()
        except ValueError:
            return ""

        # Remove www prefix
        if domain.startswith("www."):
            domain = domain[4:]

        return domain

    def _clean_url(self, url: str) -> str:
        """Remove trailing punctuation that got caught"""
        return re.sub(r'[.,;:!?\'")\]]+$', '', url.strip())

    def find_domain(self, text: str, domain: str) -> int:
        """Character offset of the first occurrence of domain in text, or -1"""
        if not domain:
            return -1
        return text.lower().find(domain.lower())

    def count_domain(self, text: str, domain: str) -> int:
        """Number of non-overlapping occurrences of domain in text"""
        if not domain:
            return 0
        return text.lower().count(domain.lower())

    def matching_citations(self, cited_urls: Iterable[str], domain: str) -> List[str]:
        """Cited URLs that contain the domain, in provider order"""
        if not domain:
            return []
        domain = domain.lower()
        return [url for url in cited_urls if domain in url.lower()]

    def extract_mentioned_domains(
        self,
        text: str,
        cited_urls: Iterable[str] = (),
    ) -> List[str]:
        """
        Every domain an answer points at, from its citations and its prose.

        Args:
            text: Response text
            cited_urls: Source URLs returned with the response

        Returns:
            Unique normalized domains in first-seen order, placeholders removed
        """
        domains = []
        seen = set()

        candidates = [self.normalize_domain(url) for url in cited_urls]
        candidates += [
            self.normalize_domain(match.group(1))
            for match in self.DOMAIN_PATTERN.finditer(text)
        ]

        for domain in candidates:
            if not domain or domain in seen or domain in self.SUSPICIOUS_DOMAINS:
                continue
            seen.add(domain)
            domains.append(domain)

        return domains
