"""
Brand Matching Engine
Detects brand mentions with case-insensitive word-boundary matching
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class BrandMatch:
    """A detected brand mention"""
    mentioned_text: str          # Exact text found in response
    normalized_name: str         # Configured brand name
    position: int                # Position in list of mentions (1-indexed)
    character_offset: int        # Character position in text
    context_snippet: str         # Surrounding context
    match_type: str              # "exact", "alias"
    is_own_brand: bool           # True if this is the tracked brand


@dataclass
class BrandConfig:
    """Configuration for a brand to match"""
    name: str
    aliases: List[str] = field(default_factory=list)
    is_own_brand: bool = True


# Answers that name the brand only to say the model does not know it
DISCLAIMER_PHRASES = [
    "i don't recognize",
    "i don't have information",
    "not familiar with",
    "i'm not aware of",
    "i am not aware of",
    "no information available",
    "i cannot find",
    "i can't find",
    "don't have specific",
    "not widely known",
    "not a widely-known",
    "i don't have details",
    "unable to find",
    "couldn't find information",
    "no results for",
]


def get_context(text: str, start: int, end: int, window: int = 100) -> str:
    """Extract context around a match"""
    context_start = max(0, start - window)
    context_end = min(len(text), end + window)

    context = text[context_start:context_end]

    # Add ellipsis if truncated
    if context_start > 0:
        context = "..." + context
    if context_end < len(text):
        context = context + "..."

    return context.strip()


def is_disclaimer(text: str) -> bool:
    """True if the answer says the model has no knowledge of the subject"""
    lower = text.lower()
    return any(phrase in lower for phrase in DISCLAIMER_PHRASES)


class BrandMatcher:
    """
    Matches brand names in text.
    1. Exact match (case-insensitive, word-bounded)
    2. Alias match

    Word boundaries are any non-alphanumeric character, so "acme" matches
    in "Acme's", "(acme)" and "acme.io" but not in "acmecorp".
    """

    # Context window size (characters before/after match)
    CONTEXT_WINDOW = 100

    def __init__(
        self,
        own_brands: List[BrandConfig],
        competitor_brands: Optional[List[BrandConfig]] = None
    ):
        self.own_brands = own_brands
        self.competitor_brands = competitor_brands or []
        self._build_match_index()

    def _build_match_index(self):
        """Build index for efficient matching"""
        self.exact_matches = {}  # lowercase -> BrandConfig

        # Own brands last so they win when a competitor shares a name
        for brand in self.competitor_brands + self.own_brands:
            for name in [brand.name] + list(brand.aliases):
                name = name.strip()
                if name:
                    self.exact_matches[name.lower()] = brand

    def _find_exact_matches(self, text: str) -> List[Tuple[str, int, BrandConfig]]:
        """Find exact and alias matches"""
        matches = []
        text_lower = text.lower()

        for match_text, brand in self.exact_matches.items():
            # Find all occurrences
            start = 0
            while True:
                pos = text_lower.find(match_text, start)
                if pos == -1:
                    break

                # Check word boundaries
                before_ok = pos == 0 or not text_lower[pos - 1].isalnum()
                after_ok = (pos + len(match_text) >= len(text_lower) or
                           not text_lower[pos + len(match_text)].isalnum())

                if before_ok and after_ok:
                    # Get actual text (preserving case)
                    actual_text = text[pos:pos + len(match_text)]
                    matches.append((actual_text, pos, brand))

                start = pos + 1

        return matches

    def find_mentions(self, text: str) -> List[BrandMatch]:
        """
        Find all brand mentions in text.

        Args:
            text: The AI response text to analyze

        Returns:
            List of BrandMatch objects, ordered by position
        """
        mentions = []

        for match_text, pos, brand in self._find_exact_matches(text):
            if match_text.lower() == brand.name.lower():
                match_type = "exact"
            else:
                match_type = "alias"

            mentions.append(BrandMatch(
                mentioned_text=match_text,
                normalized_name=brand.name,
                position=0,  # Will be set after sorting
                character_offset=pos,
                context_snippet=get_context(
                    text, pos, pos + len(match_text), self.CONTEXT_WINDOW
                ),
                match_type=match_type,
                is_own_brand=brand.is_own_brand,
            ))

        # Sort by position and assign position numbers
        mentions.sort(key=lambda m: (m.character_offset, -len(m.mentioned_text)))
        for i, mention in enumerate(mentions):
            mention.position = i + 1

        return mentions

    def get_own_brand_mentions(self, mentions: List[BrandMatch]) -> List[BrandMatch]:
        """Filter to only own brand mentions"""
        return [m for m in mentions if m.is_own_brand]

    def get_competitor_mentions(self, mentions: List[BrandMatch]) -> List[BrandMatch]:
        """Filter to only competitor mentions"""
        return [m for m in mentions if not m.is_own_brand]
