"""
Tests for mention extraction
"""

import pytest

from app.adapters.llm import PlatformId, PlatformResponse
from app.services.mention_extractor import MentionExtractor


def response(text, cited_urls=(), platform=PlatformId.PERPLEXITY):
    return PlatformResponse(
        platform=platform,
        query="Best CRM tools?",
        raw_text=text,
        cited_urls=tuple(cited_urls),
    )


@pytest.fixture
def extractor():
    return MentionExtractor()


class TestGenuineMentions:

    def test_named_mentioned_and_cited(self, extractor, acme_answer):
        result = extractor.extract(
            response(acme_answer["text"], acme_answer["cited_urls"]),
            "acme.io",
            "Acme",
        )

        assert result.domain_found
        assert result.in_citations
        assert result.mentioned_brand
        assert result.is_genuine
        assert not result.is_echo
        assert result.mention_position == 0.0
        assert result.genuine_mention_count == 2
        assert result.cited_url == "https://acme.io/pricing"
        assert "acme.io" in result.snippet

    def test_cited_only_ranks_last(self, extractor):
        result = extractor.extract(
            response("Several CRMs exist.", ["https://www.acme.io/blog"]),
            "acme.io",
            "Acme",
        )

        assert result.in_citations
        assert result.domain_found
        assert not result.mentioned_brand
        assert result.mention_position == 1.0

    def test_position_is_normalized_offset(self, extractor):
        text = "Many tools exist. acme.io is one."
        result = extractor.extract(response(text), "acme.io", "Acme")

        assert result.domain_found
        assert not result.in_citations
        assert result.mention_position == pytest.approx(18 / len(text))

    def test_domain_match_is_case_insensitive(self, extractor):
        result = extractor.extract(response("Visit ACME.IO today"), "www.acme.io", "Acme")

        assert result.domain_found


class TestEchoAndAbsence:

    def test_competitors_only(self, extractor, crm_answer):
        result = extractor.extract(
            response(crm_answer["text"]),
            "acme.io",
            "Acme",
            competitors=["HubSpot", "Pipedrive", "Salesforce"],
        )

        assert not result.domain_found
        assert not result.in_citations
        assert not result.mentioned_brand
        assert result.competitor_brands == frozenset({"HubSpot", "Pipedrive"})
        assert result.mention_position is None
        assert result.genuine_mention_count == 0

    def test_brand_echo_is_not_genuine(self, extractor):
        result = extractor.extract(
            response("I don't have information about Acme."),
            "acme.io",
            "Acme",
        )

        assert result.mentioned_brand
        assert result.is_echo
        assert not result.is_genuine
        assert result.disclaimed
        assert result.mention_position is None

    def test_word_boundary(self, extractor):
        assert not extractor.extract(response("Acmecorp is great"), "acme.io", "Acme").mentioned_brand
        assert extractor.extract(response("ACME's platform"), "acme.io", "Acme").mentioned_brand

    def test_empty_answer(self, extractor):
        result = extractor.extract(response(""), "acme.io", "Acme")

        assert not result.is_genuine
        assert not result.mentioned_brand
        assert result.snippet == ""


class TestCompetitors:

    def test_configured_spelling_reported(self, extractor):
        result = extractor.extract(
            response("hubspot is popular"),
            "acme.io",
            "Acme",
            competitors=["HubSpot"],
        )

        assert result.competitor_brands == frozenset({"HubSpot"})

    def test_brand_never_reported_as_competitor(self, extractor):
        result = extractor.extract(
            response("Acme and HubSpot both work"),
            "acme.io",
            "Acme",
            competitors=["acme", "HubSpot"],
        )

        assert result.competitor_brands == frozenset({"HubSpot"})
        assert result.mentioned_brand

    def test_absent_competitors_never_reported(self, extractor):
        result = extractor.extract(
            response("Nothing relevant here"),
            "acme.io",
            "Acme",
            competitors=["HubSpot", "Pipedrive"],
        )

        assert result.competitor_brands == frozenset()

    def test_other_domains_collected(self, extractor):
        result = extractor.extract(
            response("Try hubspot.com or acme.io", ["https://g2.com/crm"]),
            "acme.io",
            "Acme",
        )

        assert result.mentioned_domains == ("g2.com", "hubspot.com")


class TestDeterminism:

    def test_same_input_same_result(self, extractor, acme_answer):
        r = response(acme_answer["text"], acme_answer["cited_urls"])
        assert extractor.extract(r, "acme.io", "Acme") == extractor.extract(r, "acme.io", "Acme")
