"""
Tests for scan question generation and the competitor catalog
"""

import pytest

from app.config import QUERY_INTENTS, get_settings
from app.services.query_generator import (
    QueryGenerator,
    competitors_for,
    load_competitor_catalog,
    topic_for,
)


@pytest.fixture
def generator():
    return QueryGenerator(version="v1")


class TestQueryGenerator:

    def test_every_intent_has_templates(self, generator):
        templates = generator.load_templates()
        assert set(templates) == set(QUERY_INTENTS)
        assert all(templates[intent] for intent in QUERY_INTENTS)

    def test_round_robin_over_intents(self, generator):
        queries = generator.generate("acme.io", "Acme", len(QUERY_INTENTS))

        assert [q.intent for q in queries] == QUERY_INTENTS
        assert all(q.question for q in queries)

    def test_short_scan_mixes_comparison_intents(self, generator):
        intents = {q.intent for q in generator.generate("acme.io", "Acme", 3)}
        assert intents == {"best-of", "vs", "alternatives"}

    def test_variables_substituted(self, generator):
        queries = generator.generate("acme.io", "Acme", 20, topic="CRM")
        text = " ".join(q.question for q in queries)

        assert "Acme" in text
        assert "acme.io" in text
        assert "CRM" in text
        assert "{" not in text

    def test_topic_templates_skipped_without_topic(self, generator):
        queries = generator.generate("acme.io", "Acme", 50)
        assert all("{topic}" not in q.question for q in queries)
        assert all(q.question.strip() for q in queries)

    def test_capped_at_available_templates(self, generator):
        available = generator.available_count()
        queries = generator.generate("acme.io", "Acme", available + 10)

        assert len(queries) == available
        assert len({q.question for q in queries}) == available

    def test_max_scan_size_needs_no_topic(self, generator):
        max_queries = get_settings().SCAN_MAX_QUERIES
        assert generator.available_count() >= max_queries

        queries = generator.generate("acme.io", "Acme", max_queries)
        assert len(queries) == max_queries
        assert len({q.question.lower() for q in queries}) == max_queries

    def test_topic_unlocks_more_templates(self, generator):
        assert generator.available_count("CRM") > generator.available_count()

    def test_deterministic(self, generator):
        first = generator.generate("acme.io", "Acme", 7, topic="CRM")
        second = QueryGenerator(version="v1").generate("acme.io", "Acme", 7, topic="CRM")
        assert first == second

    def test_unknown_version(self):
        with pytest.raises(ValueError):
            QueryGenerator(version="v999").load_templates()


class TestCompetitorCatalog:

    def test_catalog_loads(self):
        catalog = load_competitor_catalog()
        assert "crm" in catalog

    def test_competitors_for_category(self):
        competitors = competitors_for("CRM")
        assert "HubSpot" in competitors
        assert "Pipedrive" in competitors

    def test_unknown_category(self):
        assert competitors_for("underwater-basket-weaving") == []
        assert competitors_for(None) == []

    def test_topic_for_category(self):
        assert topic_for("crm") == "CRM"
        assert topic_for("niche") == "niche"
        assert topic_for(None) is None
