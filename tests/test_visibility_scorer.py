"""
Tests for the visibility scorer
"""

import pytest

from app.adapters.llm import PlatformId, PlatformResponse
from app.config import VISIBILITY_SCORE_WEIGHTS
from app.services.mention_extractor import MentionExtractor
from app.services.visibility_scorer import (
    InsufficientDataError,
    VisibilityScorer,
    merge_platform_results,
    summary_message,
)

P, G, C = PlatformId.PERPLEXITY, PlatformId.GOOGLE_AI, PlatformId.CHATGPT


@pytest.fixture
def scorer():
    return VisibilityScorer(crowding_k=0.35, max_expected_mentions=10)


def extract(text, cited_urls=(), competitors=()):
    return MentionExtractor().extract(
        PlatformResponse(platform=P, query="Best CRM tools?", raw_text=text, cited_urls=tuple(cited_urls)),
        "acme.io",
        "Acme",
        competitors,
    )


class TestWeights:

    def test_weights_sum_to_100(self):
        assert sum(VISIBILITY_SCORE_WEIGHTS.values()) == 100

    def test_six_factors_reported(self, scorer, make_mention):
        score = scorer.score([make_mention(brand=True, domain=True, cited=True)])
        assert [f.name for f in score.factors] == [
            "citation_presence",
            "domain_visibility",
            "position_bonus",
            "mention_depth",
            "brand_echo",
            "market_crowding",
        ]


class TestScenarios:

    def test_cited_brand_scores_high(self, scorer, acme_answer):
        result = extract(acme_answer["text"], acme_answer["cited_urls"])

        score = scorer.score([result])

        assert 80 <= score.overall_score <= 100
        assert score.factor("citation_presence").weighted_value == 40
        assert score.factor("domain_visibility").weighted_value == 25
        assert score.factor("position_bonus").weighted_value == 12
        assert score.factor("brand_echo").weighted_value == 8
        assert not score.is_invisible
        assert score.platform_scores == {P: score.overall_score}

    def test_competitors_only_is_invisible(self, scorer, crm_answer):
        result = extract(crm_answer["text"], competitors=["HubSpot", "Pipedrive"])

        score = scorer.score([result])

        assert score.overall_score == 0
        assert score.is_invisible
        assert score.competitors_detected == frozenset({"HubSpot", "Pipedrive"})


class TestProperties:

    def test_deterministic_and_order_independent(self, scorer, make_mention):
        results = [
            make_mention(P, brand=True, cited=True, competitors=["HubSpot"], position=0.2, count=3),
            make_mention(G, brand=True),
            make_mention(C, domain=True, position=0.5),
        ]

        first = scorer.score(results)
        second = scorer.score(list(reversed(results)))

        assert first.overall_score == second.overall_score
        assert first.platform_scores == second.platform_scores
        assert first.factors == second.factors

    @pytest.mark.parametrize("competitors", [
        [],
        ["HubSpot"],
        [f"Rival{i}" for i in range(25)],
    ])
    def test_adding_cited_platform_increases_score(self, scorer, make_mention, competitors):
        base = [
            make_mention(P, brand=True, cited=True, position=0.0),
            make_mention(G),
            make_mention(C),
        ]
        improved = [
            base[0],
            make_mention(G, cited=True, competitors=competitors, position=1.0),
            base[2],
        ]

        assert scorer.score(improved).overall_score > scorer.score(base).overall_score

    def test_echo_only_is_capped(self, scorer, make_mention):
        results = [make_mention(p, brand=True, competitors=["HubSpot"]) for p in (P, G, C)]

        score = scorer.score(results)

        assert score.overall_score <= 8
        assert not score.is_invisible

    def test_nothing_found_scores_zero(self, scorer, make_mention):
        results = [make_mention(p, competitors=["HubSpot", "Pipedrive"]) for p in (P, G, C)]

        score = scorer.score(results)

        assert score.overall_score == 0
        assert score.is_invisible
        assert all(s == 0 for s in score.platform_scores.values())

    @pytest.mark.parametrize("kwargs", [
        {},
        {"brand": True},
        {"domain": True, "position": 1.0},
        {"cited": True, "count": 500},
        {"brand": True, "domain": True, "cited": True, "position": 0.0, "count": 50},
        {"brand": True, "cited": True, "competitors": [f"Rival{i}" for i in range(30)]},
    ])
    def test_bounds(self, scorer, make_mention, kwargs):
        score = scorer.score([make_mention(**kwargs)])

        assert 0 <= score.overall_score <= 100
        assert all(0 <= s <= 100 for s in score.platform_scores.values())
        assert score.factor("mention_depth").weighted_value <= 10

    def test_empty_input_raises(self, scorer):
        with pytest.raises(InsufficientDataError):
            scorer.score([])


class TestDenominator:

    def test_failed_platforms_count_as_absent(self, scorer, make_mention):
        results = [make_mention(P, brand=True, domain=True, cited=True)]

        alone = scorer.score(results)
        diluted = scorer.score(results, platforms_attempted=3)

        assert diluted.overall_score < alone.overall_score
        assert diluted.factor("citation_presence").weighted_value == pytest.approx(40 / 3)
        assert diluted.platform_scores == {P: alone.overall_score}

    def test_multiple_queries_merge_per_platform(self, scorer, make_mention):
        results = [
            make_mention(P, cited=True, position=0.4, count=2, query="q1"),
            make_mention(P, brand=True, competitors=["HubSpot"], query="q2"),
            make_mention(G, query="q1"),
        ]

        merged = merge_platform_results(results)

        assert set(merged) == {P, G}
        assert merged[P].in_citations
        assert merged[P].mentioned_brand
        assert merged[P].competitor_brands == frozenset({"HubSpot"})
        assert merged[P].mention_position == 0.4
        assert merged[P].genuine_mention_count == 2

        score = scorer.score(results)
        assert score.factor("citation_presence").weighted_value == pytest.approx(20)


class TestCrowding:

    def test_competitors_reduce_crowding_bonus(self, scorer, make_mention):
        alone = scorer.score([make_mention(domain=True)])
        crowded = scorer.score([make_mention(domain=True, competitors=["HubSpot", "Pipedrive", "Close"])])

        assert crowded.factor("market_crowding").weighted_value < alone.factor("market_crowding").weighted_value
        assert alone.factor("market_crowding").weighted_value == 5


class TestSummaryMessage:

    @pytest.mark.parametrize("score,fragment", [
        (0, "doesn't know"),
        (20, "limited awareness"),
        (50, "doesn't consistently cite"),
        (100, "actively recommends"),
    ])
    def test_tiers(self, score, fragment):
        assert fragment in summary_message(score)
