"""Tests for the ranking signal heuristics."""

from datetime import datetime, timedelta, timezone

import pytest

from chunkgraph.core.models.ranking import (
    ComponentIntent,
    QueryComponent,
    QueryContext,
    SearchCandidate,
)
from chunkgraph.core.types.common import UserRole
from chunkgraph.services.ranking.signals import (
    SignalCalculator,
    complexity_appropriateness,
    complexity_category,
    confidence_score,
    content_length_quality,
    framework_alignment,
    freshness_factor,
    query_alignment,
    user_role_relevance,
)
from tests.fixtures.fake_providers import make_record

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestHeuristics:
    @pytest.mark.parametrize(
        "length,expected",
        [(50, 0.3), (100, 0.6), (500, 0.8), (2000, 1.0), (5000, 0.7), (9000, 0.7)],
    )
    def test_content_length_quality(self, length, expected):
        assert content_length_quality(length) == pytest.approx(expected)

    def test_complexity_buckets(self):
        assert [complexity_category(c) for c in (1, 3, 5, 7, 8)] == [
            "simple",
            "simple",
            "moderate",
            "moderate",
            "complex",
        ]
        assert complexity_appropriateness(5) == 1.0
        assert complexity_appropriateness(12) == 0.4

    def test_framework_alignment(self):
        context = QueryContext(active_frameworks=["React"])

        assert framework_alignment("react-dom", context) == 1.0
        assert framework_alignment("vue", context) == 0.3
        assert framework_alignment(None, context) == 0.5
        assert framework_alignment("vue", QueryContext()) == 0.5

    def test_query_alignment_counts_keywords(self):
        component = QueryComponent(
            id="c", intent=ComponentIntent(action="find"), keywords=["cache", "ttl"]
        )

        score = query_alignment("class Cache:\n    ttl = 5\n", "cache", [component])

        assert score == pytest.approx(0.3 + 0.2 + 0.2)

    def test_user_role_relevance(self):
        assert user_role_relevance("test_function", UserRole.QA) == 0.9
        assert user_role_relevance("function", UserRole.QA) == 0.5
        assert user_role_relevance("function", UserRole.MANAGER) == 0.7

    def test_freshness_factor(self):
        recent = make_record("r", last_modified=(NOW - timedelta(days=73)).isoformat())
        naive = make_record("n", last_modified=datetime(2025, 12, 31))

        assert freshness_factor(recent, NOW) == pytest.approx(0.8)
        assert freshness_factor(naive, NOW) == pytest.approx(1 - 1 / 365)
        assert freshness_factor(None, NOW) == 0.5
        assert freshness_factor(make_record("u"), NOW) == 0.5

    def test_confidence_score(self):
        assert confidence_score([]) == 0.5


class TestSignalCalculator:
    def test_full_signal_set(self):
        calculator = SignalCalculator(authority_scores={"a": 0.9}, update_frequencies={"a": 4})
        candidate = SearchCandidate(
            id="a", combined_score=0.5, record=make_record("a", inbound_references=3)
        )

        signals = {
            s.name: s
            for s in calculator.compute(candidate, "item", [], QueryContext(), NOW)
        }

        assert set(signals) == {
            "content_length_quality",
            "code_structure_quality",
            "documentation_quality",
            "query_alignment",
            "metadata_importance",
            "framework_alignment",
            "complexity_appropriateness",
            "content_freshness",
            "update_frequency",
            "error_free_quality",
            "best_practices_adherence",
            "test_coverage",
            "component_type_alignment",
            "scope_appropriateness",
            "user_role_relevance",
            "external_authority",
            "reference_count",
        }
        assert signals["external_authority"].value == 0.9
        assert signals["update_frequency"].value == pytest.approx(0.4)
        assert signals["reference_count"].value == pytest.approx(0.3)
        assert signals["content_freshness"].confidence == 0.0
        assert all(0.0 <= s.value <= 1.0 for s in signals.values())

    def test_malformed_modification_time_is_unknown(self):
        calculator = SignalCalculator()
        record = make_record("m", last_modified="last tuesday")
        candidate = SearchCandidate(id="m", combined_score=0.5, record=record)

        signals = {
            s.name: s
            for s in calculator.compute(candidate, "item", [], QueryContext(), NOW)
        }

        assert freshness_factor(record, NOW) == 0.5
        assert signals["content_freshness"].value == 0.0
        assert signals["content_freshness"].confidence == 0.0
