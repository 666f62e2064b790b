"""Tests for metadata filter evaluation and rule context matching."""

import pytest

from chunkgraph.core.models.ranking import FilterRule, MetadataFilter, QueryContext
from chunkgraph.core.types.common import FilterAction, FilterOperator, UserRole
from chunkgraph.services.ranking.filters import evaluate_filter, get_field_value, rule_applies
from tests.fixtures.fake_providers import make_record


@pytest.fixture
def record():
    return make_record(
        "function::src/views.py::render_page",
        file_path="src/views.py",
        name="render_page",
        framework="flask",
        importance=0.85,
        tags=["web", "view"],
    )


class TestFieldAccess:
    def test_dotted_paths(self, record):
        assert get_field_value(record, "metadata.importance") == 0.85
        assert get_field_value(record, "file_path") == "src/views.py"
        assert get_field_value(record, "chunk_type") == "function"
        assert get_field_value(record, "metadata.missing.deeper") is None


class TestOperators:
    @pytest.mark.parametrize(
        "field,operator,value,expected",
        [
            ("metadata.framework", FilterOperator.EQUALS, "flask", True),
            ("metadata.framework", FilterOperator.EQUALS, "Flask", False),
            ("metadata.name", FilterOperator.CONTAINS, "PAGE", True),
            ("metadata.name", FilterOperator.STARTS_WITH, "render", True),
            ("metadata.name", FilterOperator.ENDS_WITH, "_page", True),
            ("metadata.framework", FilterOperator.IN, ["django", "flask"], True),
            ("metadata.framework", FilterOperator.IN, "flask", False),
            ("metadata.importance", FilterOperator.RANGE, [0.8, 1.0], True),
            ("metadata.importance", FilterOperator.RANGE, [0.9, 1.0], False),
            ("metadata.importance", FilterOperator.RANGE, [0.8], False),
            ("metadata.name", FilterOperator.RANGE, [0, 1], False),
            ("metadata.framework", FilterOperator.EXISTS, None, True),
            ("metadata.summary", FilterOperator.EXISTS, None, False),
            ("file_path", FilterOperator.REGEX, r"^src/.*\.py$", True),
            ("file_path", FilterOperator.REGEX, r"\.ts$", False),
            ("metadata.framework", FilterOperator.NOT, "django", True),
            ("metadata.framework", FilterOperator.NOT, "flask", False),
        ],
    )
    def test_operator(self, record, field, operator, value, expected):
        assert evaluate_filter(record, MetadataFilter(field, operator, value)) is expected

    def test_not_negates_nested_filter(self, record):
        nested = MetadataFilter("metadata.framework", FilterOperator.CONTAINS, "fla")

        assert evaluate_filter(record, MetadataFilter("x", FilterOperator.NOT, nested)) is False

    def test_boolean_is_not_numeric_for_range(self):
        record = make_record("r", importance=True)

        condition = MetadataFilter("metadata.importance", FilterOperator.RANGE, [0, 1])
        assert evaluate_filter(record, condition) is False


class TestRuleContexts:
    def _rule(self, contexts: list[str]) -> FilterRule:
        return FilterRule(
            id="r",
            name="r",
            condition=[],
            action=FilterAction.BOOST,
            applicable_contexts=contexts,
        )

    def test_rule_without_contexts_always_applies(self):
        assert rule_applies(self._rule([]), QueryContext(user_role=UserRole.MANAGER))

    def test_role_tags_match_user_role(self):
        rule = self._rule(["testing"])

        assert rule_applies(rule, QueryContext(user_role=UserRole.QA))
        assert not rule_applies(rule, QueryContext(user_role=UserRole.DEVELOPER))

    def test_other_tags_must_be_active(self):
        rule = self._rule(["production"])

        assert not rule_applies(rule, QueryContext())
        assert rule_applies(rule, QueryContext(contexts=["production"]))

    def test_strength_is_validated(self):
        with pytest.raises(ValueError):
            FilterRule(id="x", name="x", condition=[], action=FilterAction.BOOST, strength=2.5)
