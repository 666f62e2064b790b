"""Metadata filter evaluation and rule application for the ranking engine."""

import re
from enum import Enum
from typing import Any

from chunkgraph.core.models.chunk import ChunkRecord
from chunkgraph.core.models.ranking import (
    FilterRule,
    MetadataFilter,
    QueryComponent,
    QueryContext,
    RankedResult,
)
from chunkgraph.core.types.common import FilterAction, FilterOperator, UserRole

# Rule context tags that map onto a user role
_ROLE_CONTEXTS = {
    "development": UserRole.DEVELOPER,
    "testing": UserRole.QA,
    "architecture": UserRole.ARCHITECT,
}


def get_field_value(record: ChunkRecord, field_path: str) -> Any:
    """Resolve a dotted path such as ``metadata.importance`` against a record."""
    value: Any = record
    for part in field_path.split("."):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    if isinstance(value, Enum):
        return value.value
    return value


def evaluate_filter(record: ChunkRecord, condition: MetadataFilter) -> bool:
    value = get_field_value(record, condition.field)
    operator = condition.operator
    expected = condition.value

    if operator is FilterOperator.EQUALS:
        return value == expected
    if operator is FilterOperator.CONTAINS:
        return str(expected).lower() in str(value).lower()
    if operator is FilterOperator.STARTS_WITH:
        return str(value).lower().startswith(str(expected).lower())
    if operator is FilterOperator.ENDS_WITH:
        return str(value).lower().endswith(str(expected).lower())
    if operator is FilterOperator.IN:
        return isinstance(expected, (list, tuple, set, frozenset)) and value in expected
    if operator is FilterOperator.RANGE:
        if not isinstance(expected, (list, tuple)) or len(expected) != 2:
            return False
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return expected[0] <= value <= expected[1]
    if operator is FilterOperator.EXISTS:
        return value is not None
    if operator is FilterOperator.REGEX:
        return value is not None and re.search(str(expected), str(value)) is not None
    if operator is FilterOperator.NOT:
        if isinstance(expected, MetadataFilter):
            return not evaluate_filter(record, expected)
        return value != expected
    return True


def evaluate_conditions(record: ChunkRecord, conditions: list[MetadataFilter]) -> bool:
    return all(evaluate_filter(record, condition) for condition in conditions)


def rule_applies(rule: FilterRule, context: QueryContext) -> bool:
    """Whether ``rule`` is active for the query context.

    Role tags (development, testing, architecture) match the user role; any
    other tag, ``production`` included, must be listed in ``context.contexts``.
    """
    if not rule.applicable_contexts:
        return True
    for tag in rule.applicable_contexts:
        role = _ROLE_CONTEXTS.get(tag)
        if role is not None:
            if context.user_role is role:
                return True
        elif tag in context.contexts:
            return True
    return False


def apply_rule(results: list[RankedResult], rule: FilterRule) -> list[RankedResult]:
    """Apply one rule. Results without a record pass through untouched."""
    kept: list[RankedResult] = []
    for result in results:
        record = result.record
        if record is None:
            kept.append(result)
            continue

        matches = evaluate_conditions(record, rule.condition)
        if rule.action is FilterAction.EXCLUDE:
            if not matches:
                kept.append(result)
        elif rule.action is FilterAction.REQUIRE:
            if matches:
                kept.append(result)
        elif rule.action is FilterAction.BOOST:
            if matches:
                result.filter_multiplier *= 1 + rule.strength
            kept.append(result)
        elif rule.action is FilterAction.DEMOTE:
            if matches:
                result.filter_multiplier *= 1 - rule.strength
            kept.append(result)
        else:
            kept.append(result)
    return kept


def apply_filters(
    results: list[RankedResult],
    rules: list[FilterRule],
    components: list[QueryComponent],
    context: QueryContext,
) -> list[RankedResult]:
    """Apply enabled, applicable rules by ascending priority, then component filters."""
    filtered = list(results)
    for rule in sorted(rules, key=lambda r: r.priority):
        if not rule.enabled or not rule_applies(rule, context):
            continue
        filtered = apply_rule(filtered, rule)

    for component in components:
        for condition in component.filters:
            filtered = [
                result
                for result in filtered
                if result.record is None or evaluate_filter(result.record, condition)
            ]
    return filtered
