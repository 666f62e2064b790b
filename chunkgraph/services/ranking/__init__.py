"""Dynamic ranking of hybrid-search candidates."""

from .engine import DynamicRankingEngine
from .filters import evaluate_filter, rule_applies
from .metrics import compute_metrics
from .signals import SignalCalculator
from .stores import FilterRuleStore, InMemoryStore, UserPreferenceStore, default_filter_rules

__all__ = [
    "DynamicRankingEngine",
    "FilterRuleStore",
    "InMemoryStore",
    "SignalCalculator",
    "UserPreferenceStore",
    "compute_metrics",
    "default_filter_rules",
    "evaluate_filter",
    "rule_applies",
]
