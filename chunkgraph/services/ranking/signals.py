"""Ranking signal heuristics.

Every heuristic is a pure function of a chunk record and the query; the
engine composes them into per-candidate signal lists.
"""

import math
import re
from datetime import datetime, timezone

from loguru import logger

from chunkgraph.core.models.chunk import ChunkRecord
from chunkgraph.core.models.ranking import (
    QueryComponent,
    QueryContext,
    RankingSignal,
    SearchCandidate,
)
from chunkgraph.core.types.common import SignalSource, UserRole

DEFAULT_AUTHORITY = 0.5
NEUTRAL_FACTOR = 0.5
_LOWER_CAMEL_RE = re.compile(r"\b[a-z][a-zA-Z0-9]*\b")
_INDENTED_RE = re.compile(r"^\s+")

# Content ----------------------------------------------------------------


def content_length_quality(length: int) -> float:
    if length < 100:
        return 0.3
    if length < 500:
        return 0.6 + (length - 100) / 400 * 0.2
    if length <= 2000:
        return 0.8 + (length - 500) / 1500 * 0.2
    if length <= 5000:
        return 1.0 - (length - 2000) / 3000 * 0.3
    return 0.7


def code_structure_quality(content: str) -> float:
    score = 0.5
    if "class " in content or "interface " in content:
        score += 0.2
    if "function " in content or "def " in content:
        score += 0.15
    if "import " in content or "require(" in content:
        score += 0.1
    if "{" in content and "}" in content:
        score += 0.1
    lines = content.split("\n")
    indented = sum(1 for line in lines if _INDENTED_RE.match(line))
    if indented / len(lines) > 0.3:
        score += 0.1
    return min(1.0, score)


def documentation_quality(content: str) -> float:
    score = 0.0
    if "/**" in content or '"""' in content:
        score += 0.4
    if "//" in content or "#" in content:
        score += 0.2
    if "@param" in content or "@return" in content:
        score += 0.2
    if "TODO" in content or "FIXME" in content:
        score += 0.1
    lines = content.split("\n")
    comment_lines = sum(
        1 for line in lines if line.strip().startswith(("//", "#", "*"))
    )
    if comment_lines / len(lines) > 0.1:
        score += 0.2
    return min(1.0, score)


def query_alignment(content: str, query: str, components: list[QueryComponent]) -> float:
    content_lower = content.lower()
    score = 0.0
    if query and query.lower() in content_lower:
        score += 0.3
    for component in components:
        for keyword in component.keywords:
            if keyword.lower() in content_lower:
                score += 0.1
    if any(c.intent.action == "find" for c in components) and (
        "function" in content_lower or "class" in content_lower
    ):
        score += 0.2
    return min(1.0, score)


# Metadata ---------------------------------------------------------------


def framework_alignment(framework: str | None, context: QueryContext) -> float:
    if not framework or not context.active_frameworks:
        return 0.5
    chunk_framework = framework.lower()
    for active in context.active_frameworks:
        if active.lower() in chunk_framework:
            return 1.0
    return 0.3


def complexity_appropriateness(complexity: float) -> float:
    if 3 <= complexity <= 7:
        return 1.0
    if complexity < 3:
        return 0.7
    if complexity > 10:
        return 0.4
    return 0.8


def complexity_category(complexity: float) -> str:
    if complexity <= 3:
        return "simple"
    if complexity <= 7:
        return "moderate"
    return "complex"


# Quality ----------------------------------------------------------------


def error_indicator_score(content: str) -> float:
    score = 0.0
    if "TODO" in content:
        score += 0.1
    if "FIXME" in content:
        score += 0.2
    if "HACK" in content:
        score += 0.15
    if "XXX" in content:
        score += 0.1
    if "console.log" in content or "print(" in content:
        score += 0.05
    if sum(1 for line in content.split("\n") if len(line) > 120) > 3:
        score += 0.1
    return min(1.0, score)


def best_practices_adherence(content: str) -> float:
    score = 0.5
    if "const " in content or "final " in content:
        score += 0.1
    if "try" in content and "catch" in content:
        score += 0.1
    if "async" in content or "await" in content:
        score += 0.05
    if "interface" in content or "abstract" in content:
        score += 0.1
    if _LOWER_CAMEL_RE.search(content):
        score += 0.1
    return min(1.0, score)


def estimate_test_coverage(content: str, semantic_type: str) -> float:
    lowered = content.lower()
    if "test" in lowered or "spec" in lowered:
        return 0.8
    if "mock" in lowered or "stub" in lowered:
        return 0.6
    if "assert" in lowered or "expect" in lowered:
        return 0.7
    if "test" in semantic_type:
        return 0.9
    if "util" in semantic_type or "helper" in semantic_type:
        return 0.4
    return 0.3


# Context ----------------------------------------------------------------


def component_type_alignment(semantic_type: str, components: list[QueryComponent]) -> float:
    chunk_type = semantic_type.lower()
    for component in components:
        if chunk_type and chunk_type in component.intent.subject.lower():
            return 1.0
        if component.intent.action == "find" and "function" in chunk_type:
            return 0.8
        if component.intent.action == "analyze" and "class" in chunk_type:
            return 0.8
    return 0.5


def scope_appropriateness(record: ChunkRecord, components: list[QueryComponent]) -> float:
    if not components:
        return 0.7
    scope = components[0].intent.scope
    semantic_type = record.semantic_type
    if scope == "file":
        return 1.0 if "file" in record.chunk_type.value else 0.6
    if scope == "class":
        return 1.0 if "class" in semantic_type else 0.4
    if scope == "function":
        return 1.0 if "function" in semantic_type else 0.4
    if scope == "module":
        return 1.0 if "module" in semantic_type else 0.7
    if scope == "project":
        return 0.8
    return 0.7


def user_role_relevance(semantic_type: str, role: UserRole) -> float:
    chunk_type = semantic_type.lower()
    if role is UserRole.ARCHITECT:
        return 0.9 if "config" in chunk_type or "interface" in chunk_type else 0.6
    if role is UserRole.DEVELOPER:
        return 0.9 if "function" in chunk_type or "class" in chunk_type else 0.7
    if role is UserRole.QA:
        return 0.9 if "test" in chunk_type else 0.5
    if role is UserRole.DEVOPS:
        return 0.9 if "config" in chunk_type or "deploy" in chunk_type else 0.5
    return 0.7


# Temporal ---------------------------------------------------------------


def last_modified_of(record: ChunkRecord | None) -> datetime | None:
    if record is None:
        return None
    value = record.metadata.get("last_modified")
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            logger.debug(f"[Rank] Ignoring malformed last_modified on {record.id}: {value!r}")
            return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return None


def days_since(moment: datetime, now: datetime) -> float:
    return max(0.0, (now - moment).total_seconds() / 86400)


def freshness(days: float) -> float:
    return max(0.0, 1 - days / 365)


def freshness_factor(record: ChunkRecord | None, now: datetime) -> float:
    modified = last_modified_of(record)
    if modified is None:
        return NEUTRAL_FACTOR
    return freshness(days_since(modified, now))


def confidence_score(signals: list[RankingSignal]) -> float:
    if not signals:
        return 0.5
    average = sum(s.confidence for s in signals) / len(signals)
    return min(1.0, average * (1 + math.log(len(signals)) / 10))


def _grade(value: float, grades: list[tuple[float, str]], fallback: str) -> str:
    for threshold, label in grades:
        if value > threshold:
            return label
    return fallback


def _missing(name: str, source: SignalSource) -> RankingSignal:
    return RankingSignal(name, 0.0, 0.0, source, "No content available")


class SignalCalculator:
    """Compute all signal groups for a candidate."""

    def __init__(
        self,
        authority_scores: dict[str, float] | None = None,
        update_frequencies: dict[str, float] | None = None,
    ) -> None:
        self.authority_scores: dict[str, float] = authority_scores or {}
        self.update_frequencies: dict[str, float] = update_frequencies or {}

    def compute(
        self,
        candidate: SearchCandidate,
        query: str,
        components: list[QueryComponent],
        context: QueryContext,
        now: datetime,
    ) -> list[RankingSignal]:
        record = candidate.record
        signals: list[RankingSignal] = []
        signals.extend(self.content_signals(record, query, components))
        signals.extend(self.metadata_signals(record, context))
        signals.extend(self.temporal_signals(candidate.id, record, now))
        signals.extend(self.quality_signals(record))
        signals.extend(self.context_signals(record, components, context))
        signals.extend(self.authority_signals(candidate.id, record))
        return signals

    def content_signals(
        self, record: ChunkRecord | None, query: str, components: list[QueryComponent]
    ) -> list[RankingSignal]:
        names = [
            "content_length_quality",
            "code_structure_quality",
            "documentation_quality",
            "query_alignment",
        ]
        if record is None:
            return [_missing(name, SignalSource.ANALYSIS) for name in names]

        content = record.content
        length_score = content_length_quality(len(content))
        structure = code_structure_quality(content)
        docs = documentation_quality(content)
        alignment = query_alignment(content, query, components)
        return [
            RankingSignal(
                "content_length_quality",
                length_score,
                0.7,
                SignalSource.ANALYSIS,
                f"Content length ({len(content)} chars) indicates "
                f"{_grade(length_score, [(0.7, 'comprehensive'), (0.4, 'adequate')], 'brief')} coverage",
            ),
            RankingSignal(
                "code_structure_quality",
                structure,
                0.8,
                SignalSource.ANALYSIS,
                "Code structure analysis: "
                + _grade(
                    structure,
                    [(0.7, "well-structured"), (0.4, "moderately structured")],
                    "needs improvement",
                ),
            ),
            RankingSignal(
                "documentation_quality",
                docs,
                0.6,
                SignalSource.ANALYSIS,
                "Documentation coverage: "
                + _grade(
                    docs,
                    [(0.7, "well-documented"), (0.4, "some documentation")],
                    "minimal documentation",
                ),
            ),
            RankingSignal(
                "query_alignment",
                alignment,
                0.9,
                SignalSource.ANALYSIS,
                "Query alignment: "
                + _grade(alignment, [(0.8, "highly relevant"), (0.5, "relevant")], "somewhat relevant"),
            ),
        ]

    def metadata_signals(
        self, record: ChunkRecord | None, context: QueryContext
    ) -> list[RankingSignal]:
        if record is None:
            return [
                _missing(name, SignalSource.METADATA)
                for name in (
                    "metadata_importance",
                    "framework_alignment",
                    "complexity_appropriateness",
                )
            ]

        importance = float(record.metadata.get("importance", 0.5))
        framework_score = framework_alignment(record.metadata.get("framework"), context)
        complexity = float(record.metadata.get("complexity", 1))
        return [
            RankingSignal(
                "metadata_importance",
                importance,
                0.8,
                SignalSource.METADATA,
                "Component importance: "
                + _grade(
                    importance,
                    [(0.8, "critical"), (0.6, "important"), (0.4, "moderate")],
                    "low",
                ),
            ),
            RankingSignal(
                "framework_alignment",
                framework_score,
                0.7,
                SignalSource.METADATA,
                "Framework alignment: "
                + _grade(
                    framework_score,
                    [(0.8, "exact match"), (0.5, "compatible")],
                    "different framework",
                ),
            ),
            RankingSignal(
                "complexity_appropriateness",
                complexity_appropriateness(complexity),
                0.6,
                SignalSource.METADATA,
                "Complexity level: "
                + _grade(complexity, [(8, "high"), (5, "moderate")], "low"),
            ),
        ]

    def temporal_signals(
        self, chunk_id: str, record: ChunkRecord | None, now: datetime
    ) -> list[RankingSignal]:
        modified = last_modified_of(record)
        if modified is None:
            fresh = RankingSignal(
                "content_freshness", 0.0, 0.0, SignalSource.METADATA, "Modification time unknown"
            )
        else:
            days = days_since(modified, now)
            fresh = RankingSignal(
                "content_freshness",
                freshness(days),
                0.8,
                SignalSource.METADATA,
                f"Last modified {round(days)} days ago",
            )

        frequency = float(self.update_frequencies.get(chunk_id, 0.0))
        return [
            fresh,
            RankingSignal(
                "update_frequency",
                min(1.0, frequency / 10),
                0.5,
                SignalSource.ANALYSIS,
                "Update frequency: "
                + _grade(
                    frequency,
                    [(5, "frequently updated"), (2, "occasionally updated")],
                    "rarely updated",
                ),
            ),
        ]

    def quality_signals(self, record: ChunkRecord | None) -> list[RankingSignal]:
        if record is None:
            return [
                _missing(name, SignalSource.ANALYSIS)
                for name in ("error_free_quality", "best_practices_adherence", "test_coverage")
            ]

        errors = error_indicator_score(record.content)
        practices = best_practices_adherence(record.content)
        coverage = estimate_test_coverage(record.content, record.semantic_type)
        return [
            RankingSignal(
                "error_free_quality",
                1 - errors,
                0.7,
                SignalSource.ANALYSIS,
                "Code quality: "
                + ("clean" if errors < 0.2 else "some issues" if errors < 0.5 else "needs attention"),
            ),
            RankingSignal(
                "best_practices_adherence",
                practices,
                0.6,
                SignalSource.ANALYSIS,
                "Best practices: "
                + _grade(
                    practices,
                    [(0.7, "follows best practices"), (0.4, "mostly good")],
                    "room for improvement",
                ),
            ),
            RankingSignal(
                "test_coverage",
                coverage,
                0.5,
                SignalSource.ANALYSIS,
                "Test coverage: "
                + _grade(coverage, [(0.8, "well-tested"), (0.5, "some tests")], "limited testing"),
            ),
        ]

    def context_signals(
        self,
        record: ChunkRecord | None,
        components: list[QueryComponent],
        context: QueryContext,
    ) -> list[RankingSignal]:
        if record is None:
            return [
                _missing(name, SignalSource.CONTEXT)
                for name in (
                    "component_type_alignment",
                    "scope_appropriateness",
                    "user_role_relevance",
                )
            ]

        type_alignment = component_type_alignment(record.semantic_type, components)
        scope = scope_appropriateness(record, components)
        role = user_role_relevance(record.semantic_type, context.user_role)
        return [
            RankingSignal(
                "component_type_alignment",
                type_alignment,
                0.8,
                SignalSource.CONTEXT,
                "Component type matches query intent: "
                + _grade(type_alignment, [(0.8, "perfect match"), (0.5, "good match")], "partial match"),
            ),
            RankingSignal(
                "scope_appropriateness",
                scope,
                0.7,
                SignalSource.CONTEXT,
                "Scope alignment: "
                + _grade(scope, [(0.8, "perfect scope"), (0.5, "appropriate scope")], "scope mismatch"),
            ),
            RankingSignal(
                "user_role_relevance",
                role,
                0.6,
                SignalSource.CONTEXT,
                f"Relevance to {context.user_role.value}: "
                + _grade(role, [(0.7, "highly relevant"), (0.4, "relevant")], "less relevant"),
            ),
        ]

    def authority_signals(self, chunk_id: str, record: ChunkRecord | None) -> list[RankingSignal]:
        authority = float(self.authority_scores.get(chunk_id, DEFAULT_AUTHORITY))
        signals = [
            RankingSignal(
                "external_authority",
                authority,
                0.4,
                SignalSource.EXTERNAL,
                "Authority score: "
                + _grade(authority, [(0.8, "highly authoritative"), (0.6, "authoritative")], "standard"),
            )
        ]
        if record is None:
            signals.append(_missing("reference_count", SignalSource.ANALYSIS))
            return signals

        inbound = int(record.metadata.get("inbound_references", 0))
        signals.append(
            RankingSignal(
                "reference_count",
                min(1.0, inbound / 10),
                0.5,
                SignalSource.ANALYSIS,
                f"Referenced by {inbound} other components",
            )
        )
        return signals

    def authority_factor(self, chunk_id: str) -> float:
        return float(self.authority_scores.get(chunk_id, DEFAULT_AUTHORITY))
