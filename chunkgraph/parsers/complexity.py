"""Complexity metrics over tree-sitter subtrees.

Cyclomatic complexity starts at 1 and increments once per branching
construct and once per short-circuit boolean operator. Cognitive complexity
adds ``max(1, depth)`` for the same constructs, where depth grows on entering
conditionals, loops and function bodies. Halstead measures are derived from
operator tokens and identifier/literal operands.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from chunkgraph.core.models.symbol import ComplexityMetrics, HalsteadMetrics

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode


@dataclass(frozen=True)
class ComplexityRules:
    """Node-type vocabulary a language contributes to complexity counting."""

    branch_types: frozenset[str]
    nesting_types: frozenset[str]
    boolean_types: frozenset[str]
    short_circuit_operators: frozenset[str]
    operand_types: frozenset[str]
    assignment_types: frozenset[str] = frozenset()


def node_text(node: "TSNode") -> str:
    raw = node.text
    if raw is None:
        return ""
    return raw.decode("utf-8", errors="replace")


def _operator_of(node: "TSNode") -> str | None:
    op = node.child_by_field_name("operator")
    if op is not None:
        return node_text(op)
    return None


def compute_complexity(root: "TSNode", rules: ComplexityRules) -> ComplexityMetrics:
    """Compute cyclomatic, cognitive and Halstead metrics for a subtree."""
    cyclomatic = 1
    cognitive = 0
    operators: set[str] = set()
    operands: set[str] = set()
    total_operators = 0
    total_operands = 0

    # Iterative pre-order walk; deep trees must not hit the recursion limit
    stack: list[tuple["TSNode", int]] = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        node_type = node.type

        if node_type in rules.branch_types:
            cyclomatic += 1
            cognitive += max(1, depth)

        op = _operator_of(node)
        if op is not None:
            if node_type in rules.boolean_types and op in rules.short_circuit_operators:
                cyclomatic += 1
                cognitive += max(1, depth)
            operators.add(op)
            total_operators += 1
        elif node_type in rules.assignment_types:
            operators.add("=")
            total_operators += 1

        if node_type in rules.operand_types:
            operands.add(node_text(node))
            total_operands += 1
            # Literals like strings have token children that are not operands
            continue

        child_depth = depth + 1 if node_type in rules.nesting_types else depth
        for child in reversed(node.children):
            stack.append((child, child_depth))

    return ComplexityMetrics(
        cyclomatic=cyclomatic,
        cognitive=cognitive,
        halstead=halstead_metrics(
            distinct_operators=len(operators),
            distinct_operands=len(operands),
            total_operators=total_operators,
            total_operands=total_operands,
        ),
    )


def halstead_metrics(
    distinct_operators: int,
    distinct_operands: int,
    total_operators: int,
    total_operands: int,
) -> HalsteadMetrics:
    vocabulary = distinct_operators + distinct_operands
    length = total_operators + total_operands
    if distinct_operators > 0 and distinct_operands > 0:
        difficulty = (distinct_operators / 2) * (total_operands / distinct_operands)
    else:
        difficulty = 0.0
    return HalsteadMetrics(
        vocabulary=vocabulary,
        length=length,
        difficulty=difficulty,
        effort=difficulty * length,
    )
