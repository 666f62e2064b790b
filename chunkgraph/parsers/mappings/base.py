"""Base strategy for language-specific symbol extraction.

Each supported language provides one ``SymbolExtractorStrategy`` subclass
that owns its node-type-to-symbol mapping. The symbol extractor walks the
syntax tree and hands every declaration node to the strategy registered for
the file's language.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

from chunkgraph.core.models.symbol import (
    ClassInfo,
    ExportInfo,
    FunctionInfo,
    ImportInfo,
    Parameter,
    SourceRange,
)
from chunkgraph.core.types.common import Language
from chunkgraph.parsers.complexity import ComplexityRules, compute_complexity, node_text

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

ANONYMOUS = "anonymous"


class NodeRole(Enum):
    """What the extractor should do with a top-level syntax node."""

    CLASS = "class"
    FUNCTION = "function"
    IMPORT = "import"
    EXPORT = "export"


class SymbolExtractorStrategy(ABC):
    """Language-specific mapping from syntax nodes to symbol-table entries."""

    complexity_rules: ComplexityRules
    constructor_names: frozenset[str] = frozenset()

    def __init__(self, language: Language) -> None:
        self.language = language

    # Dispatch -----------------------------------------------------------

    @abstractmethod
    def classify_node(self, node: "TSNode") -> NodeRole | None:
        """Return the role of ``node`` or None when it is not a declaration."""

    # Extraction ---------------------------------------------------------

    @abstractmethod
    def extract_class(self, node: "TSNode") -> ClassInfo:
        """Build a ClassInfo, including methods and properties."""

    @abstractmethod
    def extract_function(self, node: "TSNode") -> FunctionInfo:
        """Build a FunctionInfo for a top-level function declaration."""

    @abstractmethod
    def extract_imports(self, node: "TSNode") -> list[ImportInfo]:
        """Build ImportInfo entries from an import declaration."""

    def extract_exports(self, node: "TSNode") -> list[ExportInfo]:
        return []

    # Shared helpers -----------------------------------------------------

    def node_text(self, node: "TSNode | None") -> str:
        if node is None:
            return ""
        return node_text(node)

    def get_fallback_name(self, node: "TSNode | None" = None) -> str:
        return ANONYMOUS

    def field_text(self, node: "TSNode", field_name: str) -> str | None:
        child = node.child_by_field_name(field_name)
        if child is None:
            return None
        text = self.node_text(child).strip()
        return text or None

    def name_of(self, node: "TSNode", field_name: str = "name") -> str:
        return self.field_text(node, field_name) or self.get_fallback_name(node)

    def source_range(self, node: "TSNode") -> SourceRange:
        return SourceRange(
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            start_col=node.start_point[1],
            end_col=node.end_point[1],
            start_byte=node.start_byte,
            end_byte=node.end_byte,
        )

    def has_token(self, node: "TSNode", token: str) -> bool:
        """True when ``node`` has a direct anonymous child token ``token``."""
        return any(
            not child.is_named and child.type == token for child in node.children
        )

    def complexity_of(self, node: "TSNode"):
        return compute_complexity(node, self.complexity_rules)

    def build_function(
        self,
        node: "TSNode",
        *,
        name: str,
        outer: "TSNode | None" = None,
        parameters: list[Parameter] | None = None,
        return_type: str | None = None,
        decorators: list[str] | None = None,
        annotations: list[str] | None = None,
        visibility: str | None = None,
        is_async: bool = False,
        is_static: bool = False,
        is_abstract: bool = False,
    ) -> FunctionInfo:
        """Assemble a FunctionInfo; ``outer`` is a wrapping node such as a decorator list."""
        body = node.child_by_field_name("body")
        return FunctionInfo(
            name=name,
            source_range=self.source_range(outer or node),
            body_range=self.source_range(body) if body is not None else None,
            parameters=parameters or [],
            return_type=return_type,
            decorators=decorators or [],
            annotations=annotations or [],
            visibility=visibility,
            is_async=is_async,
            is_static=is_static,
            is_abstract=is_abstract,
            is_constructor=name in self.constructor_names,
            complexity=self.complexity_of(node),
        )

    @staticmethod
    def strip_quotes(text: str) -> str:
        return text.strip().strip("'\"`")
