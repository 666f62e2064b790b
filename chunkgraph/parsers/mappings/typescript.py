"""TypeScript symbol extraction strategy.

Extends the JavaScript strategy with interfaces, enums, abstract classes,
accessibility modifiers and type annotations.
"""

from typing import TYPE_CHECKING

from chunkgraph.core.models.symbol import ClassInfo, FunctionInfo, Symbol
from chunkgraph.core.types.common import Language, SymbolKind
from chunkgraph.parsers.mappings.base import NodeRole
from chunkgraph.parsers.mappings.javascript import JavaScriptStrategy

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode


class TypeScriptStrategy(JavaScriptStrategy):
    """TypeScript-specific symbol extraction."""

    class_types = frozenset(
        {
            "class_declaration",
            "class",
            "abstract_class_declaration",
            "interface_declaration",
            "enum_declaration",
        }
    )
    function_types = frozenset(
        {"function_declaration", "generator_function_declaration", "function_signature"}
    )
    method_types = frozenset(
        {"method_definition", "abstract_method_signature", "method_signature"}
    )
    field_types = frozenset(
        {"public_field_definition", "field_definition", "property_signature"}
    )

    def __init__(self, language: Language = Language.TYPESCRIPT) -> None:
        super().__init__(language)

    def classify_node(self, node: "TSNode") -> NodeRole | None:
        if node.type in ("interface_declaration", "enum_declaration"):
            return NodeRole.CLASS
        return super().classify_node(node)

    def extract_class(self, node: "TSNode") -> ClassInfo:
        if node.type == "interface_declaration":
            return self._extract_interface(node)
        if node.type == "enum_declaration":
            return self._extract_enum(node)
        return super().extract_class(node)

    def _extract_interface(self, node: "TSNode") -> ClassInfo:
        name = self.name_of(node)
        extends = next(
            (c for c in node.named_children if c.type == "extends_type_clause"), None
        )
        parents = (
            [self.node_text(t).strip() for t in extends.named_children] if extends else []
        )

        methods: list[FunctionInfo] = []
        properties: list[Symbol] = []
        body = node.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                if member.type in self.method_types:
                    method = self._extract_method(member, [])
                    method.is_abstract = True
                    methods.append(method)
                elif member.type in self.field_types:
                    properties.append(self._extract_field(member, name, []))

        return ClassInfo(
            name=name,
            source_range=self.source_range(node),
            body_range=self.source_range(body) if body is not None else None,
            methods=methods,
            properties=properties,
            super_class=parents[0] if parents else None,
            interfaces=parents[1:],
            visibility="public",
            is_interface=True,
            is_abstract=True,
        )

    def _extract_enum(self, node: "TSNode") -> ClassInfo:
        name = self.name_of(node)
        properties: list[Symbol] = []
        body = node.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                if member.type in ("property_identifier", "enum_assignment"):
                    member_name = (
                        self.field_text(member, "name")
                        if member.type == "enum_assignment"
                        else self.node_text(member)
                    )
                    properties.append(
                        Symbol(
                            name=member_name or self.get_fallback_name(member),
                            kind=SymbolKind.PROPERTY,
                            source_range=self.source_range(member),
                            visibility="public",
                            is_static=True,
                            parent=name,
                        )
                    )
        return ClassInfo(
            name=name,
            source_range=self.source_range(node),
            body_range=self.source_range(body) if body is not None else None,
            properties=properties,
            visibility="public",
            is_enum=True,
        )
