"""Java symbol extraction strategy.

Java has no free functions: every method lives in a type declaration, so
this strategy only reports classes, interfaces, enums, records and imports.
Modifiers and annotations are read from the ``modifiers`` child.
"""

from typing import TYPE_CHECKING

from chunkgraph.core.models.symbol import (
    ClassInfo,
    FunctionInfo,
    ImportInfo,
    Parameter,
    Symbol,
)
from chunkgraph.core.types.common import Language, SymbolKind
from chunkgraph.parsers.complexity import ComplexityRules
from chunkgraph.parsers.mappings.base import NodeRole, SymbolExtractorStrategy

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

_TYPE_DECLARATIONS = frozenset(
    {
        "class_declaration",
        "interface_declaration",
        "enum_declaration",
        "record_declaration",
    }
)
_VISIBILITY = ("public", "protected", "private")


class JavaStrategy(SymbolExtractorStrategy):
    """Java-specific symbol extraction."""

    complexity_rules = ComplexityRules(
        branch_types=frozenset(
            {
                "if_statement",
                "for_statement",
                "enhanced_for_statement",
                "while_statement",
                "do_statement",
                "switch_expression",
                "switch_statement",
                "catch_clause",
            }
        ),
        nesting_types=frozenset(
            {
                "if_statement",
                "for_statement",
                "enhanced_for_statement",
                "while_statement",
                "do_statement",
                "method_declaration",
                "constructor_declaration",
                "lambda_expression",
            }
        ),
        boolean_types=frozenset({"binary_expression"}),
        short_circuit_operators=frozenset({"&&", "||"}),
        operand_types=frozenset(
            {
                "identifier",
                "type_identifier",
                "decimal_integer_literal",
                "decimal_floating_point_literal",
                "string_literal",
                "character_literal",
                "true",
                "false",
                "null_literal",
                "this",
            }
        ),
        assignment_types=frozenset({"variable_declarator"}),
    )

    def __init__(self) -> None:
        super().__init__(Language.JAVA)

    def classify_node(self, node: "TSNode") -> NodeRole | None:
        if node.type in _TYPE_DECLARATIONS:
            return NodeRole.CLASS
        if node.type == "import_declaration":
            return NodeRole.IMPORT
        return None

    # Modifiers ------------------------------------------------------------

    def _modifiers(self, node: "TSNode") -> tuple[set[str], list[str]]:
        """Return (keyword modifiers, annotation names) of a declaration."""
        modifiers = next((c for c in node.children if c.type == "modifiers"), None)
        if modifiers is None:
            return set(), []
        keywords: set[str] = set()
        annotations: list[str] = []
        for child in modifiers.children:
            if child.type in ("marker_annotation", "annotation"):
                annotations.append(self.field_text(child, "name") or self.node_text(child))
            else:
                keywords.add(self.node_text(child).strip())
        return keywords, annotations

    @staticmethod
    def _visibility(keywords: set[str], default: str = "package") -> str:
        for level in _VISIBILITY:
            if level in keywords:
                return level
        return default

    # Types ----------------------------------------------------------------

    def extract_class(self, node: "TSNode") -> ClassInfo:
        name = self.name_of(node)
        keywords, annotations = self._modifiers(node)
        is_interface = node.type == "interface_declaration"
        is_enum = node.type == "enum_declaration"

        super_class = None
        superclass = node.child_by_field_name("superclass")
        if superclass is not None and superclass.named_children:
            super_class = self.node_text(superclass.named_children[0]).strip()

        interfaces: list[str] = []
        interface_clause = node.child_by_field_name("interfaces") or next(
            (c for c in node.named_children if c.type == "extends_interfaces"), None
        )
        if interface_clause is not None:
            for type_list in interface_clause.named_children:
                interfaces.extend(
                    self.node_text(t).strip() for t in type_list.named_children
                )
        if is_interface and interfaces and super_class is None:
            super_class, interfaces = interfaces[0], interfaces[1:]

        methods: list[FunctionInfo] = []
        properties: list[Symbol] = []
        body = node.child_by_field_name("body")
        if body is not None:
            for member in self._members(body):
                if member.type in ("method_declaration", "constructor_declaration"):
                    methods.append(self._extract_method(member, is_interface))
                elif member.type in ("field_declaration", "constant_declaration"):
                    properties.extend(self._extract_fields(member, name, is_interface))
                elif member.type == "enum_constant":
                    properties.append(
                        Symbol(
                            name=self.name_of(member),
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
            methods=methods,
            properties=properties,
            annotations=annotations,
            super_class=super_class,
            interfaces=interfaces,
            visibility=self._visibility(keywords),
            is_interface=is_interface,
            is_enum=is_enum,
            is_abstract=is_interface or "abstract" in keywords,
        )

    def _members(self, body: "TSNode") -> list["TSNode"]:
        members: list["TSNode"] = []
        for child in body.named_children:
            if child.type == "enum_body_declarations":
                members.extend(child.named_children)
            else:
                members.append(child)
        return members

    def _extract_method(self, member: "TSNode", in_interface: bool) -> FunctionInfo:
        keywords, annotations = self._modifiers(member)
        has_body = member.child_by_field_name("body") is not None
        method = self.build_function(
            member,
            name=self.name_of(member),
            parameters=self._parameters(member),
            return_type=self.field_text(member, "type"),
            annotations=annotations,
            visibility=self._visibility(
                keywords, default="public" if in_interface else "package"
            ),
            is_static="static" in keywords,
            is_abstract="abstract" in keywords or (in_interface and not has_body),
        )
        method.is_constructor = member.type == "constructor_declaration"
        return method

    def _parameters(self, member: "TSNode") -> list[Parameter]:
        params_node = member.child_by_field_name("parameters")
        if params_node is None:
            return []
        params: list[Parameter] = []
        for param in params_node.named_children:
            if param.type == "formal_parameter":
                params.append(
                    Parameter(
                        name=self.name_of(param),
                        type=self.field_text(param, "type"),
                    )
                )
            elif param.type == "spread_parameter":
                params.append(Parameter(name=self.node_text(param)))
        return params

    def _extract_fields(
        self, member: "TSNode", class_name: str, in_interface: bool
    ) -> list[Symbol]:
        keywords, annotations = self._modifiers(member)
        fields: list[Symbol] = []
        for declarator in member.children_by_field_name("declarator"):
            fields.append(
                Symbol(
                    name=self.name_of(declarator),
                    kind=SymbolKind.PROPERTY,
                    source_range=self.source_range(member),
                    visibility=self._visibility(
                        keywords, default="public" if in_interface else "package"
                    ),
                    is_static="static" in keywords or in_interface,
                    decorators=tuple(annotations),
                    parent=class_name,
                )
            )
        return fields

    # Functions / imports --------------------------------------------------

    def extract_function(self, node: "TSNode") -> FunctionInfo:
        raise ValueError("Java has no top-level functions")

    def extract_imports(self, node: "TSNode") -> list[ImportInfo]:
        target = next(
            (
                c
                for c in node.named_children
                if c.type in ("scoped_identifier", "identifier")
            ),
            None,
        )
        module = self.node_text(target).strip() if target is not None else ""
        names = ["*"] if any(c.type == "asterisk" for c in node.children) else []
        if not names and module:
            names = [module.rsplit(".", 1)[-1]]
        return [ImportInfo(module=module, source_range=self.source_range(node), names=names)]
