"""JavaScript symbol extraction strategy.

Handles:
- Class declarations and class expressions with ``extends`` heritage
- Methods (static, async, getters/setters, ``#private`` names) and fields
- Function declarations and ``const f = () => ...`` style function values
- ES module ``import`` and ``export`` statements
- Decorators on classes and members
"""

from typing import TYPE_CHECKING

from chunkgraph.core.models.symbol import (
    ClassInfo,
    ExportInfo,
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

FUNCTION_VALUE_TYPES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)

JS_COMPLEXITY_RULES = ComplexityRules(
    branch_types=frozenset(
        {
            "if_statement",
            "for_statement",
            "for_in_statement",
            "while_statement",
            "do_statement",
            "switch_statement",
            "catch_clause",
        }
    ),
    nesting_types=frozenset(
        {
            "if_statement",
            "for_statement",
            "for_in_statement",
            "while_statement",
            "do_statement",
            "function_declaration",
            "generator_function_declaration",
            "function_expression",
            "function",
            "arrow_function",
            "method_definition",
        }
    ),
    boolean_types=frozenset({"binary_expression"}),
    short_circuit_operators=frozenset({"&&", "||"}),
    operand_types=frozenset(
        {
            "identifier",
            "property_identifier",
            "shorthand_property_identifier",
            "number",
            "string",
            "template_string",
            "true",
            "false",
            "null",
            "undefined",
            "this",
        }
    ),
    assignment_types=frozenset({"assignment_expression", "variable_declarator"}),
)


class JavaScriptStrategy(SymbolExtractorStrategy):
    """JavaScript-specific symbol extraction."""

    complexity_rules = JS_COMPLEXITY_RULES
    constructor_names = frozenset({"constructor"})

    class_types = frozenset({"class_declaration", "class"})
    function_types = frozenset(
        {"function_declaration", "generator_function_declaration"}
    )
    method_types = frozenset({"method_definition"})
    field_types = frozenset({"field_definition"})

    def __init__(self, language: Language = Language.JAVASCRIPT) -> None:
        super().__init__(language)

    def classify_node(self, node: "TSNode") -> NodeRole | None:
        node_type = node.type
        if node_type in self.class_types:
            return NodeRole.CLASS
        if node_type in self.function_types:
            return NodeRole.FUNCTION
        if node_type in ("lexical_declaration", "variable_declaration"):
            if self._function_declarator(node) is not None:
                return NodeRole.FUNCTION
            return None
        if node_type == "import_statement":
            return NodeRole.IMPORT
        if node_type == "export_statement":
            return NodeRole.EXPORT
        return None

    # Helpers ------------------------------------------------------------

    def _decorators(self, node: "TSNode") -> list[str]:
        nodes = [c for c in node.children if c.type == "decorator"]
        parent = node.parent
        if parent is not None and parent.type == "export_statement":
            nodes = [c for c in parent.children if c.type == "decorator"] + nodes
        names = []
        for decorator in nodes:
            text = self.node_text(decorator).strip().lstrip("@").strip()
            names.append(text.split("(", 1)[0].strip())
        return names

    def _visibility(self, member: "TSNode", name: str) -> str:
        for child in member.children:
            if child.type == "accessibility_modifier":
                return self.node_text(child).strip()
        if name.startswith("#"):
            return "private"
        return "public"

    def _function_declarator(self, declaration: "TSNode") -> "TSNode | None":
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            value = declarator.child_by_field_name("value")
            if value is not None and value.type in FUNCTION_VALUE_TYPES:
                return declarator
        return None

    def _return_type(self, node: "TSNode") -> str | None:
        text = self.field_text(node, "return_type")
        if text is None:
            return None
        return text.lstrip(":").strip() or None

    def _parameters(self, node: "TSNode") -> list[Parameter]:
        params_node = node.child_by_field_name("parameters")
        if params_node is None:
            single = node.child_by_field_name("parameter")
            return [Parameter(name=self.node_text(single))] if single is not None else []
        params: list[Parameter] = []
        for param in params_node.named_children:
            ptype = param.type
            if ptype == "identifier":
                params.append(Parameter(name=self.node_text(param)))
            elif ptype == "assignment_pattern":
                params.append(
                    Parameter(
                        name=self.field_text(param, "left") or self.get_fallback_name(),
                        default=self.field_text(param, "right"),
                    )
                )
            elif ptype in ("required_parameter", "optional_parameter"):
                type_text = self.field_text(param, "type")
                params.append(
                    Parameter(
                        name=self.field_text(param, "pattern") or self.get_fallback_name(),
                        type=type_text.lstrip(":").strip() if type_text else None,
                        default=self.field_text(param, "value"),
                    )
                )
            elif ptype in ("rest_pattern", "object_pattern", "array_pattern"):
                params.append(Parameter(name=self.node_text(param)))
        return params

    def _heritage(self, node: "TSNode") -> tuple[str | None, list[str]]:
        """Return (superclass, implemented types) from a class heritage clause."""
        heritage = next((c for c in node.children if c.type == "class_heritage"), None)
        if heritage is None:
            return None, []
        extends_clause = next(
            (c for c in heritage.named_children if c.type == "extends_clause"), None
        )
        implements_clause = next(
            (c for c in heritage.named_children if c.type == "implements_clause"), None
        )
        if extends_clause is None and implements_clause is None:
            # Plain JavaScript: class_heritage is `extends <expression>`
            expr = heritage.named_children[0] if heritage.named_children else None
            return (self.node_text(expr).strip() or None) if expr else None, []
        super_class = None
        if extends_clause is not None:
            value = extends_clause.child_by_field_name("value")
            target = value if value is not None else (
                extends_clause.named_children[0] if extends_clause.named_children else None
            )
            super_class = self.node_text(target).strip() or None if target else None
        interfaces: list[str] = []
        if implements_clause is not None:
            interfaces = [
                self.node_text(t).strip() for t in implements_clause.named_children
            ]
        return super_class, interfaces

    # Classes --------------------------------------------------------------

    def extract_class(self, node: "TSNode") -> ClassInfo:
        name = self.name_of(node)
        super_class, interfaces = self._heritage(node)
        decorators = self._decorators(node)

        methods: list[FunctionInfo] = []
        properties: list[Symbol] = []
        body = node.child_by_field_name("body")
        if body is not None:
            pending_decorators: list[str] = []
            for member in body.named_children:
                if member.type == "decorator":
                    text = self.node_text(member).strip().lstrip("@")
                    pending_decorators.append(text.split("(", 1)[0].strip())
                    continue
                if member.type in self.method_types:
                    methods.append(self._extract_method(member, pending_decorators))
                elif member.type in self.field_types:
                    properties.append(self._extract_field(member, name, pending_decorators))
                pending_decorators = []

        return ClassInfo(
            name=name,
            source_range=self.source_range(node),
            body_range=self.source_range(body) if body is not None else None,
            methods=methods,
            properties=properties,
            decorators=decorators,
            super_class=super_class,
            interfaces=interfaces,
            visibility="public",
            is_abstract=self.has_token(node, "abstract")
            or node.type == "abstract_class_declaration",
        )

    def _extract_method(self, member: "TSNode", leading: list[str]) -> FunctionInfo:
        name = self.name_of(member)
        decorators = leading + self._decorators(member)
        return self.build_function(
            member,
            name=name,
            parameters=self._parameters(member),
            return_type=self._return_type(member),
            decorators=decorators,
            visibility=self._visibility(member, name),
            is_async=self.has_token(member, "async"),
            is_static=self.has_token(member, "static"),
            is_abstract=self.has_token(member, "abstract")
            or member.type == "abstract_method_signature",
        )

    def _extract_field(self, member: "TSNode", class_name: str, leading: list[str]) -> Symbol:
        name = (
            self.field_text(member, "property")
            or self.field_text(member, "name")
            or self.get_fallback_name(member)
        )
        return Symbol(
            name=name,
            kind=SymbolKind.PROPERTY,
            source_range=self.source_range(member),
            visibility=self._visibility(member, name),
            is_static=self.has_token(member, "static"),
            decorators=tuple(leading + self._decorators(member)),
            parent=class_name,
        )

    # Functions ------------------------------------------------------------

    def extract_function(self, node: "TSNode") -> FunctionInfo:
        if node.type in ("lexical_declaration", "variable_declaration"):
            declarator = self._function_declarator(node)
            if declarator is None:
                raise ValueError("declaration does not hold a function value")
            value = declarator.child_by_field_name("value")
            return self.build_function(
                value,
                name=self.name_of(declarator),
                outer=node,
                parameters=self._parameters(value),
                return_type=self._return_type(value),
                visibility="public",
                is_async=self.has_token(value, "async"),
            )
        return self.build_function(
            node,
            name=self.name_of(node),
            parameters=self._parameters(node),
            return_type=self._return_type(node),
            decorators=self._decorators(node),
            visibility="public",
            is_async=self.has_token(node, "async"),
        )

    # Imports / exports ----------------------------------------------------

    def extract_imports(self, node: "TSNode") -> list[ImportInfo]:
        source = self.field_text(node, "source")
        module = self.strip_quotes(source) if source else ""
        names: list[str] = []
        alias = None
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        if clause is not None:
            for part in clause.named_children:
                if part.type == "identifier":
                    names.append(self.node_text(part))
                elif part.type == "namespace_import":
                    ident = next(
                        (c for c in part.named_children if c.type == "identifier"), None
                    )
                    alias = self.node_text(ident) if ident else None
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type == "import_specifier":
                            spec_name = self.field_text(spec, "name")
                            if spec_name:
                                names.append(spec_name)
        return [
            ImportInfo(
                module=module,
                source_range=self.source_range(node),
                names=names,
                alias=alias,
            )
        ]

    def extract_exports(self, node: "TSNode") -> list[ExportInfo]:
        srange = self.source_range(node)
        is_default = self.has_token(node, "default")
        exports: list[ExportInfo] = []

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            if declaration.type in ("lexical_declaration", "variable_declaration"):
                for declarator in declaration.named_children:
                    if declarator.type == "variable_declarator":
                        exports.append(
                            ExportInfo(self.name_of(declarator), srange, is_default)
                        )
            else:
                exports.append(ExportInfo(self.name_of(declaration), srange, is_default))
            return exports

        clause = next((c for c in node.named_children if c.type == "export_clause"), None)
        if clause is not None:
            for spec in clause.named_children:
                if spec.type == "export_specifier":
                    exports.append(ExportInfo(self.name_of(spec), srange, is_default))
            return exports

        value = node.child_by_field_name("value")
        if value is not None:
            label = self.node_text(value).strip() if value.type == "identifier" else "default"
            exports.append(ExportInfo(label, srange, True))
        return exports
