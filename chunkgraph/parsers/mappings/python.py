"""Python symbol extraction strategy.

Handles:
- Class definitions, with base classes, decorators and ABC/Protocol/Enum detection
- Function and method definitions, including async and decorated forms
- Class-level attribute assignments as properties
- ``import`` and ``from ... import`` statements
- ``__all__`` as the module export list
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

_ENUM_BASES = {"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"}
_INTERFACE_BASES = {"Protocol"}
_ABSTRACT_MARKERS = {"ABC", "ABCMeta", "abc.ABC", "abc.ABCMeta"}


def python_visibility(name: str) -> str:
    if name.startswith("__") and name.endswith("__"):
        return "public"
    if name.startswith("__"):
        return "private"
    if name.startswith("_"):
        return "protected"
    return "public"


class PythonStrategy(SymbolExtractorStrategy):
    """Python-specific symbol extraction."""

    complexity_rules = ComplexityRules(
        branch_types=frozenset(
            {
                "if_statement",
                "elif_clause",
                "for_statement",
                "while_statement",
                "except_clause",
                "match_statement",
            }
        ),
        nesting_types=frozenset(
            {
                "if_statement",
                "for_statement",
                "while_statement",
                "function_definition",
                "match_statement",
            }
        ),
        boolean_types=frozenset({"boolean_operator"}),
        short_circuit_operators=frozenset({"and", "or"}),
        operand_types=frozenset(
            {"identifier", "integer", "float", "string", "true", "false", "none"}
        ),
        assignment_types=frozenset({"assignment"}),
    )
    constructor_names = frozenset({"__init__"})

    def __init__(self) -> None:
        super().__init__(Language.PYTHON)

    def classify_node(self, node: "TSNode") -> NodeRole | None:
        node_type = node.type
        if node_type == "decorated_definition":
            inner = node.child_by_field_name("definition")
            if inner is None:
                return None
            if inner.type == "class_definition":
                return NodeRole.CLASS
            if inner.type == "function_definition":
                return NodeRole.FUNCTION
            return None
        if node_type == "class_definition":
            return NodeRole.CLASS
        if node_type == "function_definition":
            return NodeRole.FUNCTION
        if node_type in ("import_statement", "import_from_statement"):
            return NodeRole.IMPORT
        if node_type == "expression_statement" and self._all_assignment(node) is not None:
            return NodeRole.EXPORT
        return None

    # Decorators -----------------------------------------------------------

    def _unwrap(self, node: "TSNode") -> tuple["TSNode", list[str]]:
        """Split a decorated definition into (definition, decorator names)."""
        if node.type != "decorated_definition":
            return node, []
        decorators = [
            self._decorator_name(child)
            for child in node.children
            if child.type == "decorator"
        ]
        inner = node.child_by_field_name("definition")
        return (inner if inner is not None else node), decorators

    def _decorator_name(self, decorator: "TSNode") -> str:
        text = self.node_text(decorator).strip().lstrip("@").strip()
        return text.split("(", 1)[0].strip()

    # Classes --------------------------------------------------------------

    def extract_class(self, node: "TSNode") -> ClassInfo:
        definition, decorators = self._unwrap(node)
        name = self.name_of(definition)

        bases: list[str] = []
        metaclass: str | None = None
        superclasses = definition.child_by_field_name("superclasses")
        if superclasses is not None:
            for arg in superclasses.named_children:
                if arg.type == "keyword_argument":
                    if self.field_text(arg, "name") == "metaclass":
                        metaclass = self.field_text(arg, "value")
                    continue
                bases.append(self.node_text(arg).strip())

        generic_bases = [b.split("[", 1)[0] for b in bases]
        is_enum = any(b.rsplit(".", 1)[-1] in _ENUM_BASES for b in generic_bases)
        is_interface = any(b.rsplit(".", 1)[-1] in _INTERFACE_BASES for b in generic_bases)
        is_abstract = metaclass in _ABSTRACT_MARKERS or any(
            b in _ABSTRACT_MARKERS for b in generic_bases
        )

        methods: list[FunctionInfo] = []
        properties: list[Symbol] = []
        body = definition.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                inner, _ = self._unwrap(member)
                if inner.type == "function_definition":
                    methods.append(self._extract_callable(member, in_class=True))
                elif member.type == "expression_statement":
                    properties.extend(self._class_attributes(member, name))

        if any(m.is_abstract for m in methods):
            is_abstract = True

        return ClassInfo(
            name=name,
            source_range=self.source_range(node),
            body_range=self.source_range(body) if body is not None else None,
            methods=methods,
            properties=properties,
            decorators=decorators,
            super_class=bases[0] if bases else None,
            interfaces=bases[1:],
            visibility=python_visibility(name),
            is_interface=is_interface,
            is_enum=is_enum,
            is_abstract=is_abstract,
        )

    def _class_attributes(self, statement: "TSNode", class_name: str) -> list[Symbol]:
        props: list[Symbol] = []
        for child in statement.named_children:
            if child.type != "assignment":
                continue
            left = child.child_by_field_name("left")
            if left is None or left.type != "identifier":
                continue
            prop_name = self.node_text(left)
            props.append(
                Symbol(
                    name=prop_name,
                    kind=SymbolKind.PROPERTY,
                    source_range=self.source_range(statement),
                    visibility=python_visibility(prop_name),
                    # Class attributes are shared by all instances
                    is_static=True,
                    parent=class_name,
                )
            )
        return props

    # Functions ------------------------------------------------------------

    def extract_function(self, node: "TSNode") -> FunctionInfo:
        return self._extract_callable(node, in_class=False)

    def _extract_callable(self, node: "TSNode", in_class: bool) -> FunctionInfo:
        definition, decorators = self._unwrap(node)
        name = self.name_of(definition)
        return self.build_function(
            definition,
            name=name,
            outer=node,
            parameters=self._parameters(definition),
            return_type=self.field_text(definition, "return_type"),
            decorators=decorators,
            visibility=python_visibility(name),
            is_async=self.has_token(definition, "async"),
            is_static=in_class and "staticmethod" in decorators,
            is_abstract=any(d.rsplit(".", 1)[-1] == "abstractmethod" for d in decorators),
        )

    def _parameters(self, definition: "TSNode") -> list[Parameter]:
        params_node = definition.child_by_field_name("parameters")
        if params_node is None:
            return []
        params: list[Parameter] = []
        for param in params_node.named_children:
            ptype = param.type
            if ptype == "identifier":
                params.append(Parameter(name=self.node_text(param)))
            elif ptype == "typed_parameter":
                ident = next(
                    (c for c in param.named_children if c.type == "identifier"), None
                )
                params.append(
                    Parameter(
                        name=self.node_text(ident) if ident else self.node_text(param),
                        type=self.field_text(param, "type"),
                    )
                )
            elif ptype in ("default_parameter", "typed_default_parameter"):
                params.append(
                    Parameter(
                        name=self.field_text(param, "name") or self.get_fallback_name(),
                        type=self.field_text(param, "type"),
                        default=self.field_text(param, "value"),
                    )
                )
            elif ptype in ("list_splat_pattern", "dictionary_splat_pattern"):
                params.append(Parameter(name=self.node_text(param)))
        return params

    # Imports / exports ----------------------------------------------------

    def extract_imports(self, node: "TSNode") -> list[ImportInfo]:
        srange = self.source_range(node)
        if node.type == "import_from_statement":
            module = self.field_text(node, "module_name") or ""
            names = [
                self.node_text(child).strip()
                for child in node.children_by_field_name("name")
            ]
            return [ImportInfo(module=module, source_range=srange, names=names)]

        imports: list[ImportInfo] = []
        for child in node.named_children:
            if child.type == "dotted_name":
                imports.append(ImportInfo(module=self.node_text(child), source_range=srange))
            elif child.type == "aliased_import":
                imports.append(
                    ImportInfo(
                        module=self.field_text(child, "name") or "",
                        source_range=srange,
                        alias=self.field_text(child, "alias"),
                    )
                )
        return imports

    def _all_assignment(self, statement: "TSNode") -> "TSNode | None":
        for child in statement.named_children:
            if child.type == "assignment" and self.field_text(child, "left") == "__all__":
                return child
        return None

    def extract_exports(self, node: "TSNode") -> list[ExportInfo]:
        assignment = self._all_assignment(node)
        if assignment is None:
            return []
        right = assignment.child_by_field_name("right")
        if right is None:
            return []
        srange = self.source_range(node)
        return [
            ExportInfo(name=self.strip_quotes(self.node_text(item)), source_range=srange)
            for item in right.named_children
            if item.type == "string"
        ]
