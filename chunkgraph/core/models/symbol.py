"""Language-neutral symbol table produced by the symbol extractor.

# FILE_CONTEXT: Output model of the extraction stage, input of the hierarchy builder
# CRITICAL: Everything here must stay picklable; results cross process boundaries
"""

from dataclasses import dataclass, field

from chunkgraph.core.types.common import Language, SymbolKind


@dataclass(frozen=True)
class SourceRange:
    """Zero-based byte offsets plus one-based line numbers of a syntax node."""

    start_line: int
    end_line: int
    start_col: int = 0
    end_col: int = 0
    start_byte: int = 0
    end_byte: int = 0

    def contains(self, other: "SourceRange") -> bool:
        return self.start_line <= other.start_line and other.end_line <= self.end_line


@dataclass(frozen=True)
class Parameter:
    name: str
    type: str | None = None
    default: str | None = None


@dataclass(frozen=True)
class Symbol:
    """A single named declaration found in a file."""

    name: str
    kind: SymbolKind
    source_range: SourceRange
    visibility: str | None = None
    is_static: bool = False
    is_async: bool = False
    is_abstract: bool = False
    decorators: tuple[str, ...] = ()
    super_type: str | None = None
    implemented_types: tuple[str, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    return_type: str | None = None
    parent: str | None = None


@dataclass(frozen=True)
class HalsteadMetrics:
    vocabulary: int = 0
    length: int = 0
    difficulty: float = 0.0
    effort: float = 0.0


@dataclass(frozen=True)
class ComplexityMetrics:
    """Cyclomatic, cognitive and Halstead measures for a subtree."""

    cyclomatic: int = 1
    cognitive: int = 0
    halstead: HalsteadMetrics = field(default_factory=HalsteadMetrics)

    @classmethod
    def empty(cls) -> "ComplexityMetrics":
        """Metrics reported for a file that could not be analysed."""
        return cls(cyclomatic=0, cognitive=0, halstead=HalsteadMetrics())


@dataclass
class FunctionInfo:
    """A function or method with its own complexity."""

    name: str
    source_range: SourceRange
    body_range: SourceRange | None = None
    parameters: list[Parameter] = field(default_factory=list)
    return_type: str | None = None
    decorators: list[str] = field(default_factory=list)
    annotations: list[str] = field(default_factory=list)
    visibility: str | None = None
    is_async: bool = False
    is_static: bool = False
    is_abstract: bool = False
    is_constructor: bool = False
    complexity: ComplexityMetrics = field(default_factory=ComplexityMetrics)

    def to_symbol(self, kind: SymbolKind, parent: str | None = None) -> Symbol:
        return Symbol(
            name=self.name,
            kind=kind,
            source_range=self.source_range,
            visibility=self.visibility,
            is_static=self.is_static,
            is_async=self.is_async,
            is_abstract=self.is_abstract,
            decorators=tuple(self.decorators + self.annotations),
            parameters=tuple(self.parameters),
            return_type=self.return_type,
            parent=parent,
        )


@dataclass
class ClassInfo:
    """A class, interface or enum with its members."""

    name: str
    source_range: SourceRange
    body_range: SourceRange | None = None
    methods: list[FunctionInfo] = field(default_factory=list)
    properties: list[Symbol] = field(default_factory=list)
    decorators: list[str] = field(default_factory=list)
    annotations: list[str] = field(default_factory=list)
    super_class: str | None = None
    interfaces: list[str] = field(default_factory=list)
    visibility: str | None = None
    is_interface: bool = False
    is_enum: bool = False
    is_abstract: bool = False

    @property
    def kind(self) -> SymbolKind:
        if self.is_interface:
            return SymbolKind.INTERFACE
        if self.is_enum:
            return SymbolKind.ENUM
        return SymbolKind.CLASS

    def to_symbol(self) -> Symbol:
        return Symbol(
            name=self.name,
            kind=self.kind,
            source_range=self.source_range,
            visibility=self.visibility,
            is_abstract=self.is_abstract,
            decorators=tuple(self.decorators + self.annotations),
            super_type=self.super_class,
            implemented_types=tuple(self.interfaces),
        )


@dataclass
class ImportInfo:
    module: str
    source_range: SourceRange
    names: list[str] = field(default_factory=list)
    alias: str | None = None


@dataclass
class ExportInfo:
    name: str
    source_range: SourceRange
    is_default: bool = False


@dataclass
class ExtractionResult:
    """Symbol table and metrics for one file.

    An unparseable or unsupported file still yields a valid instance with
    empty collections, zero complexity and at least one error string.
    """

    file_path: str
    language: Language
    symbols: list[Symbol] = field(default_factory=list)
    classes: list[ClassInfo] = field(default_factory=list)
    functions: list[FunctionInfo] = field(default_factory=list)
    imports: list[ImportInfo] = field(default_factory=list)
    exports: list[ExportInfo] = field(default_factory=list)
    complexity: ComplexityMetrics = field(default_factory=ComplexityMetrics)
    line_count: int = 0
    errors: list[str] = field(default_factory=list)

    @classmethod
    def failed(
        cls, file_path: str, language: Language, error: str, line_count: int = 0
    ) -> "ExtractionResult":
        return cls(
            file_path=file_path,
            language=language,
            complexity=ComplexityMetrics.empty(),
            line_count=line_count,
            errors=[error],
        )

    @property
    def is_empty(self) -> bool:
        return not (self.symbols or self.classes or self.functions or self.imports)
