"""Common enums shared across the chunk graph pipeline."""

from enum import Enum
from pathlib import Path


class Language(Enum):
    """Source languages understood by the symbol extractor."""

    PYTHON = "python"
    JAVASCRIPT = "javascript"
    JSX = "jsx"
    TYPESCRIPT = "typescript"
    TSX = "tsx"
    JAVA = "java"
    UNKNOWN = "unknown"

    @classmethod
    def from_file_extension(cls, file_path: str | Path) -> "Language":
        """Detect language from a file path's extension."""
        suffix = Path(file_path).suffix.lower()
        return _EXTENSION_MAP.get(suffix, cls.UNKNOWN)

    @classmethod
    def get_all_extensions(cls) -> set[str]:
        return set(_EXTENSION_MAP.keys())

    @property
    def is_brace_language(self) -> bool:
        """True when block structure is delimited by braces rather than indentation."""
        return self not in (Language.PYTHON, Language.UNKNOWN)

    @property
    def is_supported(self) -> bool:
        return self is not Language.UNKNOWN


_EXTENSION_MAP: dict[str, Language] = {
    ".py": Language.PYTHON,
    ".pyi": Language.PYTHON,
    ".js": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
    ".jsx": Language.JSX,
    ".ts": Language.TYPESCRIPT,
    ".mts": Language.TYPESCRIPT,
    ".cts": Language.TYPESCRIPT,
    ".tsx": Language.TSX,
    ".java": Language.JAVA,
}


class SymbolKind(Enum):
    """Kinds of symbols produced by the extractor."""

    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    PROPERTY = "property"
    INTERFACE = "interface"
    ENUM = "enum"
    IMPORT = "import"
    EXPORT = "export"


class ChunkKind(Enum):
    """Kinds of chunk nodes in a file hierarchy."""

    FILE = "file"
    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    BLOCK = "block"
    STATEMENT = "statement"

    @property
    def is_code(self) -> bool:
        return self is not ChunkKind.FILE


class AbstractionLevel(Enum):
    OVERVIEW = "overview"
    DETAIL = "detail"
    IMPLEMENTATION = "implementation"


class CrossReferenceRelation(Enum):
    DEPENDS_ON = "depends_on"
    USED_BY = "used_by"


class SignalSource(Enum):
    """Where a ranking signal's evidence comes from."""

    METADATA = "metadata"
    ANALYSIS = "analysis"
    CONTEXT = "context"
    USER_BEHAVIOR = "user_behavior"
    EXTERNAL = "external"


class FilterAction(Enum):
    BOOST = "boost"
    DEMOTE = "demote"
    EXCLUDE = "exclude"
    REQUIRE = "require"


class FilterOperator(Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IN = "in"
    RANGE = "range"
    EXISTS = "exists"
    REGEX = "regex"
    NOT = "not"


class UserRole(Enum):
    DEVELOPER = "developer"
    ARCHITECT = "architect"
    QA = "qa"
    DEVOPS = "devops"
    MANAGER = "manager"


class InteractionAction(Enum):
    CLICK = "click"
    COPY = "copy"
    BOOKMARK = "bookmark"
    DISMISS = "dismiss"
    RATE = "rate"
