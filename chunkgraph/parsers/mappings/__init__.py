"""Registry of per-language symbol extraction strategies."""

from chunkgraph.core.types.common import Language
from chunkgraph.parsers.mappings.base import (
    ANONYMOUS,
    NodeRole,
    SymbolExtractorStrategy,
)
from chunkgraph.parsers.mappings.java import JavaStrategy
from chunkgraph.parsers.mappings.javascript import JavaScriptStrategy
from chunkgraph.parsers.mappings.python import PythonStrategy
from chunkgraph.parsers.mappings.typescript import TypeScriptStrategy

_STRATEGIES: dict[Language, SymbolExtractorStrategy] = {
    Language.PYTHON: PythonStrategy(),
    Language.JAVASCRIPT: JavaScriptStrategy(Language.JAVASCRIPT),
    Language.JSX: JavaScriptStrategy(Language.JSX),
    Language.TYPESCRIPT: TypeScriptStrategy(Language.TYPESCRIPT),
    Language.TSX: TypeScriptStrategy(Language.TSX),
    Language.JAVA: JavaStrategy(),
}


def get_strategy(language: Language) -> SymbolExtractorStrategy | None:
    return _STRATEGIES.get(language)


def register_strategy(strategy: SymbolExtractorStrategy) -> None:
    """Register or replace the strategy for ``strategy.language``."""
    _STRATEGIES[strategy.language] = strategy


def supported_languages() -> list[Language]:
    return list(_STRATEGIES)


__all__ = [
    "ANONYMOUS",
    "JavaScriptStrategy",
    "JavaStrategy",
    "NodeRole",
    "PythonStrategy",
    "SymbolExtractorStrategy",
    "TypeScriptStrategy",
    "get_strategy",
    "register_strategy",
    "supported_languages",
]
