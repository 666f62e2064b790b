"""Tree-sitter parser construction per language.

# FILE_CONTEXT: Grammar/parser provider seam
# CRITICAL: Parser objects are not picklable; build them inside worker processes
"""

from collections.abc import Callable
from functools import lru_cache
from typing import Any

import tree_sitter_java as tsjava
import tree_sitter_javascript as tsjavascript
import tree_sitter_python as tspython
import tree_sitter_typescript as tstypescript
from loguru import logger
from tree_sitter import Language as TSLanguage
from tree_sitter import Parser

from chunkgraph.core.types.common import Language

_GRAMMARS: dict[Language, Callable[[], Any]] = {
    Language.PYTHON: tspython.language,
    Language.JAVASCRIPT: tsjavascript.language,
    Language.JSX: tsjavascript.language,
    Language.TYPESCRIPT: tstypescript.language_typescript,
    Language.TSX: tstypescript.language_tsx,
    Language.JAVA: tsjava.language,
}


@lru_cache(maxsize=None)
def get_ts_language(language: Language) -> TSLanguage | None:
    grammar = _GRAMMARS.get(language)
    if grammar is None:
        return None
    return TSLanguage(grammar())


def create_parser_for_language(language: Language) -> Parser | None:
    """Create a fresh tree-sitter parser, or None when no grammar is available."""
    ts_language = get_ts_language(language)
    if ts_language is None:
        logger.debug(f"No tree-sitter grammar registered for {language.value}")
        return None
    return Parser(ts_language)


def available_languages() -> list[Language]:
    return list(_GRAMMARS)
