"""Symbol extraction over tree-sitter syntax trees.

# FILE_CONTEXT: First pipeline stage; turns one parsed file into a symbol table
# ROLE: Walks the tree once, delegating declaration nodes to the strategy
#       registered for the file's language, then computes file complexity
# ERROR_POLICY: Never raises. Malformed nodes become error strings; unsupported
#       or unparseable files yield an empty result with one explanatory error
"""

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from chunkgraph.core.models.symbol import ExtractionResult, Symbol
from chunkgraph.core.types.common import Language, SymbolKind
from chunkgraph.parsers.complexity import compute_complexity
from chunkgraph.parsers.mappings import NodeRole, SymbolExtractorStrategy, get_strategy
from chunkgraph.parsers.parser_factory import create_parser_for_language

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode
    from tree_sitter import Parser, Tree


class SymbolExtractor:
    """Extract language-neutral symbols and complexity metrics from source files."""

    def __init__(
        self,
        parser_factory: Callable[[Language], "Parser | None"] = create_parser_for_language,
        strategy_lookup: Callable[[Language], SymbolExtractorStrategy | None] = get_strategy,
    ) -> None:
        self._parser_factory = parser_factory
        self._strategy_lookup = strategy_lookup

    def extract_file(
        self,
        file_path: str | Path,
        source_text: str,
        language: Language | None = None,
    ) -> ExtractionResult:
        """Detect language, parse and extract a single file."""
        path = str(file_path)
        line_count = len(source_text.splitlines())
        language = language or Language.from_file_extension(path)
        if not language.is_supported:
            suffix = Path(path).suffix or "<none>"
            return ExtractionResult.failed(
                path, language, f"Unsupported file type: {suffix}", line_count
            )

        parser = self._parser_factory(language)
        if parser is None:
            return ExtractionResult.failed(
                path, language, f"No parser available for {language.value}", line_count
            )

        try:
            tree = parser.parse(source_text.encode("utf-8"))
        except Exception as e:
            logger.debug(f"[Extract] Parser failed on {path}: {e}")
            return ExtractionResult.failed(
                path, language, f"Failed to parse {path}: {e}", line_count
            )

        return self.extract(tree, source_text, language, file_path=path)

    def extract(
        self,
        tree: "Tree",
        source_text: str,
        language: Language,
        file_path: str = "<memory>",
    ) -> ExtractionResult:
        """Extract symbols from an already parsed tree."""
        line_count = len(source_text.splitlines())
        strategy = self._strategy_lookup(language)
        if strategy is None:
            return ExtractionResult.failed(
                file_path,
                language,
                f"Unsupported language: {language.value}",
                line_count,
            )

        try:
            return self._extract_with_strategy(
                tree, strategy, language, file_path, line_count
            )
        except Exception as e:
            logger.warning(f"[Extract] Extraction aborted for {file_path}: {e}")
            return ExtractionResult.failed(
                file_path, language, f"Extraction failed for {file_path}: {e}", line_count
            )

    def _extract_with_strategy(
        self,
        tree: "Tree",
        strategy: SymbolExtractorStrategy,
        language: Language,
        file_path: str,
        line_count: int,
    ) -> ExtractionResult:
        root = tree.root_node
        if root.type == "ERROR":
            return ExtractionResult.failed(
                file_path, language, f"Unparseable source: {file_path}", line_count
            )

        result = ExtractionResult(
            file_path=file_path, language=language, line_count=line_count
        )
        syntax_errors: list[str] = []

        stack: list["TSNode"] = list(reversed(root.children))
        while stack:
            node = stack.pop()

            if node.type == "ERROR" or node.is_missing:
                syntax_errors.append(
                    f"syntax error at line {node.start_point[0] + 1}: "
                    f"{'missing' if node.is_missing else 'unexpected'} {node.type}"
                )
                stack.extend(reversed(node.children))
                continue

            descend = self._visit(node, strategy, result)
            if descend:
                stack.extend(reversed(node.children))

        if syntax_errors and not (result.classes or result.functions or result.imports):
            first = syntax_errors[0]
            logger.debug(f"[Extract] {file_path} is unparseable ({len(syntax_errors)} errors)")
            return ExtractionResult.failed(
                file_path,
                language,
                f"Unparseable source: {len(syntax_errors)} syntax error(s), first {first}",
                line_count,
            )

        result.errors.extend(syntax_errors)
        result.complexity = compute_complexity(root, strategy.complexity_rules)
        logger.debug(
            f"[Extract] {file_path}: {len(result.classes)} classes, "
            f"{len(result.functions)} functions, {len(result.imports)} imports, "
            f"cyclomatic={result.complexity.cyclomatic}"
        )
        return result

    def _visit(
        self,
        node: "TSNode",
        strategy: SymbolExtractorStrategy,
        result: ExtractionResult,
    ) -> bool:
        """Handle one node. Returns True when its children should be traversed."""
        try:
            role = strategy.classify_node(node)
            if role is None:
                return True

            if role is NodeRole.CLASS:
                cls = strategy.extract_class(node)
                result.classes.append(cls)
                result.symbols.append(cls.to_symbol())
                for method in cls.methods:
                    result.symbols.append(method.to_symbol(SymbolKind.METHOD, parent=cls.name))
                result.symbols.extend(cls.properties)
                return False

            if role is NodeRole.FUNCTION:
                fn = strategy.extract_function(node)
                result.functions.append(fn)
                result.symbols.append(fn.to_symbol(SymbolKind.FUNCTION))
                return False

            if role is NodeRole.IMPORT:
                for imp in strategy.extract_imports(node):
                    result.imports.append(imp)
                    result.symbols.append(
                        Symbol(name=imp.module, kind=SymbolKind.IMPORT, source_range=imp.source_range)
                    )
                return False

            if role is NodeRole.EXPORT:
                for exp in strategy.extract_exports(node):
                    result.exports.append(exp)
                    result.symbols.append(
                        Symbol(name=exp.name, kind=SymbolKind.EXPORT, source_range=exp.source_range)
                    )
                # Exported declarations are nested inside the export node
                return True
        except Exception as e:
            message = f"{node.type} at line {node.start_point[0] + 1}: {e}"
            logger.debug(f"[Extract] Skipping malformed node in {result.file_path}: {message}")
            result.errors.append(message)
            return True

        return True
