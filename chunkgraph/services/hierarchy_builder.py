"""Chunk hierarchy builder: one arena of chunk nodes per source file.

# FILE_CONTEXT: Second pipeline stage, runs inside parser workers
# ROLE: Turns an ExtractionResult into file -> class -> method/property and
#       file -> function -> block nodes with importance, tags and summaries
# INVARIANTS: level(child) == level(parent) + 1; child line range lies within
#       the parent's range; every class/function yields a node even unnamed
"""

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePath

from loguru import logger

from chunkgraph.core.config.indexing_config import IndexingConfig
from chunkgraph.core.models.chunk import (
    ChunkHierarchy,
    ChunkMetadata,
    ChunkNode,
    Position,
    make_chunk_id,
)
from chunkgraph.core.models.symbol import (
    ClassInfo,
    ExtractionResult,
    FunctionInfo,
    SourceRange,
    Symbol,
)
from chunkgraph.core.types.common import AbstractionLevel, ChunkKind, Language
from chunkgraph.interfaces.file_classifier import FileClassification

_IF_RE = re.compile(r"\bif\b")
_LOOP_RE = re.compile(r"\b(for|while)\b")
_SWITCH_RE = re.compile(r"\b(switch|match)\b")
_CONTINUATION_RE = re.compile(r"^(else|elif|except|finally|case)\b|^[)\]}]")
_TEST_DIRS = {"test", "tests", "__tests__", "spec", "specs"}


def is_test_path(file_path: str, classification: FileClassification | None = None) -> bool:
    if classification is not None and (classification.tertiary or "").lower() == "test":
        return True
    path = PurePath(file_path)
    name = path.name.lower()
    if name.startswith("test_") or path.stem.lower().endswith(("_test", "tests")):
        return True
    if ".test." in name or ".spec." in name:
        return True
    return any(part.lower() in _TEST_DIRS for part in path.parts[:-1])


# Importance heuristics. Each is monotonic in the properties it inspects.


def file_importance(extraction: ExtractionResult) -> float:
    return _cap(
        len(extraction.classes) * 0.3
        + len(extraction.functions) * 0.2
        + len(extraction.imports) * 0.1
    )


def class_importance(cls: ClassInfo) -> float:
    importance = 0.5
    if cls.is_interface:
        importance += 0.2
    if cls.is_abstract:
        importance += 0.1
    if cls.annotations or cls.decorators:
        importance += 0.1
    if len(cls.methods) > 5:
        importance += 0.1
    return _cap(importance)


def function_importance(fn: FunctionInfo, complexity_threshold: int = 10) -> float:
    importance = 0.4
    if fn.complexity.cyclomatic > complexity_threshold:
        importance += 0.3
    if fn.decorators or fn.annotations:
        importance += 0.1
    if fn.is_async:
        importance += 0.05
    return _cap(importance)


def method_importance(method: FunctionInfo) -> float:
    importance = 0.5
    if method.is_constructor:
        importance += 0.4
    if method.visibility == "public":
        importance += 0.1
    if method.is_static:
        importance += 0.1
    if method.decorators or method.annotations:
        importance += 0.1
    return _cap(importance)


def property_importance(prop: Symbol) -> float:
    importance = 0.2
    if prop.visibility == "public":
        importance += 0.1
    if prop.is_static:
        importance += 0.1
    return _cap(importance)


def is_significant_property(prop: Symbol) -> bool:
    return prop.visibility == "public" or bool(prop.decorators)


def estimate_block_complexity(text: str) -> int:
    return (
        1
        + len(_IF_RE.findall(text))
        + 2 * len(_LOOP_RE.findall(text))
        + 2 * len(_SWITCH_RE.findall(text))
    )


def _cap(value: float) -> float:
    return round(min(1.0, value), 4)


@dataclass(frozen=True)
class _BlockSpan:
    """Zero-based line offsets inside a function, inclusive."""

    start: int
    end: int


class ChunkHierarchyBuilder:
    """Build per-file chunk hierarchies from extraction results."""

    def __init__(self, config: IndexingConfig | None = None) -> None:
        self._config = config or IndexingConfig()

    def build_hierarchy(
        self,
        file_path: str,
        extraction: ExtractionResult,
        source_text: str,
        classification: FileClassification | None = None,
        last_modified: datetime | None = None,
    ) -> ChunkHierarchy:
        """Build the chunk tree for one file and return its arena."""
        classification = classification or FileClassification()
        lines = source_text.splitlines()
        is_test = is_test_path(file_path, classification)
        exported = {e.name for e in extraction.exports}

        last_line = max(
            [1, len(lines), extraction.line_count]
            + [c.source_range.end_line for c in extraction.classes]
            + [f.source_range.end_line for f in extraction.functions]
        )
        root = self._build_file_node(
            file_path, extraction, classification, is_test, last_line, last_modified
        )
        hierarchy = ChunkHierarchy(root)

        for cls in extraction.classes:
            class_node = self._build_class_node(
                hierarchy, cls, extraction.language, lines, root, is_test, exported
            )
            for method in cls.methods:
                self._build_method_node(hierarchy, class_node, cls, method, lines, is_test)
            for prop in cls.properties:
                if is_significant_property(prop):
                    self._build_property_node(hierarchy, class_node, cls, prop, lines, is_test)

        for fn in extraction.functions:
            fn_node = self._build_function_node(
                hierarchy, fn, extraction.language, lines, root, is_test, exported
            )
            self._maybe_split_blocks(hierarchy, fn_node, fn, extraction.language, lines)

        logger.debug(f"[Hierarchy] {file_path}: {len(hierarchy)} chunk nodes")
        return hierarchy

    # Node constructors ---------------------------------------------------

    def _build_file_node(
        self,
        file_path: str,
        extraction: ExtractionResult,
        classification: FileClassification,
        is_test: bool,
        last_line: int,
        last_modified: datetime | None,
    ) -> ChunkNode:
        language = extraction.language
        tags = [f"lang:{language.value}"]
        if classification.primary:
            tags.append(f"framework:{classification.primary}")
        if extraction.classes:
            tags.append("has-classes")
        if extraction.functions:
            tags.append("has-functions")
        if is_test:
            tags.append("test")

        overview = self._file_overview(extraction)
        return ChunkNode(
            id=make_chunk_id(ChunkKind.FILE, file_path),
            kind=ChunkKind.FILE,
            level=0,
            name=PurePath(file_path).name,
            content=overview,
            position=Position(start_line=1, end_line=last_line),
            metadata=ChunkMetadata(
                language=language,
                file_path=file_path,
                complexity=extraction.complexity.cyclomatic,
                importance=file_importance(extraction),
                semantic_type=_semantic("file_overview", is_test),
                abstraction_level=AbstractionLevel.OVERVIEW,
                framework=classification.primary,
                dependencies=[imp.module for imp in extraction.imports if imp.module],
                exports=[e.name for e in extraction.exports],
                tags=tags,
                last_modified=last_modified,
            ),
            summary=(
                f"File {PurePath(file_path).name} with {len(extraction.classes)} classes "
                f"and {len(extraction.functions)} functions"
            ),
        )

    def _build_class_node(
        self,
        hierarchy: ChunkHierarchy,
        cls: ClassInfo,
        language: Language,
        lines: list[str],
        root: ChunkNode,
        is_test: bool,
        exported: set[str],
    ) -> ChunkNode:
        tags = ["class"]
        if cls.is_interface:
            tags.append("interface")
        if cls.is_enum:
            tags.append("enum")
        if cls.is_abstract:
            tags.append("abstract")
        if cls.annotations or cls.decorators:
            tags.append("annotated")
        if cls.name in exported:
            tags.append("exported")

        kind_label = "interface" if cls.is_interface else "enum" if cls.is_enum else "class"
        position = self._child_position(root.position, cls.source_range)
        node = ChunkNode(
            id=self._unique_id(hierarchy, ChunkKind.CLASS, root.file_path, [cls.name], position),
            kind=ChunkKind.CLASS,
            level=root.level + 1,
            name=cls.name,
            content=_slice(lines, position),
            position=position,
            metadata=ChunkMetadata(
                language=language,
                file_path=root.file_path,
                complexity=max(1, sum(m.complexity.cyclomatic for m in cls.methods)),
                importance=class_importance(cls),
                semantic_type=_semantic(kind_label, is_test),
                abstraction_level=AbstractionLevel.DETAIL,
                framework=root.metadata.framework,
                dependencies=[d for d in [cls.super_class, *cls.interfaces] if d],
                exports=[cls.name] if cls.name in exported else [],
                tags=tags,
                annotations=cls.decorators + cls.annotations,
                last_modified=root.metadata.last_modified,
            ),
            summary=(
                f"{kind_label.capitalize()} {cls.name} with {len(cls.methods)} methods "
                f"and {len(cls.properties)} properties"
            ),
        )
        return hierarchy.add_child(root.id, node)

    def _build_method_node(
        self,
        hierarchy: ChunkHierarchy,
        class_node: ChunkNode,
        cls: ClassInfo,
        method: FunctionInfo,
        lines: list[str],
        is_test: bool,
    ) -> ChunkNode:
        tags = ["method"]
        if method.is_constructor:
            tags.append("constructor")
        if method.is_static:
            tags.append("static")
        if method.is_async:
            tags.append("async")
        if method.is_abstract:
            tags.append("abstract")
        if method.visibility:
            tags.append(f"visibility:{method.visibility}")

        flags = "".join(
            label
            for enabled, label in (
                (method.is_static, " (static)"),
                (method.is_async, " (async)"),
            )
            if enabled
        )
        position = self._child_position(class_node.position, method.source_range)
        node = ChunkNode(
            id=self._unique_id(
                hierarchy, ChunkKind.METHOD, class_node.file_path, [cls.name, method.name], position
            ),
            kind=ChunkKind.METHOD,
            level=class_node.level + 1,
            name=method.name,
            content=_slice(lines, position),
            position=position,
            metadata=ChunkMetadata(
                language=class_node.metadata.language,
                file_path=class_node.file_path,
                complexity=method.complexity.cyclomatic,
                importance=method_importance(method),
                semantic_type=_semantic(
                    "constructor" if method.is_constructor else "method", is_test
                ),
                abstraction_level=AbstractionLevel.IMPLEMENTATION,
                framework=class_node.metadata.framework,
                dependencies=_signature_types(method),
                tags=tags,
                annotations=method.decorators + method.annotations,
                last_modified=class_node.metadata.last_modified,
            ),
            summary=f"Method {cls.name}.{method.name}{flags}",
        )
        return hierarchy.add_child(class_node.id, node)

    def _build_property_node(
        self,
        hierarchy: ChunkHierarchy,
        class_node: ChunkNode,
        cls: ClassInfo,
        prop: Symbol,
        lines: list[str],
        is_test: bool,
    ) -> ChunkNode:
        tags = ["property"]
        if prop.is_static:
            tags.append("static")
        if prop.visibility:
            tags.append(f"visibility:{prop.visibility}")

        position = self._child_position(class_node.position, prop.source_range)
        node = ChunkNode(
            id=self._unique_id(
                hierarchy, "property", class_node.file_path, [cls.name, prop.name], position
            ),
            kind=ChunkKind.STATEMENT,
            level=class_node.level + 1,
            name=prop.name,
            content=_slice(lines, position),
            position=position,
            metadata=ChunkMetadata(
                language=class_node.metadata.language,
                file_path=class_node.file_path,
                complexity=1,
                importance=property_importance(prop),
                semantic_type=_semantic("property", is_test),
                abstraction_level=AbstractionLevel.IMPLEMENTATION,
                framework=class_node.metadata.framework,
                tags=tags,
                annotations=list(prop.decorators),
                last_modified=class_node.metadata.last_modified,
            ),
            summary=f"Property {cls.name}.{prop.name}",
        )
        return hierarchy.add_child(class_node.id, node)

    def _build_function_node(
        self,
        hierarchy: ChunkHierarchy,
        fn: FunctionInfo,
        language: Language,
        lines: list[str],
        root: ChunkNode,
        is_test: bool,
        exported: set[str],
    ) -> ChunkNode:
        threshold = self._config.block_complexity_threshold
        tags = ["function"]
        if fn.is_async:
            tags.append("async")
        if fn.is_static:
            tags.append("static")
        if fn.complexity.cyclomatic > threshold:
            tags.append("complex")
        if fn.name in exported:
            tags.append("exported")

        position = self._child_position(root.position, fn.source_range)
        node = ChunkNode(
            id=self._unique_id(hierarchy, ChunkKind.FUNCTION, root.file_path, [fn.name], position),
            kind=ChunkKind.FUNCTION,
            level=root.level + 1,
            name=fn.name,
            content=_slice(lines, position),
            position=position,
            metadata=ChunkMetadata(
                language=language,
                file_path=root.file_path,
                complexity=fn.complexity.cyclomatic,
                importance=function_importance(fn, threshold),
                semantic_type=_semantic("function", is_test),
                abstraction_level=AbstractionLevel.DETAIL,
                framework=root.metadata.framework,
                dependencies=_signature_types(fn),
                exports=[fn.name] if fn.name in exported else [],
                tags=tags,
                annotations=fn.decorators + fn.annotations,
                last_modified=root.metadata.last_modified,
            ),
            summary=(
                f"Function {fn.name} with complexity {fn.complexity.cyclomatic}"
                f"{' (async)' if fn.is_async else ''}"
            ),
        )
        return hierarchy.add_child(root.id, node)

    # Block splitting -----------------------------------------------------

    def _maybe_split_blocks(
        self,
        hierarchy: ChunkHierarchy,
        fn_node: ChunkNode,
        fn: FunctionInfo,
        language: Language,
        lines: list[str],
    ) -> None:
        if fn.complexity.cyclomatic <= self._config.block_complexity_threshold:
            return
        if len(fn_node.content) <= self._config.block_size_threshold:
            return

        fn_lines = lines[fn_node.position.start_line - 1 : fn_node.position.end_line]
        if language.is_brace_language:
            spans = split_brace_blocks(fn_lines, self._config.block_min_chars)
        else:
            body_offset = 1
            if fn.body_range is not None:
                body_offset = max(1, fn.body_range.start_line - fn_node.position.start_line)
            spans = split_indented_blocks(fn_lines, body_offset, self._config.block_min_chars)
        if len(spans) < 2:
            return

        for index, span in enumerate(spans, start=1):
            text = "\n".join(fn_lines[span.start : span.end + 1])
            start_line = fn_node.position.start_line + span.start
            end_line = fn_node.position.start_line + span.end
            position = Position(start_line=start_line, end_line=end_line)
            block_name = f"block_{index}"
            node = ChunkNode(
                id=self._unique_id(
                    hierarchy,
                    ChunkKind.BLOCK,
                    fn_node.file_path,
                    [fn_node.name, block_name],
                    position,
                ),
                kind=ChunkKind.BLOCK,
                level=fn_node.level + 1,
                name=block_name,
                content=text,
                position=position,
                metadata=ChunkMetadata(
                    language=language,
                    file_path=fn_node.file_path,
                    complexity=estimate_block_complexity(text),
                    importance=0.3,
                    semantic_type="code_block",
                    abstraction_level=AbstractionLevel.IMPLEMENTATION,
                    framework=fn_node.metadata.framework,
                    tags=["code-block"],
                    last_modified=fn_node.metadata.last_modified,
                ),
                summary=f"Block {index} of {fn_node.name} (lines {start_line}-{end_line})",
            )
            hierarchy.add_child(fn_node.id, node)

    # Helpers -------------------------------------------------------------

    @staticmethod
    def _file_overview(extraction: ExtractionResult) -> str:
        overview = ["File Overview:"]
        if extraction.classes:
            overview.append(f"Classes: {', '.join(c.name for c in extraction.classes)}")
        if extraction.functions:
            overview.append(f"Functions: {', '.join(f.name for f in extraction.functions)}")
        if extraction.imports:
            overview.append(f"Imports: {', '.join(i.module for i in extraction.imports)}")
        if extraction.exports:
            overview.append(f"Exports: {', '.join(e.name for e in extraction.exports)}")
        overview.append(f"Complexity: {extraction.complexity.cyclomatic}")
        return "\n".join(overview)

    @staticmethod
    def _child_position(parent: Position, source: SourceRange) -> Position:
        """Clamp a symbol's range into its parent's range."""
        start = min(max(source.start_line, parent.start_line), parent.end_line)
        end = min(max(source.end_line, start), parent.end_line)
        return Position(
            start_line=start,
            end_line=end,
            start_col=source.start_col,
            end_col=source.end_col,
        )

    @staticmethod
    def _unique_id(
        hierarchy: ChunkHierarchy,
        kind: ChunkKind | str,
        file_path: str,
        names: list[str],
        position: Position,
    ) -> str:
        chunk_id = make_chunk_id(kind, file_path, *names)
        if chunk_id in hierarchy:
            chunk_id = f"{chunk_id}@{position.start_line}"
        suffix = 2
        base = chunk_id
        while chunk_id in hierarchy:
            chunk_id = f"{base}#{suffix}"
            suffix += 1
        return chunk_id


def split_brace_blocks(fn_lines: list[str], min_chars: int) -> list[_BlockSpan]:
    """Group a brace-delimited function body into top-level statement spans."""
    spans: list[_BlockSpan] = []
    depth = 0
    body_depth: int | None = None
    start: int | None = None
    size = 0

    last = len(fn_lines) - 1
    if last > 0 and fn_lines[last].strip().startswith("}"):
        last -= 1

    for offset in range(last + 1):
        line = fn_lines[offset]
        delta = line.count("{") - line.count("}")
        if body_depth is None:
            depth += delta
            if depth >= 1:
                body_depth = depth
            continue

        if start is None:
            if not line.strip():
                continue
            start = offset
            size = 0
        size += len(line.strip())
        depth += delta
        if depth <= body_depth and size > min_chars:
            spans.append(_BlockSpan(start, offset))
            start = None

    if start is not None:
        _close_trailing_span(spans, start, last, fn_lines)
    return spans


def split_indented_blocks(
    fn_lines: list[str], body_offset: int, min_chars: int
) -> list[_BlockSpan]:
    """Group an indentation-delimited function body into top-level statement spans."""
    spans: list[_BlockSpan] = []
    base_indent: int | None = None
    start: int | None = None
    size = 0
    prev_nonblank = body_offset - 1

    for offset in range(body_offset, len(fn_lines)):
        line = fn_lines[offset]
        stripped = line.strip()
        if not stripped:
            continue
        indent = len(line) - len(line.lstrip())
        if base_indent is None:
            base_indent = indent

        starts_statement = indent <= base_indent and not _CONTINUATION_RE.match(stripped)
        if starts_statement and start is not None and size > min_chars:
            spans.append(_BlockSpan(start, prev_nonblank))
            start = None
        if start is None:
            start = offset
            size = 0
        size += len(stripped)
        prev_nonblank = offset

    if start is not None:
        _close_trailing_span(spans, start, prev_nonblank, fn_lines)
    return spans


def _close_trailing_span(
    spans: list[_BlockSpan], start: int, end: int, fn_lines: list[str]
) -> None:
    """Emit the leftover span, folding it into the previous block when trivial."""
    text = "".join(line.strip() for line in fn_lines[start : end + 1]).strip("{} ;")
    if not text:
        return
    if spans and len(text) < 20:
        spans[-1] = _BlockSpan(spans[-1].start, end)
        return
    spans.append(_BlockSpan(start, end))


def _semantic(base: str, is_test: bool) -> str:
    return f"test_{base}" if is_test else base


def _slice(lines: list[str], position: Position) -> str:
    return "\n".join(lines[position.start_line - 1 : position.end_line])


def _signature_types(fn: FunctionInfo) -> list[str]:
    deps = [p.type for p in fn.parameters if p.type]
    if fn.return_type:
        deps.append(fn.return_type)
    return deps
