"""Tests for chunk hierarchy construction."""

import pytest

from chunkgraph.core.config.indexing_config import IndexingConfig
from chunkgraph.core.models.symbol import (
    ClassInfo,
    ComplexityMetrics,
    ExtractionResult,
    FunctionInfo,
    SourceRange,
)
from chunkgraph.core.types.common import AbstractionLevel, ChunkKind, Language
from chunkgraph.interfaces.file_classifier import FileClassification
from chunkgraph.parsers.symbol_extractor import SymbolExtractor
from chunkgraph.services.hierarchy_builder import (
    ChunkHierarchyBuilder,
    class_importance,
    function_importance,
    is_test_path,
    method_importance,
    split_brace_blocks,
    split_indented_blocks,
)

CLASS_SOURCE = """\
class Account:
    def __init__(self, owner):
        self.owner = owner
        self.balance = 0

    def deposit(self, amount):
        self.balance += amount
        return self.balance

    def withdraw(self, amount):
        if amount > self.balance:
            raise ValueError("insufficient funds")
        self.balance -= amount
        return self.balance
"""


def _branchy_function(branches: int) -> str:
    lines = ["def crunch(items):", "    total = 0"]
    for i in range(branches):
        lines.append(f"    if items[{i}] > {i}:")
        lines.append(f"        total += items[{i}] * {i} + len(str(items[{i}]))")
        lines.append(f"        total -= {i}")
    lines.append("    return total")
    return "\n".join(lines) + "\n"


def _build(path: str, source: str, **kwargs):
    extraction = SymbolExtractor().extract_file(path, source)
    builder = ChunkHierarchyBuilder(kwargs.pop("config", None))
    return builder.build_hierarchy(path, extraction, source, **kwargs)


class TestClassScenario:
    @pytest.fixture
    def hierarchy(self):
        return _build("bank/account.py", CLASS_SOURCE)

    def test_one_class_one_constructor_two_methods(self, hierarchy):
        nodes = list(hierarchy.iter_nodes())
        classes = [n for n in nodes if n.kind is ChunkKind.CLASS]
        methods = [n for n in nodes if n.kind is ChunkKind.METHOD]

        assert len(classes) == 1
        assert classes[0].metadata.importance >= 0.5

        constructors = [m for m in methods if m.metadata.semantic_type == "constructor"]
        regular = [m for m in methods if m.metadata.semantic_type == "method"]
        assert len(constructors) == 1
        assert constructors[0].metadata.importance >= 0.9
        assert constructors[0].metadata.importance <= 1.0
        assert len(regular) == 2

    def test_ids_follow_kind_path_name(self, hierarchy):
        assert hierarchy.root.id == "file::bank/account.py"
        assert "class::bank/account.py::Account" in hierarchy
        assert "method::bank/account.py::Account::deposit" in hierarchy

    def test_levels_increase_by_one(self, hierarchy):
        for node in hierarchy.iter_nodes():
            if node.parent_id is None:
                assert node.level == 0
                continue
            parent = hierarchy.get(node.parent_id)
            assert node.level == parent.level + 1

    def test_children_lie_within_parent(self, hierarchy):
        for node in hierarchy.iter_nodes():
            if node.parent_id is None:
                continue
            parent = hierarchy.get(node.parent_id)
            assert parent.position.contains(node.position)
            assert node.id in parent.children

    def test_file_overview(self, hierarchy):
        root = hierarchy.root
        assert root.kind is ChunkKind.FILE
        assert root.metadata.abstraction_level is AbstractionLevel.OVERVIEW
        assert root.content.startswith("File Overview:")
        assert "Account" in root.content
        assert "has-classes" in root.metadata.tags
        assert root.summary == "File account.py with 1 classes and 0 functions"

    def test_method_content_is_source_slice(self, hierarchy):
        deposit = hierarchy.get("method::bank/account.py::Account::deposit")
        assert deposit.content.lstrip().startswith("def deposit")
        assert deposit.summary == "Method Account.deposit"
        assert deposit.metadata.abstraction_level is AbstractionLevel.IMPLEMENTATION


class TestFunctionsAndBlocks:
    def test_simple_function_is_not_split(self):
        hierarchy = _build("util.py", "def add(a, b):\n    return a + b\n")

        fn = hierarchy.get("function::util.py::add")
        assert fn is not None
        assert fn.children == []
        assert fn.summary == "Function add with complexity 1"

    def test_complex_function_is_split_into_blocks(self):
        config = IndexingConfig(
            block_complexity_threshold=3, block_size_threshold=100, block_min_chars=10
        )
        hierarchy = _build("crunch.py", _branchy_function(6), config=config)

        fn = hierarchy.get("function::crunch.py::crunch")
        blocks = [hierarchy.get(child) for child in fn.children]
        assert len(blocks) >= 2
        for block in blocks:
            assert block.kind is ChunkKind.BLOCK
            assert block.level == fn.level + 1
            assert fn.position.contains(block.position)
            assert block.metadata.semantic_type == "code_block"
            assert "code-block" in block.metadata.tags

    def test_test_files_get_test_semantic_types(self):
        hierarchy = _build("tests/test_util.py", "def test_add():\n    assert 1 + 1 == 2\n")

        fn = hierarchy.get("function::tests/test_util.py::test_add")
        assert fn.metadata.semantic_type == "test_function"
        assert "test" in hierarchy.root.metadata.tags

    def test_classification_sets_framework(self):
        classification = FileClassification(primary="django", confidence=0.9)
        hierarchy = _build(
            "app/views.py", "def index(request):\n    return None\n", classification=classification
        )

        assert hierarchy.root.metadata.framework == "django"
        assert "framework:django" in hierarchy.root.metadata.tags
        fn = hierarchy.get("function::app/views.py::index")
        assert fn.metadata.framework == "django"

    def test_failed_extraction_still_yields_file_node(self):
        extraction = ExtractionResult.failed("bad.py", Language.PYTHON, "Unparseable source")
        hierarchy = ChunkHierarchyBuilder().build_hierarchy("bad.py", extraction, "((((")

        assert len(hierarchy) == 1
        assert hierarchy.root.kind is ChunkKind.FILE


class TestImportanceHeuristics:
    def _fn(self, **kwargs) -> FunctionInfo:
        return FunctionInfo(name="f", source_range=SourceRange(1, 2), **kwargs)

    def test_constructor_importance_is_capped(self):
        method = self._fn(
            is_constructor=True, visibility="public", is_static=True, decorators=["x"]
        )
        assert method_importance(method) == 1.0

    def test_plain_method_importance(self):
        assert method_importance(self._fn()) == 0.5

    def test_function_importance_grows_with_complexity(self):
        simple = self._fn(complexity=ComplexityMetrics(cyclomatic=2))
        complex_ = self._fn(complexity=ComplexityMetrics(cyclomatic=12))
        assert function_importance(simple) == 0.4
        assert function_importance(complex_) == pytest.approx(0.7)

    def test_interface_outranks_plain_class(self):
        plain = ClassInfo(name="A", source_range=SourceRange(1, 2))
        interface = ClassInfo(name="B", source_range=SourceRange(1, 2), is_interface=True)
        assert class_importance(plain) == 0.5
        assert class_importance(interface) > class_importance(plain)

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("tests/test_a.py", True),
            ("src/a.test.ts", True),
            ("src/widget_test.py", True),
            ("src/__tests__/x.js", True),
            ("src/contest.py", False),
            ("src/app.py", False),
        ],
    )
    def test_is_test_path(self, path, expected):
        assert is_test_path(path) is expected


class TestBlockSplitters:
    def test_brace_blocks_cover_top_level_statements(self):
        lines = [
            "function f(a) {",
            "  const x = compute(a, a * 2, a * 3);",
            "  if (x > 10) {",
            "    return x - 10 + someOtherCall(x);",
            "  }",
            "  return x + anotherHelperCall(a, x);",
            "}",
        ]
        spans = split_brace_blocks(lines, min_chars=10)

        assert spans
        assert spans[0].start >= 1
        assert spans[-1].end <= len(lines) - 1
        for earlier, later in zip(spans, spans[1:]):
            assert earlier.end < later.start

    def test_indented_blocks_are_ordered_and_disjoint(self):
        source = _branchy_function(4).splitlines()
        spans = split_indented_blocks(source, body_offset=1, min_chars=10)

        assert spans
        for earlier, later in zip(spans, spans[1:]):
            assert earlier.end < later.start
