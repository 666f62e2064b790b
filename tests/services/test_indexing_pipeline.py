"""End-to-end tests for the indexing pipeline over a temporary source tree."""

from pathlib import Path

import pytest

from chunkgraph.core.config.indexing_config import IndexingConfig
from chunkgraph.services.embedding_service import EmbeddingService
from chunkgraph.services.graph_linker import PROJECT_OVERVIEW_ID
from chunkgraph.services.indexing_pipeline import (
    IndexingPipeline,
    calculate_worker_count,
    matches_any,
)
from tests.fixtures.fake_providers import FakeEmbeddingProvider

MODELS = """\
class User:
    def __init__(self, name):
        self.name = name

    def display(self):
        return self.name.title()
"""

SERVICE = """\
from pkg.models import User


def make_user(name):
    return User(name)
"""

BROKEN = "))))((((\n}}}}{{{{\n@@@@ $$$$"


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "models.py").write_text(MODELS)
    (tmp_path / "pkg" / "service.py").write_text(SERVICE)
    (tmp_path / "pkg" / "broken.py").write_text(BROKEN)
    (tmp_path / "pkg" / "notes.txt").write_text("not code")
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)
    (tmp_path / "node_modules" / "lib" / "index.js").write_text("function f() {}\n")
    (tmp_path / "big.py").write_text("x = 1\n" * 400)
    return tmp_path


def _relative(paths: list[Path], root: Path) -> list[str]:
    return [p.relative_to(root.resolve()).as_posix() for p in paths]


class TestDiscovery:
    def test_filters_by_extension_exclude_and_size(self, project):
        pipeline = IndexingPipeline(IndexingConfig(max_file_size_kb=1))

        files = pipeline.discover_files(project)

        assert _relative(files, project) == [
            "pkg/broken.py",
            "pkg/models.py",
            "pkg/service.py",
        ]

    def test_include_patterns(self, project):
        pipeline = IndexingPipeline(IndexingConfig(include_patterns=["pkg/models.py"]))

        assert _relative(pipeline.discover_files(project), project) == ["pkg/models.py"]

    @pytest.mark.parametrize(
        "path,patterns,expected",
        [
            ("node_modules/", ["**/node_modules/**"], True),
            ("a/node_modules/x.js", ["**/node_modules/**"], True),
            ("src/app.py", ["**/*.py"], True),
            ("app.py", ["**/*.py"], True),
            ("src/app.ts", ["**/*.py"], False),
        ],
    )
    def test_matches_any(self, path, patterns, expected):
        assert matches_any(path, patterns) is expected


class TestWorkerCount:
    def test_scales_with_workload(self):
        assert calculate_worker_count(3, 32) == 3
        assert calculate_worker_count(50, 32) == 4
        assert calculate_worker_count(500, 32) == 8
        assert calculate_worker_count(5000, 32) == 16
        assert calculate_worker_count(5000, 2) == 2
        assert calculate_worker_count(0, 8) == 1


class TestIndexing:
    @pytest.mark.asyncio
    async def test_broken_file_is_reported_and_others_indexed(self, project):
        provider = FakeEmbeddingProvider(dims=4)
        pipeline = IndexingPipeline(
            IndexingConfig(max_workers=1, max_file_size_kb=1),
            embedding_service=EmbeddingService(provider),
        )

        result = await pipeline.index_directory(project)

        assert [e["file"] for e in result.errors] == ["pkg/broken.py"]
        assert result.errors[0]["status"] == "error"
        assert result.errors[0]["error"]
        assert result.stats["files_discovered"] == 3
        assert result.stats["files_indexed"] == 2
        assert result.stats["files_failed"] == 1
        assert result.stats["total_records"] == len(result.records)

        ids = {record.id for record in result.records}
        assert "class::pkg/models.py::User" in ids
        assert "method::pkg/models.py::User::display" in ids
        assert "function::pkg/service.py::make_user" in ids
        assert PROJECT_OVERVIEW_ID in ids
        assert all(len(record.dense_vector) == 4 for record in result.records)
        assert provider.calls

    @pytest.mark.asyncio
    async def test_records_carry_modification_time(self, project):
        pipeline = IndexingPipeline(IndexingConfig(max_workers=1, max_file_size_kb=1))

        result = await pipeline.index_directory(project)

        user = next(r for r in result.records if r.id == "class::pkg/models.py::User")
        assert user.metadata["last_modified"] is not None
        assert user.dense_vector == []

    @pytest.mark.asyncio
    async def test_process_pool_matches_inline(self, project):
        inline = await IndexingPipeline(
            IndexingConfig(max_workers=1, max_file_size_kb=1)
        ).index_directory(project)
        pooled = await IndexingPipeline(
            IndexingConfig(max_workers=2, max_file_size_kb=1)
        ).index_directory(project)

        assert sorted(r.id for r in pooled.records) == sorted(r.id for r in inline.records)
        assert [r.content for r in sorted(pooled.records, key=lambda r: r.id)] == [
            r.content for r in sorted(inline.records, key=lambda r: r.id)
        ]

    @pytest.mark.asyncio
    async def test_empty_file_list(self, tmp_path):
        result = await IndexingPipeline().index_files([], tmp_path)

        assert result.records == []
        assert result.stats == {"files_discovered": 0, "files_indexed": 0, "total_records": 0}
