"""Tests for the chunk graph linker: context, cross-references, similarity, flattening."""

import itertools

import pytest

from chunkgraph.core.config.indexing_config import IndexingConfig
from chunkgraph.core.models.chunk import ChunkForest
from chunkgraph.core.types.common import ChunkKind, CrossReferenceRelation
from chunkgraph.interfaces.file_classifier import FileClassification
from chunkgraph.parsers.symbol_extractor import SymbolExtractor
from chunkgraph.services.embedding_service import EmbeddingService
from chunkgraph.services.graph_linker import (
    PROJECT_OVERVIEW_ID,
    ChunkGraphLinker,
    derive_ancestors,
    enrich_content,
    identify_layer,
)
from chunkgraph.services.hierarchy_builder import ChunkHierarchyBuilder
from chunkgraph.services.similarity import SimilarityIndex, SimilarityItem, similarity
from tests.fixtures.fake_providers import FakeDependencyGraph, FakeEmbeddingProvider

SERVICE_SOURCE = """\
from app.repo import fetch_user


class UserService:
    def __init__(self, db):
        self.db = db

    def load(self, user_id):
        return fetch_user(self.db, user_id)

    def save(self, user):
        self.db.write(user)
"""

REPO_SOURCE = """\
def fetch_user(db, user_id):
    return db.get(user_id)


def store_user(db, user):
    db.put(user.id, user)
"""


def _forest(classification: FileClassification | None = None) -> ChunkForest:
    extractor = SymbolExtractor()
    builder = ChunkHierarchyBuilder()
    forest = ChunkForest()
    for path, source in (("app/service.py", SERVICE_SOURCE), ("app/repo.py", REPO_SOURCE)):
        extraction = extractor.extract_file(path, source)
        forest.add(builder.build_hierarchy(path, extraction, source, classification))
    return forest


@pytest.fixture
def forest() -> ChunkForest:
    return _forest()


@pytest.fixture
def graph() -> FakeDependencyGraph:
    return FakeDependencyGraph(
        nodes_by_file={
            "app/service.py": ["app/service.py::UserService.load"],
            "app/repo.py": ["app/repo.py::fetch_user"],
        },
        edges=[("app/service.py::UserService.load", "app/repo.py::fetch_user")],
    )


LOAD_ID = "method::app/service.py::UserService::load"
FETCH_ID = "function::app/repo.py::fetch_user"


class TestStructuralContext:
    def test_ancestors_siblings_descendants(self, forest):
        contexts = ChunkGraphLinker.structural_context(forest)

        load = contexts[LOAD_ID]
        assert load.ancestors == ["file::app/service.py", "class::app/service.py::UserService"]
        assert "method::app/service.py::UserService::save" in load.siblings
        assert LOAD_ID not in load.siblings

        file_ctx = contexts["file::app/service.py"]
        assert file_ctx.ancestors == []
        assert LOAD_ID in file_ctx.descendants


class TestCrossReferences:
    def test_dependency_edges_become_cross_references(self, forest, graph):
        refs = ChunkGraphLinker().cross_references(forest, graph)

        assert [(r.target_id, r.relation) for r in refs[LOAD_ID]] == [
            (FETCH_ID, CrossReferenceRelation.DEPENDS_ON)
        ]
        assert [(r.target_id, r.relation) for r in refs[FETCH_ID]] == [
            (LOAD_ID, CrossReferenceRelation.USED_BY)
        ]
        assert refs[LOAD_ID][0].confidence == pytest.approx(0.8)

    def test_unmatched_graph_nodes_are_ignored(self, forest):
        graph = FakeDependencyGraph(
            nodes_by_file={"app/service.py": ["app/service.py::UserService.load"]},
            edges=[("app/service.py::UserService.load", "vendor/x.py::not_in_forest")],
        )

        refs = ChunkGraphLinker().cross_references(forest, graph)

        assert refs == {}

    def test_graph_is_queried_once_per_file(self, forest, graph):
        ChunkGraphLinker().cross_references(forest, graph)

        assert sorted(graph.file_lookups) == ["app/repo.py", "app/service.py"]

    def test_inbound_references_are_counted(self, forest, graph):
        contexts = ChunkGraphLinker().link(forest, graph)

        assert contexts[FETCH_ID].inbound_reference_count == 1
        assert contexts[LOAD_ID].inbound_reference_count == 0


class TestSemanticSimilarity:
    def test_similarity_is_symmetric(self, forest):
        items = [SimilarityItem.from_node(node) for node in forest.iter_nodes()]

        for a, b in itertools.combinations(items, 2):
            assert similarity(a, b) == similarity(b, a)

    def test_neighbors_are_sorted_capped_and_exclude_self(self, forest):
        index = SimilarityIndex(threshold=0.0, max_neighbors=2)

        neighbors = index.compute(forest.iter_nodes())

        for node_id, entries in neighbors.items():
            assert len(entries) <= 2
            assert all(entry.target_id != node_id for entry in entries)
            scores = [entry.similarity for entry in entries]
            assert scores == sorted(scores, reverse=True)

    def test_threshold_filters_weak_pairs(self, forest):
        index = SimilarityIndex(threshold=0.99, max_neighbors=10)

        neighbors = index.compute(forest.iter_nodes())

        assert all(entries == [] for entries in neighbors.values())

    def test_pruning_matches_exhaustive_scoring(self, forest):
        items = [SimilarityItem.from_node(node) for node in forest.iter_nodes()]
        threshold = 0.35
        expected: dict[str, list[tuple[str, float]]] = {item.id: [] for item in items}
        for a, b in itertools.combinations(items, 2):
            score = similarity(a, b)
            if score > threshold:
                expected[a.id].append((b.id, score))
                expected[b.id].append((a.id, score))
        for entries in expected.values():
            entries.sort(key=lambda e: (-e[1], e[0]))

        neighbors = SimilarityIndex(threshold=threshold, max_neighbors=10).compute(
            forest.iter_nodes()
        )

        for node_id, entries in neighbors.items():
            assert [(e.target_id, e.similarity) for e in entries] == expected[node_id][:10]


class TestFlatten:
    @pytest.mark.asyncio
    async def test_ancestor_round_trip(self, forest, graph):
        linker = ChunkGraphLinker()
        contexts = linker.link(forest, graph)

        records = await linker.flatten(forest, contexts)

        for node in forest.iter_nodes():
            hierarchy = forest.hierarchy_of(node.id)
            assert derive_ancestors(records, node.id) == hierarchy.ancestors(node.id)

    @pytest.mark.asyncio
    async def test_enrichment_is_deterministic(self, graph):
        first_forest, second_forest = _forest(), _forest()
        first_linker, second_linker = ChunkGraphLinker(), ChunkGraphLinker()

        first = await first_linker.flatten(first_forest, first_linker.link(first_forest, graph))
        second = await second_linker.flatten(
            second_forest, second_linker.link(second_forest, graph)
        )

        assert [r.content for r in first] == [r.content for r in second]
        assert [r.sparse_vector for r in first] == [r.sparse_vector for r in second]

    @pytest.mark.asyncio
    async def test_enriched_content_layout(self, forest, graph):
        linker = ChunkGraphLinker()
        contexts = linker.link(forest, graph)

        records = {r.id: r for r in await linker.flatten(forest, contexts)}

        content = records[LOAD_ID].content
        assert content.startswith(
            "// Context: file::app/service.py > class::app/service.py::UserService"
        )
        assert "// Parent: Class UserService with 3 methods and 0 properties" in content
        assert "// Summary: Method UserService.load" in content
        assert content.rstrip().endswith(f"// Related: {FETCH_ID}")
        assert content == enrich_content(forest.get(LOAD_ID), contexts[LOAD_ID], forest)

    @pytest.mark.asyncio
    async def test_record_metadata_and_vectors(self, forest, graph):
        provider = FakeEmbeddingProvider(dims=4)
        linker = ChunkGraphLinker(embedding_service=EmbeddingService(provider))

        records = {r.id: r for r in await linker.flatten(forest, linker.link(forest, graph))}

        fetch = records[FETCH_ID]
        assert fetch.chunk_type is ChunkKind.FUNCTION
        assert fetch.metadata["type"] == "function"
        assert fetch.metadata["parent_id"] == "file::app/repo.py"
        assert fetch.metadata["inbound_references"] == 1
        assert fetch.line_range == (1, 2)
        assert len(fetch.dense_vector) == 4
        assert "fetch" in fetch.sparse_vector

    @pytest.mark.asyncio
    async def test_project_overview_record(self, forest):
        linker = ChunkGraphLinker()

        records = {r.id: r for r in await linker.flatten(forest)}

        overview = records[PROJECT_OVERVIEW_ID]
        assert overview.metadata["type"] == "project_overview"
        assert overview.metadata["importance"] == 0.9
        assert "Files: 2" in overview.content
        assert "Classes: 1" in overview.content
        assert "Functions: 2" in overview.content

    @pytest.mark.asyncio
    async def test_framework_overview_for_shared_framework(self):
        forest = _forest(FileClassification(primary="flask"))
        linker = ChunkGraphLinker()

        ids = {r.id for r in await linker.flatten(forest)}

        assert "framework::flask::overview" in ids

    @pytest.mark.asyncio
    async def test_overviews_can_be_disabled(self, forest):
        linker = ChunkGraphLinker(IndexingConfig(generate_overviews=False))

        records = await linker.flatten(forest)

        assert len(records) == len(forest)
        assert all(not r.id.endswith("::overview") for r in records)

    @pytest.mark.asyncio
    async def test_layer_overview_for_repeated_layer(self):
        extractor, builder, forest = SymbolExtractor(), ChunkHierarchyBuilder(), ChunkForest()
        for path, name in (("billing.py", "BillingService"), ("orders.py", "OrderService")):
            source = f"class {name}:\n    def run(self):\n        return 1\n"
            forest.add(builder.build_hierarchy(path, extractor.extract_file(path, source), source))

        records = {r.id: r for r in await ChunkGraphLinker().flatten(forest)}

        overview = records["layer::Service::overview"]
        assert overview.metadata["type"] == "layer_overview"
        assert "Components: 2" in overview.content
        assert identify_layer(forest.get("file::billing.py")) == "Service"
