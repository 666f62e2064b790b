"""Chunk graph linker: project-wide context and flattening into index records.

# FILE_CONTEXT: Runs after the parse barrier, once every hierarchy exists
# ROLE: Derives structural context, cross-references and semantic neighbors
#       per chunk node, then flattens the forest into ChunkRecords with
#       context-enriched content, BM25 sparse vectors and dense embeddings
# CORRESPONDENCE: Chunk nodes and dependency-graph nodes are matched by
#       trailing identifier only. This is approximate: common names can
#       over-match and renamed symbols under-match. See DESIGN.md.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence

from loguru import logger

from chunkgraph.core.config.indexing_config import IndexingConfig
from chunkgraph.core.models.chunk import (
    ChunkForest,
    ChunkGraphContext,
    ChunkNode,
    ChunkRecord,
    CrossReference,
    trailing_identifier,
)
from chunkgraph.core.types.common import AbstractionLevel, ChunkKind, CrossReferenceRelation
from chunkgraph.interfaces.dependency_graph import DependencyGraphProvider
from chunkgraph.services.embedding_service import EmbeddingService
from chunkgraph.services.similarity import SimilarityIndex
from chunkgraph.utils.sparse_vectors import SparseVectorizer

PROJECT_OVERVIEW_ID = "project::overview"
OVERVIEW_LANGUAGE = "overview"
_LAYER_KEYWORDS = (
    ("Controller", ("controller",), True),
    ("Service", ("service",), True),
    ("Repository", ("repository",), True),
    ("Model", ("model", "entity"), False),
    ("Component", ("component",), True),
)
_RELATED_LIMIT = 3


def enrich_content(
    node: ChunkNode, context: ChunkGraphContext, forest: ChunkForest
) -> str:
    """Context-enriched content of ``node``. Deterministic for a given context."""
    lines: list[str] = []
    if context.ancestors:
        lines.append(f"// Context: {' > '.join(context.ancestors)}")
    parent = forest.get(node.parent_id) if node.parent_id else None
    if parent is not None and parent.summary:
        lines.append(f"// Parent: {parent.summary}")
    if node.summary:
        lines.append(f"// Summary: {node.summary}")
    lines.append(node.content)

    related = [ref.target_id for ref in context.cross_references[:_RELATED_LIMIT]]
    if not related:
        related = [n.target_id for n in context.semantic_neighbors[:_RELATED_LIMIT]]
    if related:
        lines.append(f"// Related: {', '.join(related)}")
    return "\n".join(lines)


def derive_ancestors(records: Iterable[ChunkRecord], record_id: str) -> list[str]:
    """Re-derive a record's ancestor ids (root first) from ``metadata['parent_id']``."""
    by_id = {record.id: record for record in records}
    chain: list[str] = []
    seen = {record_id}
    current = by_id[record_id].parent_id
    while current is not None and current not in seen:
        chain.append(current)
        seen.add(current)
        parent = by_id.get(current)
        current = parent.parent_id if parent is not None else None
    chain.reverse()
    return chain


def identify_layer(node: ChunkNode) -> str | None:
    """Architectural layer of a file root, detected from content and tags."""
    content = node.content.lower()
    tags = " ".join(node.metadata.tags).lower()
    for layer, keywords, check_tags in _LAYER_KEYWORDS:
        for keyword in keywords:
            if keyword in content or (check_tags and keyword in tags):
                return layer
    return None


class ChunkGraphLinker:
    """Link chunk hierarchies into a graph and flatten them into records."""

    def __init__(
        self,
        config: IndexingConfig | None = None,
        embedding_service: EmbeddingService | None = None,
        vectorizer: SparseVectorizer | None = None,
    ):
        self._config = config or IndexingConfig()
        self._embedding_service = embedding_service
        self._vectorizer = vectorizer or SparseVectorizer(
            k1=self._config.bm25_k1, b=self._config.bm25_b
        )

    @property
    def vectorizer(self) -> SparseVectorizer:
        return self._vectorizer

    # Linking -------------------------------------------------------------

    def link(
        self, forest: ChunkForest, dependency_graph: DependencyGraphProvider | None = None
    ) -> dict[str, ChunkGraphContext]:
        """Compute a ChunkGraphContext for every node of ``forest``."""
        contexts = self.structural_context(forest)

        if dependency_graph is not None:
            for node_id, refs in self.cross_references(forest, dependency_graph).items():
                contexts[node_id].cross_references = refs

        similarity = SimilarityIndex(
            threshold=self._config.similarity_threshold,
            max_neighbors=self._config.max_semantic_neighbors,
            parallel_min_nodes=self._config.parallel_similarity_min_nodes,
            max_workers=self._config.max_workers or None,
        )
        for node_id, neighbors in similarity.compute(forest.iter_nodes()).items():
            contexts[node_id].semantic_neighbors = neighbors

        ref_count = sum(len(c.cross_references) for c in contexts.values())
        neighbor_count = sum(len(c.semantic_neighbors) for c in contexts.values())
        logger.info(
            f"[Link] Linked {len(contexts)} nodes: {ref_count} cross-references, "
            f"{neighbor_count} semantic neighbors"
        )
        return contexts

    @staticmethod
    def structural_context(forest: ChunkForest) -> dict[str, ChunkGraphContext]:
        contexts: dict[str, ChunkGraphContext] = {}
        for hierarchy in forest.hierarchies:
            for node in hierarchy.iter_nodes():
                contexts[node.id] = ChunkGraphContext(
                    ancestors=hierarchy.ancestors(node.id),
                    siblings=hierarchy.siblings(node.id),
                    descendants=hierarchy.descendants(node.id),
                )
        return contexts

    def cross_references(
        self, forest: ChunkForest, dependency_graph: DependencyGraphProvider
    ) -> dict[str, list[CrossReference]]:
        """Translate dependency-graph edges into chunk cross-references."""
        confidence = self._config.cross_reference_confidence

        # First chunk in forest order per trailing identifier
        first_by_identifier: dict[str, str] = {}
        for node in forest.iter_nodes():
            first_by_identifier.setdefault(node.trailing_identifier, node.id)

        graph_nodes_by_file: dict[str, list[str]] = {}
        result: dict[str, list[CrossReference]] = {}
        for node in forest.iter_nodes():
            file_nodes = graph_nodes_by_file.get(node.file_path)
            if file_nodes is None:
                file_nodes = dependency_graph.get_nodes_by_file(node.file_path)
                graph_nodes_by_file[node.file_path] = file_nodes

            identifier = node.trailing_identifier
            corresponding = [g for g in file_nodes if trailing_identifier(g) == identifier]

            refs: list[CrossReference] = []
            seen: set[tuple[str, CrossReferenceRelation]] = set()
            for graph_node in corresponding:
                edges = [
                    (CrossReferenceRelation.DEPENDS_ON, dependency_graph.get_dependencies(graph_node)),
                    (CrossReferenceRelation.USED_BY, dependency_graph.get_dependents(graph_node)),
                ]
                for relation, targets in edges:
                    for target in targets:
                        target_id = first_by_identifier.get(trailing_identifier(target))
                        if target_id is None or target_id == node.id:
                            continue
                        if (target_id, relation) in seen:
                            continue
                        seen.add((target_id, relation))
                        refs.append(CrossReference(target_id, relation, confidence))
            if refs:
                result[node.id] = refs
        return result

    # Flattening ----------------------------------------------------------

    async def flatten(
        self, forest: ChunkForest, contexts: dict[str, ChunkGraphContext] | None = None
    ) -> list[ChunkRecord]:
        """Flatten every node (plus overview records) into immutable ChunkRecords."""
        if contexts is None:
            contexts = self.structural_context(forest)

        entries: list[tuple[str, str, str, tuple[int, int], ChunkKind, dict]] = []
        for node in forest.iter_nodes():
            context = contexts.get(node.id) or ChunkGraphContext()
            entries.append(
                (
                    node.id,
                    enrich_content(node, context, forest),
                    node.file_path,
                    (node.position.start_line, node.position.end_line),
                    node.kind,
                    self._record_metadata(node, context),
                )
            )
        if self._config.generate_overviews:
            entries.extend(self._overview_entries(forest))

        contents = [entry[1] for entry in entries]
        self._vectorizer.fit(contents)
        if self._embedding_service is not None:
            dense = await self._embedding_service.embed_texts(contents)
        else:
            dense = [[] for _ in contents]

        records = [
            ChunkRecord(
                id=record_id,
                content=content,
                file_path=file_path,
                line_range=line_range,
                chunk_type=kind,
                metadata=metadata,
                sparse_vector=self._vectorizer.transform(content),
                dense_vector=vector,
            )
            for (record_id, content, file_path, line_range, kind, metadata), vector in zip(
                entries, dense
            )
        ]
        logger.info(
            f"[Link] Flattened {len(records)} records "
            f"(vocabulary {self._vectorizer.vocabulary_size} terms)"
        )
        return records

    @staticmethod
    def _record_metadata(node: ChunkNode, context: ChunkGraphContext) -> dict:
        meta = node.metadata
        return {
            "name": node.name,
            "type": meta.semantic_type,
            "language": meta.language.value,
            "framework": meta.framework,
            "complexity": meta.complexity,
            "importance": meta.importance,
            "abstraction_level": meta.abstraction_level.value,
            "level": node.level,
            "parent_id": node.parent_id,
            "tags": list(meta.tags),
            "dependencies": list(meta.dependencies),
            "exports": list(meta.exports),
            "annotations": list(meta.annotations),
            "summary": node.summary,
            "inbound_references": context.inbound_reference_count,
            "last_modified": meta.last_modified.isoformat() if meta.last_modified else None,
        }

    def _overview_entries(
        self, forest: ChunkForest
    ) -> list[tuple[str, str, str, tuple[int, int], ChunkKind, dict]]:
        roots = [h.root for h in forest.hierarchies]
        entries = []

        def _entry(record_id: str, content: str, file_path: str, record_type: str, **extra):
            metadata = {
                "name": record_id,
                "type": record_type,
                "language": OVERVIEW_LANGUAGE,
                "framework": extra.pop("framework", None),
                "complexity": extra.pop("complexity", 1),
                "importance": 0.9,
                "abstraction_level": AbstractionLevel.OVERVIEW.value,
                "level": 0,
                "parent_id": None,
                "tags": ["overview"],
                "dependencies": [],
                "exports": [],
                "annotations": [],
                "summary": content.splitlines()[0],
                "inbound_references": 0,
                "last_modified": None,
            }
            entries.append((record_id, content, file_path, (1, 1), ChunkKind.FILE, metadata))

        class_count, function_count = _count_top_level(roots, forest)
        languages = list(dict.fromkeys(root.metadata.language.value for root in roots))
        frameworks = list(dict.fromkeys(r.metadata.framework for r in roots if r.metadata.framework))
        _entry(
            PROJECT_OVERVIEW_ID,
            "\n".join(
                [
                    "Project Overview:",
                    f"Files: {len(roots)}",
                    f"Classes: {class_count}",
                    f"Functions: {function_count}",
                    f"Languages: {', '.join(languages)}",
                    f"Frameworks: {', '.join(frameworks)}",
                ]
            ),
            "project",
            "project_overview",
        )

        by_framework: dict[str, list[ChunkNode]] = defaultdict(list)
        for root in roots:
            if root.metadata.framework:
                by_framework[root.metadata.framework].append(root)
        for framework, files in by_framework.items():
            if len(files) <= 1:
                continue
            classes, functions = _count_top_level(files, forest)
            _entry(
                f"framework::{framework}::overview",
                "\n".join(
                    [
                        f"{framework} Framework Overview:",
                        f"Files: {len(files)}",
                        f"Classes: {classes}",
                        f"Functions: {functions}",
                    ]
                ),
                framework,
                "framework_overview",
                framework=framework,
            )

        by_layer: dict[str, list[ChunkNode]] = defaultdict(list)
        for root in roots:
            layer = identify_layer(root)
            if layer:
                by_layer[layer].append(root)
        for layer, items in by_layer.items():
            if len(items) <= 1:
                continue
            average = sum(item.metadata.complexity for item in items) / len(items)
            _entry(
                f"layer::{layer}::overview",
                "\n".join(
                    [
                        f"{layer} Layer Overview:",
                        f"Components: {len(items)}",
                        f"Average Complexity: {average:.2f}",
                    ]
                ),
                layer,
                "layer_overview",
                complexity=max(1, round(average)),
            )
        return entries


def _count_top_level(roots: Sequence[ChunkNode], forest: ChunkForest) -> tuple[int, int]:
    classes = functions = 0
    for root in roots:
        for child_id in root.children:
            child = forest.get(child_id)
            if child is None:
                continue
            if child.kind is ChunkKind.CLASS:
                classes += 1
            elif child.kind is ChunkKind.FUNCTION:
                functions += 1
    return classes, functions
