"""Chunk hierarchy, graph context and index record models.

# FILE_CONTEXT: Arena-based chunk trees built per file, joined into a forest
# ROLE: Nodes refer to each other by id only; ancestors/siblings/descendants
#       are derived views over the arena and never stored on the node
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePath
from typing import Any

from chunkgraph.core.types.common import (
    AbstractionLevel,
    ChunkKind,
    CrossReferenceRelation,
    Language,
)

SOURCE_SUFFIXES = frozenset(Language.get_all_extensions())


@dataclass(frozen=True)
class Position:
    start_line: int
    end_line: int
    start_col: int = 0
    end_col: int = 0

    def contains(self, other: "Position") -> bool:
        """Line-range containment."""
        return self.start_line <= other.start_line and other.end_line <= self.end_line

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass
class ChunkMetadata:
    language: Language
    file_path: str
    complexity: int = 1
    importance: float = 0.0
    semantic_type: str = ""
    abstraction_level: AbstractionLevel = AbstractionLevel.DETAIL
    framework: str | None = None
    dependencies: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    annotations: list[str] = field(default_factory=list)
    last_modified: datetime | None = None


@dataclass
class ChunkNode:
    """Atomic addressable unit of source content."""

    id: str
    kind: ChunkKind
    level: int
    name: str
    content: str
    position: Position
    metadata: ChunkMetadata
    parent_id: str | None = None
    children: list[str] = field(default_factory=list)
    summary: str | None = None

    @property
    def file_path(self) -> str:
        return self.metadata.file_path

    @property
    def trailing_identifier(self) -> str:
        return trailing_identifier(self.id)


def make_chunk_id(kind: ChunkKind | str, file_path: str, *names: str) -> str:
    """Build a chunk id such as ``method::src/a.py::Cls::run``."""
    kind_value = kind.value if isinstance(kind, ChunkKind) else kind
    return "::".join([kind_value, file_path, *names])


def trailing_identifier(node_id: str) -> str:
    """Last identifier segment of a chunk or dependency-graph node id.

    ``method::src/a.py::Cls::run@12`` and ``src/a.py::Cls.run`` both yield
    ``run``; ``file::src/a.py`` and ``src/a.py`` both yield ``a``.
    """
    tail = node_id.rsplit("::", 1)[-1].split("@", 1)[0]
    if "/" in tail or "\\" in tail or PurePath(tail).suffix.lower() in SOURCE_SUFFIXES:
        return PurePath(tail.replace("\\", "/")).stem
    return tail.rsplit(".", 1)[-1]


class ChunkHierarchy:
    """Arena of chunk nodes for a single file, rooted at the file node."""

    def __init__(self, root: ChunkNode) -> None:
        if root.parent_id is not None or root.level != 0:
            raise ValueError("File root must have level 0 and no parent")
        self._nodes: dict[str, ChunkNode] = {root.id: root}
        self.root_id = root.id

    @property
    def root(self) -> ChunkNode:
        return self._nodes[self.root_id]

    @property
    def file_path(self) -> str:
        return self.root.file_path

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, node_id: str) -> ChunkNode | None:
        return self._nodes.get(node_id)

    def add_child(self, parent_id: str, node: ChunkNode) -> ChunkNode:
        """Attach ``node`` under ``parent_id``, enforcing level and range containment."""
        parent = self._nodes[parent_id]
        if node.id in self._nodes:
            raise ValueError(f"Duplicate chunk id: {node.id}")
        if node.level != parent.level + 1:
            raise ValueError(
                f"Level mismatch for {node.id}: {node.level} under {parent.level}"
            )
        if not parent.position.contains(node.position):
            raise ValueError(f"Position of {node.id} escapes its parent {parent.id}")
        node.parent_id = parent_id
        self._nodes[node.id] = node
        parent.children.append(node.id)
        return node

    def remove_subtree(self, node_id: str) -> list[str]:
        """Remove a node and everything it owns. Returns the removed ids."""
        if node_id == self.root_id:
            raise ValueError("Cannot remove the file root from its own hierarchy")
        node = self._nodes[node_id]
        removed = [node_id, *self.descendants(node_id)]
        if node.parent_id is not None:
            self._nodes[node.parent_id].children.remove(node_id)
        for rid in removed:
            del self._nodes[rid]
        return removed

    def iter_nodes(self) -> Iterator[ChunkNode]:
        """Pre-order traversal starting at the file root."""
        stack = [self.root_id]
        while stack:
            node = self._nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.children))

    def ancestors(self, node_id: str) -> list[str]:
        """Parent chain of ``node_id`` in root-to-node order (node excluded)."""
        chain: list[str] = []
        current = self._nodes[node_id].parent_id
        while current is not None:
            chain.append(current)
            current = self._nodes[current].parent_id
        chain.reverse()
        return chain

    def siblings(self, node_id: str) -> list[str]:
        parent_id = self._nodes[node_id].parent_id
        if parent_id is None:
            return []
        return [cid for cid in self._nodes[parent_id].children if cid != node_id]

    def descendants(self, node_id: str) -> list[str]:
        result: list[str] = []
        stack = list(reversed(self._nodes[node_id].children))
        while stack:
            cid = stack.pop()
            result.append(cid)
            stack.extend(reversed(self._nodes[cid].children))
        return result

    def children_of(self, node_id: str) -> list[ChunkNode]:
        return [self._nodes[cid] for cid in self._nodes[node_id].children]


class ChunkForest:
    """Ordered collection of per-file hierarchies with a project-wide id index."""

    def __init__(self, hierarchies: list[ChunkHierarchy] | None = None) -> None:
        self._hierarchies: list[ChunkHierarchy] = []
        self._owner: dict[str, ChunkHierarchy] = {}
        for hierarchy in hierarchies or []:
            self.add(hierarchy)

    def add(self, hierarchy: ChunkHierarchy) -> None:
        for node in hierarchy.iter_nodes():
            if node.id in self._owner:
                raise ValueError(f"Chunk id {node.id} already present in forest")
        self._hierarchies.append(hierarchy)
        for node in hierarchy.iter_nodes():
            self._owner[node.id] = hierarchy

    @property
    def hierarchies(self) -> list[ChunkHierarchy]:
        return list(self._hierarchies)

    def __len__(self) -> int:
        return len(self._owner)

    def get(self, node_id: str) -> ChunkNode | None:
        hierarchy = self._owner.get(node_id)
        return hierarchy.get(node_id) if hierarchy else None

    def hierarchy_of(self, node_id: str) -> ChunkHierarchy | None:
        return self._owner.get(node_id)

    def iter_nodes(self) -> Iterator[ChunkNode]:
        for hierarchy in self._hierarchies:
            yield from hierarchy.iter_nodes()


@dataclass(frozen=True)
class CrossReference:
    target_id: str
    relation: CrossReferenceRelation
    confidence: float


@dataclass(frozen=True)
class SemanticNeighbor:
    target_id: str
    similarity: float
    reason: str


@dataclass
class ChunkGraphContext:
    """Derived graph view of one chunk node, recomputable from the forest."""

    ancestors: list[str] = field(default_factory=list)
    siblings: list[str] = field(default_factory=list)
    descendants: list[str] = field(default_factory=list)
    cross_references: list[CrossReference] = field(default_factory=list)
    semantic_neighbors: list[SemanticNeighbor] = field(default_factory=list)

    @property
    def inbound_reference_count(self) -> int:
        return sum(
            1
            for ref in self.cross_references
            if ref.relation is CrossReferenceRelation.USED_BY
        )


@dataclass(frozen=True)
class ChunkRecord:
    """Immutable index entry flattened from a chunk node and its context."""

    id: str
    content: str
    file_path: str
    line_range: tuple[int, int]
    chunk_type: ChunkKind
    metadata: dict[str, Any]
    sparse_vector: dict[str, float]
    dense_vector: list[float]

    @property
    def parent_id(self) -> str | None:
        return self.metadata.get("parent_id")

    @property
    def semantic_type(self) -> str:
        return str(self.metadata.get("type", ""))
