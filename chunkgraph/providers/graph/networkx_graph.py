"""Project dependency graph backed by networkx.

# FILE_CONTEXT: Default DependencyGraphProvider, built after the parse barrier
# ROLE: File/class/method/function nodes with contains, imports and extends
#       edges. No call graph.
"""

from collections.abc import Iterable
from pathlib import PurePath

import networkx as nx
from loguru import logger

from chunkgraph.core.models.symbol import ExtractionResult
from chunkgraph.interfaces.dependency_graph import DependencyGraphProvider

CONTAINS = "contains"
IMPORTS = "imports"
EXTENDS = "extends"
_DEPENDENCY_RELATIONS = frozenset({IMPORTS, EXTENDS})


def _module_key(module: str) -> str:
    """Reduce an import specifier to the stem of the module it names."""
    tail = PurePath(module.replace("\\", "/").rstrip("/")).name
    if "/" in module or "\\" in module:
        return PurePath(tail).stem
    return tail.rsplit(".", 1)[-1]


class NetworkXDependencyGraph(DependencyGraphProvider):
    """Directed multigraph of declarations and their dependencies.

    Node ids: ``path`` for files, ``path::Cls`` for classes, ``path::Cls.m``
    for methods and ``path::fn`` for functions.
    """

    def __init__(self, graph: nx.MultiDiGraph | None = None) -> None:
        self._graph = graph if graph is not None else nx.MultiDiGraph()

    @property
    def graph(self) -> nx.MultiDiGraph:
        return self._graph

    @classmethod
    def from_extractions(
        cls, extractions: Iterable[ExtractionResult]
    ) -> "NetworkXDependencyGraph":
        """Build the graph from per-file extraction results."""
        provider = cls()
        results = list(extractions)
        files_by_stem: dict[str, list[str]] = {}
        classes_by_name: dict[str, list[str]] = {}

        for result in results:
            provider._add_file(result)
            files_by_stem.setdefault(PurePath(result.file_path).stem, []).append(
                result.file_path
            )
            for class_info in result.classes:
                classes_by_name.setdefault(class_info.name, []).append(
                    f"{result.file_path}::{class_info.name}"
                )

        for result in results:
            for imp in result.imports:
                candidates = [_module_key(imp.module)] if imp.module.strip(".") else []
                candidates.extend(imp.names)
                for key in candidates:
                    for target in files_by_stem.get(key, []):
                        if target != result.file_path:
                            provider._graph.add_edge(
                                result.file_path, target, relation=IMPORTS
                            )

            for class_info in result.classes:
                source = f"{result.file_path}::{class_info.name}"
                for base in [class_info.super_class, *class_info.interfaces]:
                    if not base:
                        continue
                    targets = classes_by_name.get(base.rsplit(".", 1)[-1].split("<", 1)[0], [])
                    if targets:
                        provider._graph.add_edge(source, targets[0], relation=EXTENDS)

        logger.info(
            f"[Graph] {provider._graph.number_of_nodes()} nodes, "
            f"{provider._graph.number_of_edges()} edges from {len(results)} files"
        )
        return provider

    def _add_file(self, result: ExtractionResult) -> None:
        path = result.file_path
        self._graph.add_node(path, file=path, kind="file")
        for class_info in result.classes:
            class_id = f"{path}::{class_info.name}"
            self._graph.add_node(class_id, file=path, kind="class")
            self._graph.add_edge(path, class_id, relation=CONTAINS)
            for method in class_info.methods:
                method_id = f"{class_id}.{method.name}"
                self._graph.add_node(method_id, file=path, kind="method")
                self._graph.add_edge(class_id, method_id, relation=CONTAINS)
        for fn in result.functions:
            fn_id = f"{path}::{fn.name}"
            self._graph.add_node(fn_id, file=path, kind="function")
            self._graph.add_edge(path, fn_id, relation=CONTAINS)

    def get_nodes_by_file(self, file_path: str) -> list[str]:
        return [
            node for node, data in self._graph.nodes(data=True) if data.get("file") == file_path
        ]

    def get_dependencies(self, node_id: str) -> list[str]:
        if node_id not in self._graph:
            return []
        return _unique(
            target
            for _, target, relation in self._graph.out_edges(node_id, data="relation")
            if relation in _DEPENDENCY_RELATIONS
        )

    def get_dependents(self, node_id: str) -> list[str]:
        if node_id not in self._graph:
            return []
        return _unique(
            source
            for source, _, relation in self._graph.in_edges(node_id, data="relation")
            if relation in _DEPENDENCY_RELATIONS
        )


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))
