"""Dependency graph provider interface consumed by the chunk graph linker."""

from abc import ABC, abstractmethod


class DependencyGraphProvider(ABC):
    """Project-wide code dependency graph.

    Node ids are opaque strings; the linker only relies on their trailing
    identifier segment (after the last ``::`` or ``.``).
    """

    @abstractmethod
    def get_nodes_by_file(self, file_path: str) -> list[str]:
        """Ids of graph nodes declared in ``file_path``."""

    @abstractmethod
    def get_dependencies(self, node_id: str) -> list[str]:
        """Ids of nodes that ``node_id`` depends on."""

    @abstractmethod
    def get_dependents(self, node_id: str) -> list[str]:
        """Ids of nodes that depend on ``node_id``."""
