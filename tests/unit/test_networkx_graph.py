"""Tests for the networkx-backed dependency graph."""

import pytest

from chunkgraph.parsers.symbol_extractor import SymbolExtractor
from chunkgraph.providers.graph.networkx_graph import (
    CONTAINS,
    EXTENDS,
    IMPORTS,
    NetworkXDependencyGraph,
)

FILES = {
    "app/models.py": "class User:\n    def name(self):\n        return 'u'\n",
    "app/admin.py": (
        "from app.models import User\n\n\n"
        "class Admin(User):\n    def grant(self):\n        return True\n\n\n"
        "def audit():\n    return None\n"
    ),
}


@pytest.fixture
def graph() -> NetworkXDependencyGraph:
    extractor = SymbolExtractor()
    return NetworkXDependencyGraph.from_extractions(
        extractor.extract_file(path, source) for path, source in FILES.items()
    )


class TestNetworkXDependencyGraph:
    def test_nodes_by_file(self, graph):
        assert sorted(graph.get_nodes_by_file("app/admin.py")) == [
            "app/admin.py",
            "app/admin.py::Admin",
            "app/admin.py::Admin.grant",
            "app/admin.py::audit",
        ]

    def test_import_edges(self, graph):
        assert graph.get_dependencies("app/admin.py") == ["app/models.py"]
        assert graph.get_dependents("app/models.py") == ["app/admin.py"]

    def test_extends_edges(self, graph):
        assert graph.get_dependencies("app/admin.py::Admin") == ["app/models.py::User"]
        assert graph.get_dependents("app/models.py::User") == ["app/admin.py::Admin"]

    def test_contains_edges_are_not_dependencies(self, graph):
        relations = {
            relation
            for _, _, relation in graph.graph.out_edges("app/admin.py::Admin", data="relation")
        }
        assert relations == {CONTAINS, EXTENDS}
        assert "app/admin.py::Admin.grant" not in graph.get_dependencies("app/admin.py::Admin")
        assert IMPORTS not in relations

    def test_unknown_node(self, graph):
        assert graph.get_dependencies("nowhere") == []
        assert graph.get_dependents("nowhere") == []
        assert graph.get_nodes_by_file("missing.py") == []
