from .networkx_graph import NetworkXDependencyGraph

__all__ = ["NetworkXDependencyGraph"]
