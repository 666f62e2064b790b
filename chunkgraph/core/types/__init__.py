"""Core type definitions."""

from .common import (
    AbstractionLevel,
    ChunkKind,
    CrossReferenceRelation,
    FilterAction,
    FilterOperator,
    InteractionAction,
    Language,
    SignalSource,
    SymbolKind,
    UserRole,
)

__all__ = [
    "AbstractionLevel",
    "ChunkKind",
    "CrossReferenceRelation",
    "FilterAction",
    "FilterOperator",
    "InteractionAction",
    "Language",
    "SignalSource",
    "SymbolKind",
    "UserRole",
]
