"""Core data models."""

from .chunk import (
    ChunkForest,
    ChunkGraphContext,
    ChunkHierarchy,
    ChunkMetadata,
    ChunkNode,
    ChunkRecord,
    CrossReference,
    Position,
    SemanticNeighbor,
    make_chunk_id,
    trailing_identifier,
)
from .ranking import (
    ComponentIntent,
    FilterRule,
    MetadataFilter,
    QueryComponent,
    QueryContext,
    RankedResult,
    RankingCriterion,
    RankingMetrics,
    RankingOptions,
    RankingSignal,
    SearchCandidate,
    UserInteraction,
    UserPreference,
)
from .symbol import (
    ClassInfo,
    ComplexityMetrics,
    ExportInfo,
    ExtractionResult,
    FunctionInfo,
    HalsteadMetrics,
    ImportInfo,
    Parameter,
    SourceRange,
    Symbol,
)

__all__ = [
    "ChunkForest",
    "ChunkGraphContext",
    "ChunkHierarchy",
    "ChunkMetadata",
    "ChunkNode",
    "ChunkRecord",
    "ClassInfo",
    "ComplexityMetrics",
    "ComponentIntent",
    "CrossReference",
    "ExportInfo",
    "ExtractionResult",
    "FilterRule",
    "FunctionInfo",
    "HalsteadMetrics",
    "ImportInfo",
    "MetadataFilter",
    "Parameter",
    "Position",
    "QueryComponent",
    "QueryContext",
    "RankedResult",
    "RankingCriterion",
    "RankingMetrics",
    "RankingOptions",
    "RankingSignal",
    "SearchCandidate",
    "SemanticNeighbor",
    "SourceRange",
    "Symbol",
    "UserInteraction",
    "UserPreference",
    "make_chunk_id",
    "trailing_identifier",
]
