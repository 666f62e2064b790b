"""Ranking engine configuration for chunkgraph."""

import os
from typing import Any

from pydantic import BaseModel, Field


class RankingConfig(BaseModel):
    """Limits and defaults of the dynamic ranking engine."""

    max_results: int = Field(default=50, gt=0, description="Results kept per query")
    max_history_queries: int = Field(
        default=100, gt=0, description="Ranked queries retained for metrics"
    )
    max_interactions: int = Field(
        default=1000, gt=0, description="Interactions retained per user"
    )
    learning_increment: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Preference gain per positive interaction"
    )
    default_freshness_bias: float = Field(default=0.0, ge=0.0, le=1.0)
    default_authority_bias: float = Field(default=0.0, ge=0.0, le=1.0)

    @classmethod
    def load_from_env(cls) -> dict[str, Any]:
        """Load ranking config from environment variables."""
        config: dict[str, Any] = {}
        if max_results := os.getenv("CHUNKGRAPH_RANKING__MAX_RESULTS"):
            config["max_results"] = int(max_results)
        if history := os.getenv("CHUNKGRAPH_RANKING__MAX_HISTORY_QUERIES"):
            config["max_history_queries"] = int(history)
        if interactions := os.getenv("CHUNKGRAPH_RANKING__MAX_INTERACTIONS"):
            config["max_interactions"] = int(interactions)
        if freshness := os.getenv("CHUNKGRAPH_RANKING__FRESHNESS_BIAS"):
            config["default_freshness_bias"] = float(freshness)
        if authority := os.getenv("CHUNKGRAPH_RANKING__AUTHORITY_BIAS"):
            config["default_authority_bias"] = float(authority)
        return config
