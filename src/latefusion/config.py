"""Central configuration for latefusion, driven by env vars and/or a .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class FusionConfig(BaseSettings):
    """Which fusion method to apply and how to feed it."""

    model_config = {"env_prefix": "LATEFUSION_FUSION_", "env_file": ".env", "extra": "ignore"}

    method: str = Field("combmnz", description="Combiner name or alias (combmax, combsum, combmnz, rrf)")
    rrf_k: int = Field(
        0,
        ge=0,
        description="RRF constant added to every rank. 0 keeps the plain 1 / (1 + rank) formula.",
    )
    rank_source: Literal["field", "position"] = Field(
        "field",
        description="Use the rank column of each run, or re-rank runs by order of appearance",
    )
    top_n: int | None = Field(None, ge=1, description="Keep at most this many fused results per query")


class OutputConfig(BaseSettings):
    """How fused runs are written back as TREC text."""

    model_config = {"env_prefix": "LATEFUSION_OUTPUT_", "env_file": ".env", "extra": "ignore"}

    run_id: str = Field("latefusion", description="Run ID written in the last column")
    qid: str | None = Field(
        None,
        description="Fuse all entries as one query labelled with this ID. Fuse per query when unset.",
    )
    score_precision: int | None = Field(
        None, ge=0, le=17, description="Fixed decimals for scores. Shortest round-trip form when unset."
    )


class LateFusionConfig(BaseSettings):
    """Top-level latefusion configuration."""

    model_config = {"env_prefix": "LATEFUSION_", "env_file": ".env", "extra": "ignore"}

    log_level: str = Field("WARNING", description="Logging level")
    log_json: bool = Field(False, description="Emit JSON-formatted logs")

    fusion: FusionConfig = Field(default_factory=FusionConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def load_config(**overrides) -> LateFusionConfig:
    """Create a config instance, applying any programmatic overrides."""
    return LateFusionConfig(**overrides)
