"""Pydantic models describing merge results."""

from __future__ import annotations

from pydantic import BaseModel, Field


class MergeSummary(BaseModel):
    method: str
    n_runs: int = Field(ge=0)
    n_entries: int = Field(0, ge=0, description="Entries read across all runs")
    n_queries: int = Field(0, ge=0)
    n_documents: int = Field(0, ge=0, description="Fused entries written, over all queries")
