"""Merge pipeline: parsed runs -> (per query) fusion -> labelled TREC entries."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from itertools import chain
from typing import Literal

from latefusion.entries import ranked_list
from latefusion.fusion.engine import fuse
from latefusion.fusion.registry import Combiner
from latefusion.logging import get_logger
from latefusion.schemas import MergeSummary
from latefusion.trec import TrecEntry, fused_to_trec

log = get_logger(__name__)

RankSource = Literal["field", "position"]


def group_by_query(entries: Iterable[TrecEntry]) -> dict[str, list[TrecEntry]]:
    """Split entries by query ID, keeping queries in first-seen order."""
    groups: dict[str, list[TrecEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.qid, []).append(entry)
    return groups


def rerank_by_position(run: Iterable[TrecEntry]) -> list[TrecEntry]:
    """Replace every entry's rank with its 0-based position within its query."""
    reranked: list[TrecEntry] = []
    for entries in group_by_query(run).values():
        reranked.extend(dataclasses.replace(r.inner, rank=r.rank) for r in ranked_list(entries))
    return reranked


def merge_runs(
    runs: Sequence[Sequence[TrecEntry]],
    combiner: Combiner,
    runid: str,
    qid: str | None = None,
    rank_source: RankSource = "field",
    top_n: int | None = None,
) -> tuple[list[TrecEntry], MergeSummary]:
    """Fuse several parsed runs into one.

    Parameters
    ----------
    runs:
        One list of entries per input run.
    combiner:
        The registered combiner to apply.
    runid:
        Run ID written on every output entry.
    qid:
        If given, all entries are fused together as a single query with this ID.
        Otherwise each query ID found in the input is fused on its own.
    rank_source:
        ``"field"`` feeds the parsed rank column to rank-based combiners,
        ``"position"`` re-ranks each run by order of appearance first.
    top_n:
        Keep at most this many fused entries per query.
    """
    if rank_source == "position":
        runs = [rerank_by_position(run) for run in runs]

    all_entries = list(chain.from_iterable(runs))
    if qid is not None:
        queries = {qid: all_entries}
    else:
        queries = group_by_query(all_entries)

    merged: list[TrecEntry] = []
    for query_id, entries in queries.items():
        fused = fuse(entries, combiner)
        if top_n is not None:
            fused = fused[:top_n]
        merged.extend(fused_to_trec(fused, query_id, runid))

    summary = MergeSummary(
        method=combiner.name,
        n_runs=len(runs),
        n_entries=len(all_entries),
        n_queries=len(queries),
        n_documents=len(merged),
    )
    log.info("merge_complete", **summary.model_dump())
    return merged, summary
