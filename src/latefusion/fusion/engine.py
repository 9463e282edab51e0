"""Grouping and reduction of result entries into a single fused ranking."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from itertools import chain
from typing import TYPE_CHECKING, TypeVar

from latefusion.entries import (
    EntryInfo,
    RankedSearchEntry,
    SearchEntry,
    score_of,
    to_entry,
)
from latefusion.fusion.combine import HybridCombiner, RankCombiner, ScoreCombiner
from latefusion.logging import get_logger
from latefusion.scores import Score

if TYPE_CHECKING:
    from latefusion.fusion.registry import Combiner

log = get_logger(__name__)

T = TypeVar("T")


def _fuse(
    entries: Iterable[SearchEntry],
    contribution: Callable[[SearchEntry], T],
    combine: Callable[[list[T]], Score],
) -> list[EntryInfo]:
    """Group *entries* by ID, reduce each group with *combine*, sort descending."""
    groups: dict[Hashable, list[T]] = {}
    n_inputs = 0
    for entry in entries:
        n_inputs += 1
        bucket = groups.get(entry.id)
        if bucket is None:
            groups[entry.id] = [contribution(entry)]
        else:
            bucket.append(contribution(entry))

    fused = [EntryInfo(id=doc_id, score=combine(values)) for doc_id, values in groups.items()]
    # Ties keep no particular order
    fused.sort(key=lambda e: e.score, reverse=True)

    log.debug(
        "fusion_complete",
        combiner=getattr(combine, "__name__", repr(combine)),
        n_inputs=n_inputs,
        n_documents=len(fused),
    )
    return fused


def fuse_scored(entries: Iterable[SearchEntry], combine_scores: ScoreCombiner) -> list[EntryInfo]:
    """Combine scored results with a score-based fusion algorithm.

    Every distinct document ID appears once in the output, scored by
    ``combine_scores`` over all the scores it collected, sorted by
    fused score descending.
    """
    return _fuse(entries, score_of, combine_scores)


def fuse_scored_lists(
    results1: Iterable[SearchEntry],
    results2: Iterable[SearchEntry],
    combine_scores: ScoreCombiner,
) -> list[EntryInfo]:
    """Combine two lists of scored results with a score-based fusion algorithm.

    Since it's score based, this is the same as chaining both lists and
    calling :func:`fuse_scored`. Duplicates within a list are merged the same
    way as duplicates across lists.
    """
    return fuse_scored(chain(map(to_entry, results1), map(to_entry, results2)), combine_scores)


def fuse_ranked(entries: Iterable[RankedSearchEntry], combine_ranks: RankCombiner) -> list[EntryInfo]:
    """Combine ranked results with a rank-based fusion algorithm such as RRF."""
    return _fuse(entries, lambda e: e.rank, combine_ranks)


def fuse_hybrid(entries: Iterable[RankedSearchEntry], combine_pairs: HybridCombiner) -> list[EntryInfo]:
    """Combine ranked results with an algorithm based on both rank and score.

    Each document's group is a list of ``(rank, score)`` pairs.
    """
    return _fuse(entries, lambda e: (e.rank, score_of(e)), combine_pairs)


def fuse(entries: Iterable[SearchEntry], combiner: Combiner) -> list[EntryInfo]:
    """Fuse *entries* with a registered combiner, dispatching on its kind."""
    if combiner.kind == "score":
        return fuse_scored(entries, combiner.func)
    if combiner.kind == "rank":
        return fuse_ranked(entries, combiner.func)
    if combiner.kind == "hybrid":
        return fuse_hybrid(entries, combiner.func)
    raise ValueError(f"Unknown combiner kind: {combiner.kind!r}")
