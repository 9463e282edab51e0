"""Late fusion combination functions.

Each function reduces the contributions a single document collected across
result lists into one fused score. Score-based functions take a sequence of
scores, rank-based ones a sequence of ranks.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence

from latefusion.scores import Rank, Score, score

ScoreCombiner = Callable[[Sequence[Score]], Score]
RankCombiner = Callable[[Sequence[Rank]], Score]
HybridCombiner = Callable[[Sequence[tuple[Rank, Score]]], Score]


def _total(values: Iterable[float]) -> float:
    """Exact sum of *values*.

    Finite values whose sum leaves the float range give a signed infinity.
    Opposing infinities cancel out to 0.0.
    """
    values = list(values)
    try:
        return math.fsum(values)
    except OverflowError:
        return sum(values)
    except ValueError:
        # inf + -inf
        return 0.0


def comb_max(scores: Sequence[Score]) -> Score:
    """CombMAX: the highest score, or 0.0 if there are none."""
    return score(max(scores, default=0.0))


def comb_sum(scores: Sequence[Score]) -> Score:
    """CombSUM: the sum of all scores.

    A sum past the float range is infinite, and ``inf`` plus ``-inf`` is 0.0,
    so any valid scores give a valid fused score.
    """
    return score(_total(scores))


def comb_mnz(scores: Sequence[Score]) -> Score:
    """CombMNZ: the sum of all scores, multiplied by the number of scores.

    Documents retrieved by more sources get a proportionally larger boost.
    """
    return score(len(scores) * comb_sum(scores))


def rrf(ranks: Sequence[Rank]) -> Score:
    """Reciprocal rank fusion: ``sum(1 / (1 + rank))``.

    With 0-based ranks the top document of a list contributes exactly 1.
    """
    return score(_total(1.0 / (1 + r) for r in ranks))


def make_rrf(k: int = 0) -> RankCombiner:
    """Return a reciprocal rank function computing ``sum(1 / (1 + k + rank))``.

    Larger *k* flattens the difference between top and lower ranks
    (k=60 is the usual choice in the literature). ``make_rrf(0)`` is :func:`rrf`.
    """
    if k < 0:
        raise ValueError(f"RRF constant must be non-negative, got {k}")
    if k == 0:
        return rrf

    def _rrf(ranks: Sequence[Rank]) -> Score:
        return score(_total(1.0 / (1 + k + r) for r in ranks))

    _rrf.__name__ = f"rrf_k{k}"
    return _rrf
