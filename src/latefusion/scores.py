"""Score and rank scalar types shared by the fusion engine and the TREC codec."""

from __future__ import annotations

import math
import numbers

# Absolute tolerance for comparing scores in tests. Never used for ordering.
EPSILON: float = 1e-5

# Ranks are unsigned 32-bit integers in TREC run files.
RANK_MAX: int = 2**32 - 1

Rank = int


class NaNScoreError(ValueError):
    """Raised when a score is constructed from a NaN value."""

    def __init__(self, value: object = math.nan) -> None:
        super().__init__(f"invalid score value `{value}` (must not be NaN)")


class Score(float):
    """A similarity score which is guaranteed not to be NaN.

    Construction validates the value and raises :class:`NaNScoreError` on NaN,
    so ordering between scores is always total. Infinite and negative values
    are valid scores. Non-real inputs such as strings raise ``TypeError``.
    Arithmetic delegates to ``float`` and yields plain floats; wrap results
    with :func:`score` to get a validated score back.
    """

    __slots__ = ()

    def __new__(cls, value: float = 0.0) -> Score:
        if not isinstance(value, numbers.Real):
            raise TypeError(f"score must be a real number, got {type(value).__name__}")
        value = float(value)
        if math.isnan(value):
            raise NaNScoreError(value)
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"Score({float.__repr__(self)})"

    @property
    def raw(self) -> float:
        return float(self)


def score(value: float) -> Score:
    """Create a score value, raising :class:`NaNScoreError` if *value* is NaN."""
    if isinstance(value, Score):
        return value
    return Score(value)


def scores_close(a: float, b: float, epsilon: float = EPSILON) -> bool:
    """True if *a* and *b* differ by at most *epsilon* (absolute)."""
    return abs(float(a) - float(b)) <= epsilon
