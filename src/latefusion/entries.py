"""Search result entry protocols and the minimal entry types used for fusion."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from latefusion.scores import EPSILON, Rank, Score, score, scores_close

# Score reported for entries which only carry a rank.
DEFAULT_SCORE = Score(1.0)


@runtime_checkable
class SearchEntry(Protocol):
    """Anything with a document identifier can take part in fusion.

    Entries may also expose a ``score``; those that don't are treated as
    scoring :data:`DEFAULT_SCORE` (see :func:`score_of`). ``score`` must be an
    attribute or property holding a real number, not a method. The ``id`` must
    be hashable and stable for the duration of a fusion call.
    """

    @property
    def id(self) -> Hashable: ...


@runtime_checkable
class RankedSearchEntry(SearchEntry, Protocol):
    """A search entry which is also aware of its rank on a list."""

    @property
    def rank(self) -> Rank: ...


def score_of(entry: SearchEntry) -> Score:
    """Return the entry's score, or :data:`DEFAULT_SCORE` for rank-only entries."""
    value = getattr(entry, "score", None)
    if value is None:
        return DEFAULT_SCORE
    if callable(value):
        raise TypeError(f"{type(entry).__name__}.score must be an attribute or property, not a method")
    return score(value)


def to_entry(entry: SearchEntry) -> EntryInfo:
    """Build the minimal ``(id, score)`` form of any search entry."""
    if isinstance(entry, EntryInfo):
        return entry
    return EntryInfo(id=entry.id, score=score_of(entry))


@dataclass(frozen=True)
class EntryInfo:
    """A document ID with its similarity score. This is what fusion emits."""

    id: Hashable
    score: Score

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", score(self.score))

    def abs_diff_eq(self, other: EntryInfo, epsilon: float = EPSILON) -> bool:
        """Same ID and scores within *epsilon* of each other."""
        return self.id == other.id and scores_close(self.score, other.score, epsilon)


@dataclass(frozen=True)
class RankedEntryInfo:
    """A document ID with a similarity score and an externally assigned rank."""

    id: Hashable
    score: Score
    rank: Rank

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", score(self.score))


@dataclass(frozen=True)
class Ranked:
    """Assigns a rank to an arbitrary search entry."""

    rank: Rank
    inner: Any

    @property
    def id(self) -> Hashable:
        return self.inner.id

    @property
    def score(self) -> Score:
        return score_of(self.inner)


def ranked_list(results: Iterable[SearchEntry], start: int = 0) -> Iterator[Ranked]:
    """Rank search results on their order of appearance, from *start*."""
    for rank, entry in enumerate(results, start):
        yield Ranked(rank=rank, inner=entry)
