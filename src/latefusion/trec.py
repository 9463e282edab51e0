"""TREC result list parsing and printing.

Each line of a TREC run file describes one retrieved document::

    qid 0 docno rank score run_id

Fields are separated by runs of whitespace. The second column is reserved
(conventionally ``0`` or ``Q0``); it is read and ignored.
"""

from __future__ import annotations

import io
import math
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TextIO

from latefusion.entries import EntryInfo
from latefusion.logging import get_logger
from latefusion.scores import RANK_MAX, NaNScoreError, Rank, Score, score

log = get_logger(__name__)

_RANK_RE = re.compile(r"\+?[0-9]+")
# Decimal float literals plus the nan/inf spellings float() understands.
# Rejects things float() would otherwise accept, such as "1_000".
_SCORE_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|nan|inf|infinity)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class TrecEntry:
    """A single entry of a TREC result list."""

    qid: str
    docno: str  # unique document identifier
    rank: Rank  # position of the document in the list
    score: Score  # similarity, higher is more similar
    runid: str  # ignored by the fusion algorithms

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", score(self.score))

    @property
    def id(self) -> str:
        return self.docno

    def as_tuple(self) -> tuple[str, str, Rank, Score, str]:
        return (self.qid, self.docno, self.rank, self.score, self.runid)


class TrecParseError(ValueError):
    """Base class for errors raised while reading TREC data."""

    reason: str = "invalid TREC data"

    def __init__(self, detail: str, line_no: int | None = None) -> None:
        self.detail = detail
        self.line_no = line_no
        super().__init__(str(self))

    def __str__(self) -> str:
        where = f" at line {self.line_no}" if self.line_no is not None else ""
        return f"failed to parse TREC data{where}: {self.detail}"


class UnexpectedEndOfLineError(TrecParseError):
    """A line ended before the named field could be read."""

    reason = "unexpected end of line"

    def __init__(self, field: str, line_no: int | None = None) -> None:
        self.field = field
        super().__init__(f"unexpected end of line ({field})", line_no)


class InvalidRankError(TrecParseError):
    """The rank field is not a non-negative integer."""

    reason = "invalid rank"

    def __init__(self, text: str, line_no: int | None = None) -> None:
        self.text = text
        super().__init__(f"invalid rank `{text}`", line_no)


class InvalidScoreError(TrecParseError):
    """The score field is not a finite, non-NaN number."""

    reason = "invalid score"

    def __init__(self, text: str, line_no: int | None = None) -> None:
        self.text = text
        super().__init__(f"invalid score `{text}`", line_no)


def _parse_rank(text: str, line_no: int) -> Rank:
    if not _RANK_RE.fullmatch(text):
        raise InvalidRankError(text, line_no)
    rank = int(text)
    if rank > RANK_MAX:
        raise InvalidRankError(text, line_no)
    return rank


def _parse_score(text: str, line_no: int) -> Score:
    if not _SCORE_RE.fullmatch(text):
        raise InvalidScoreError(text, line_no)
    try:
        value = score(float(text))
    except NaNScoreError as exc:
        raise InvalidScoreError(text, line_no) from exc
    if math.isinf(value):
        raise InvalidScoreError(text, line_no)
    return value


def parse_line(line: str, line_no: int = 1) -> TrecEntry:
    """Parse a single TREC line. Fields after the run ID are ignored."""
    words = iter(line.split())

    def take(field: str) -> str:
        word = next(words, None)
        if word is None:
            raise UnexpectedEndOfLineError(field, line_no)
        return word

    qid = take("qid")
    take("reserved")
    docno = take("docno")
    rank = _parse_rank(take("rank"), line_no)
    value = _parse_score(take("score"), line_no)
    runid = take("runid")
    return TrecEntry(qid=qid, docno=docno, rank=rank, score=value, runid=runid)


def iter_trec(file_data: str) -> Iterator[TrecEntry]:
    """Lazily parse TREC text, one entry per non-blank line, in file order.

    Lines end at a line feed only; a carriage return before it is treated as
    whitespace. Form feeds and other vertical whitespace separate fields.
    """
    for line_no, line in enumerate(file_data.split("\n"), 1):
        if not line.strip():
            continue
        yield parse_line(line, line_no)


def parse_from_trec(file_data: str) -> list[TrecEntry]:
    """Parse a whole TREC result list.

    Expected format: ``qid 0 docno rank score run_id``. Lines holding only
    whitespace are skipped. The first malformed line raises a
    :class:`TrecParseError` subclass and nothing is returned.
    """
    entries = list(iter_trec(file_data))
    log.debug("trec_parsed", n_entries=len(entries))
    return entries


def format_score(value: float, precision: int | None = None) -> str:
    """Shortest text that reads back as the same float, or fixed *precision* decimals."""
    if precision is None:
        return repr(float(value))
    return f"{float(value):.{precision}f}"


def format_entry(entry: TrecEntry, precision: int | None = None) -> str:
    """Render one entry as ``qid 0 docno rank score run_id``, without newline."""
    return (
        f"{entry.qid} 0 {entry.docno} {entry.rank} "
        f"{format_score(entry.score, precision)} {entry.runid}"
    )


def write(writer: TextIO, entry: TrecEntry, precision: int | None = None) -> None:
    """Write a single text line of this TREC result entry."""
    writer.write(format_entry(entry, precision) + "\n")


def write_all(writer: TextIO, entries: Iterable[TrecEntry], precision: int | None = None) -> None:
    """Write a list of TREC result entries, in the order given."""
    for entry in entries:
        write(writer, entry, precision)


def to_trec(entries: Iterable[TrecEntry], precision: int | None = None) -> str:
    """Return the TREC text for *entries*."""
    buf = io.StringIO()
    write_all(buf, entries, precision)
    return buf.getvalue()


def fused_to_trec(
    fused: Iterable[EntryInfo],
    qid: str,
    runid: str,
    start_rank: int = 0,
) -> list[TrecEntry]:
    """Label fused entries with a query and run ID, ranking them by position."""
    return [
        TrecEntry(qid=qid, docno=str(e.id), rank=rank, score=e.score, runid=runid)
        for rank, e in enumerate(fused, start_rank)
    ]
