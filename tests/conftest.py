from pathlib import Path

import pytest

from latefusion.trec import parse_from_trec

RESOURCES = Path(__file__).parent / "resources"


def read_resource(name: str) -> str:
    return (RESOURCES / name).read_text(encoding="utf-8")


@pytest.fixture
def resources() -> Path:
    return RESOURCES


@pytest.fixture
def run_paths() -> list[Path]:
    """Two single-query runs (bm25 and dense) over overlapping documents."""
    return [RESOURCES / "run_bm25.txt", RESOURCES / "run_dense.txt"]


@pytest.fixture
def top_entries():
    """Both runs concatenated into one parsed list."""
    return parse_from_trec(read_resource("two_runs.top.txt"))


@pytest.fixture
def multi_query_runs():
    """Two runs each answering queries q1 and q2."""
    run_a = parse_from_trec(
        "q1 0 a 0 3.0 runA\n"
        "q1 0 b 1 2.0 runA\n"
        "q2 0 a 0 5.0 runA\n"
        "q2 0 c 1 1.0 runA\n"
    )
    run_b = parse_from_trec(
        "q1 0 b 0 4.0 runB\n"
        "q2 0 c 0 6.0 runB\n"
        "q2 0 d 1 0.5 runB\n"
    )
    return [run_a, run_b]
