from dataclasses import dataclass

import pytest

from conftest import read_resource
from latefusion.entries import (
    DEFAULT_SCORE,
    EntryInfo,
    Ranked,
    RankedEntryInfo,
    RankedSearchEntry,
    SearchEntry,
    ranked_list,
    score_of,
    to_entry,
)
from latefusion.fusion.combine import comb_max, comb_mnz, comb_sum, rrf
from latefusion.fusion.engine import fuse, fuse_hybrid, fuse_ranked, fuse_scored, fuse_scored_lists
from latefusion.fusion.registry import get_combiner
from latefusion.scores import score
from latefusion.trec import parse_from_trec


@dataclass(frozen=True)
class RankOnly:
    """An entry type which carries no score."""

    id: str
    rank: int


def _assert_sorted_descending(fused):
    scores = [e.score for e in fused]
    assert scores == sorted(scores, reverse=True)


class TestEntries:

    def test_protocols(self):
        assert isinstance(EntryInfo("a", score(1.0)), SearchEntry)
        assert isinstance(RankedEntryInfo("a", score(1.0), 0), RankedSearchEntry)
        assert not isinstance(EntryInfo("a", score(1.0)), RankedSearchEntry)

    def test_score_method_is_rejected(self):
        class MethodScore:
            id = "a"

            def score(self):
                return 0.5

        with pytest.raises(TypeError, match="attribute or property"):
            score_of(MethodScore())

    def test_score_property_is_accepted(self):
        class PropertyScore:
            id = "a"

            @property
            def score(self):
                return 0.5

        assert to_entry(PropertyScore()) == EntryInfo("a", score(0.5))

    def test_rank_only_entry_gets_default_score(self):
        assert score_of(RankOnly("a", 3)) == DEFAULT_SCORE == 1.0
        assert to_entry(RankOnly("a", 3)) == EntryInfo("a", score(1.0))

    def test_to_entry_strips_rank(self):
        assert to_entry(RankedEntryInfo("a", score(0.5), 2)) == EntryInfo("a", score(0.5))

    def test_ranked_list_numbers_by_appearance(self):
        entries = [EntryInfo("x", score(0.1)), EntryInfo("y", score(0.9))]
        ranked = list(ranked_list(entries))
        assert [(r.rank, r.id, r.score) for r in ranked] == [(0, "x", 0.1), (1, "y", 0.9)]
        assert isinstance(ranked[0], RankedSearchEntry)

    def test_ranked_list_start(self):
        ranked = list(ranked_list([EntryInfo("x", score(0.1))], start=1))
        assert ranked[0] == Ranked(rank=1, inner=EntryInfo("x", score(0.1)))


class TestFuseScored:

    def test_same_document_across_lists(self):
        entries = [EntryInfo("doc", score(v)) for v in (1.0, 40.0, 0.5, 12.0)]
        assert fuse_scored(entries, comb_max) == [EntryInfo("doc", score(40.0))]
        assert fuse_scored(entries, comb_sum) == [EntryInfo("doc", score(53.5))]
        assert fuse_scored(entries, comb_mnz) == [EntryInfo("doc", score(214.0))]

    def test_each_id_once_and_sorted(self, top_entries):
        fused = fuse_scored(top_entries, comb_sum)
        ids = [e.id for e in fused]
        assert len(ids) == len(set(ids))
        assert set(ids) == {e.docno for e in top_entries}
        _assert_sorted_descending(fused)

    @pytest.mark.parametrize(
        "combiner,suffix",
        [(comb_max, "max"), (comb_sum, "sum"), (comb_mnz, "mnz")],
    )
    def test_against_ground_truth(self, top_entries, combiner, suffix):
        out = fuse_scored(top_entries, combiner)
        gt = [to_entry(e) for e in parse_from_trec(read_resource(f"two_runs.out.{suffix}.txt"))]
        assert len(out) == len(gt)
        for got, expected in zip(out, gt):
            assert got.abs_diff_eq(expected), (got, expected)

    def test_empty_input(self):
        assert fuse_scored([], comb_sum) == []

    def test_input_order_irrelevant(self, top_entries):
        forward = fuse_scored(top_entries, comb_mnz)
        backward = fuse_scored(list(reversed(top_entries)), comb_mnz)
        assert forward == backward

    def test_accepts_generators(self, top_entries):
        assert fuse_scored((e for e in top_entries), comb_max) == fuse_scored(top_entries, comb_max)

    def test_custom_combiner(self):
        entries = [EntryInfo("a", score(2.0)), EntryInfo("a", score(4.0)), EntryInfo("b", score(5.0))]
        fused = fuse_scored(entries, lambda s: score(min(s)))
        assert fused == [EntryInfo("b", score(5.0)), EntryInfo("a", score(2.0))]

    def test_ties_keep_all_documents(self):
        entries = [EntryInfo(d, score(1.0)) for d in "abc"]
        fused = fuse_scored(entries, comb_max)
        assert {e.id for e in fused} == {"a", "b", "c"}
        assert all(e.score == 1.0 for e in fused)


class TestFuseScoredLists:

    def test_self_fusion_doubles_contributions(self):
        run = [RankedEntryInfo("a", score(0.4), 0), RankedEntryInfo("b", score(0.1), 1)]
        fused = fuse_scored_lists(run, run, comb_sum)
        doubled = fuse_scored([to_entry(e) for e in run + run], comb_sum)
        assert fused == doubled
        assert fused == [EntryInfo("a", score(0.8)), EntryInfo("b", score(0.2))]

    def test_equivalent_to_chaining(self, run_paths):
        run_a, run_b = (parse_from_trec(p.read_text()) for p in run_paths)
        assert fuse_scored_lists(run_a, run_b, comb_mnz) == fuse_scored(run_a + run_b, comb_mnz)

    def test_duplicates_within_a_list_are_merged(self):
        list_a = [EntryInfo("a", score(1.0)), EntryInfo("a", score(2.0))]
        fused = fuse_scored_lists(list_a, [], comb_mnz)
        assert fused == [EntryInfo("a", score(6.0))]


class TestFuseRanked:

    def test_rrf_against_ground_truth(self, top_entries):
        out = fuse_ranked(top_entries, rrf)
        gt = [to_entry(e) for e in parse_from_trec(read_resource("two_runs.out.rrf.txt"))]
        for got, expected in zip(out, gt, strict=True):
            assert got.abs_diff_eq(expected), (got, expected)

    def test_rank_only_entries(self):
        entries = [RankOnly("a", 0), RankOnly("b", 1), RankOnly("b", 0)]
        fused = fuse_ranked(entries, rrf)
        assert [e.id for e in fused] == ["b", "a"]
        assert fused[0].score == pytest.approx(1.5)

    def test_ranked_wrappers(self):
        list_a = ranked_list([EntryInfo("x", score(0.1)), EntryInfo("y", score(0.2))])
        list_b = ranked_list([EntryInfo("y", score(0.3))])
        fused = fuse_ranked([*list_a, *list_b], rrf)
        assert fused[0] == EntryInfo("y", score(1.5))
        assert fused[1] == EntryInfo("x", score(1.0))


class TestFuseHybrid:

    def test_pairs_are_grouped(self):
        seen = {}

        def combine(pairs):
            seen[len(seen)] = list(pairs)
            return score(sum(s / (1 + r) for r, s in pairs))

        entries = [
            RankedEntryInfo("a", score(1.0), 0),
            RankedEntryInfo("b", score(0.5), 1),
            RankedEntryInfo("a", score(0.6), 2),
        ]
        fused = fuse_hybrid(entries, combine)
        assert [e.id for e in fused] == ["a", "b"]
        assert fused[0].score == pytest.approx(1.0 + 0.6 / 3)
        assert fused[1].score == 0.25
        assert sorted(seen.values(), key=len) == [[(1, 0.5)], [(0, 1.0), (2, 0.6)]]

    def test_rank_only_entries_score_neutral(self):
        fused = fuse_hybrid([RankOnly("a", 1)], lambda pairs: score(pairs[0][1]))
        assert fused == [EntryInfo("a", score(1.0))]


class TestFuseDispatch:

    @pytest.mark.parametrize(
        "name,direct",
        [("combmax", lambda e: fuse_scored(e, comb_max)),
         ("sum", lambda e: fuse_scored(e, comb_sum)),
         ("CombMNZ", lambda e: fuse_scored(e, comb_mnz)),
         ("rrf", lambda e: fuse_ranked(e, rrf))],
    )
    def test_named_combiners(self, top_entries, name, direct):
        assert fuse(top_entries, get_combiner(name)) == direct(top_entries)
