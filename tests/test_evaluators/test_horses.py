"""Tests for the Horses evaluator."""

from collections import Counter

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from dicetable.evaluators.horses import HorsesEvaluator, best_target_face
from dicetable.models.die import Die

faces_strategy = st.lists(st.integers(1, 6), min_size=5, max_size=5)


@pytest.fixture
def evaluator():
    return HorsesEvaluator()


class TestExamples:
    """Known hands."""

    def test_wild_completes_four_of_a_kind(self, evaluator):
        result = evaluator.evaluate([6, 6, 6, 1, 2])
        assert result.of_a_kind_count == 4
        assert result.face_value == 6
        assert result.wilds_used == 1
        assert result.description == "Four 6s"
        assert result.unused == (4,)

    def test_straight_is_high_card(self, evaluator):
        result = evaluator.evaluate([2, 3, 4, 5, 6])
        assert result.of_a_kind_count == 1
        assert result.description == "6 high"
        assert result.rank == 161
        assert result.unused == (0, 1, 2, 3)

    def test_five_wilds(self, evaluator):
        result = evaluator.evaluate([1, 1, 1, 1, 1])
        assert result.description == "Five 1s"
        assert result.wilds_used == 5
        assert result.rank == 570

    def test_five_wilds_beat_five_sixes(self, evaluator):
        aces = evaluator.evaluate([1, 1, 1, 1, 1])
        sixes = evaluator.evaluate([6, 6, 6, 6, 6])
        assert evaluator.compare(aces, sixes) == 1

    def test_pair(self, evaluator):
        result = evaluator.evaluate([3, 3, 2, 4, 5])
        assert result.description == "Pair of 3s"
        assert result.rank == 232

    def test_single_wild_pairs_the_highest_face(self, evaluator):
        result = evaluator.evaluate([1, 2, 3, 4, 6])
        assert result.description == "Pair of 6s"
        assert result.wilds_used == 1

    def test_wilds_spread_to_higher_face_on_tie(self, evaluator):
        result = evaluator.evaluate([1, 1, 2, 3, 4])
        assert result.description == "Three 4s"
        assert result.wilds_used == 2
        assert result.unused == (2, 3)

    def test_fewer_wilds_rank_higher(self, evaluator):
        natural = evaluator.evaluate([6, 6, 6, 6, 2])
        wild = evaluator.evaluate([6, 6, 6, 1, 2])
        assert natural.rank > wild.rank

    def test_any_five_of_a_kind_beats_any_four(self, evaluator):
        weakest_five = evaluator.evaluate([1, 1, 1, 1, 2])
        strongest_four = evaluator.evaluate([6, 6, 6, 6, 2])
        assert weakest_five.rank > strongest_four.rank

    def test_accepts_dice(self, evaluator):
        dice = [Die(value=v, held=True) for v in (5, 5, 5, 2, 3)]
        assert evaluator.evaluate(dice).description == "Three 5s"

    def test_rejects_unrolled_die(self, evaluator):
        with pytest.raises(ValueError, match="unrolled"):
            evaluator.evaluate([0, 2, 3, 4, 5])

    def test_rejects_wrong_count(self, evaluator):
        with pytest.raises(ValueError, match="Expected 5 dice"):
            evaluator.evaluate([2, 3, 4])


class TestWinners:
    def test_tie_returns_every_index(self, evaluator):
        results = [
            evaluator.evaluate([5, 5, 2, 3, 4]),
            evaluator.evaluate([6, 6, 6, 2, 3]),
            evaluator.evaluate([3, 6, 6, 6, 2]),
        ]
        assert evaluator.determine_winners(results) == [1, 2]

    def test_no_results(self, evaluator):
        assert evaluator.determine_winners([]) == []


def test_best_target_face_prefers_higher_face():
    assert best_target_face([2, 2, 5, 5, 3]) == (5, 2)
    assert best_target_face([1, 1, 1, 1, 1]) == (6, 5)


class TestProperties:
    """Property-based checks over every possible hand."""

    @given(faces=faces_strategy)
    @settings(max_examples=200, deadline=None)
    def test_order_does_not_matter(self, faces):
        evaluator = HorsesEvaluator()
        assert evaluator.evaluate(faces).rank == evaluator.evaluate(sorted(faces)).rank

    @given(faces=faces_strategy)
    @settings(max_examples=200, deadline=None)
    def test_count_covers_naturals(self, faces):
        result = HorsesEvaluator().evaluate(faces)
        naturals = Counter(f for f in faces if f != 1)
        assert result.of_a_kind_count >= max(naturals.values(), default=0)

    @given(faces=faces_strategy)
    @settings(max_examples=200, deadline=None)
    def test_five_wilds_is_unbeatable(self, faces):
        evaluator = HorsesEvaluator()
        assert evaluator.evaluate([1, 1, 1, 1, 1]).rank >= evaluator.evaluate(faces).rank

    @given(faces=faces_strategy)
    @settings(max_examples=200, deadline=None)
    def test_unused_dice_complement_the_group(self, faces):
        result = HorsesEvaluator().evaluate(faces)
        assert len(result.unused) == 5 - result.of_a_kind_count
        assert all(0 <= i < 5 for i in result.unused)

    @given(a=faces_strategy, b=faces_strategy)
    @settings(max_examples=200, deadline=None)
    def test_bigger_group_always_wins(self, a, b):
        evaluator = HorsesEvaluator()
        ra, rb = evaluator.evaluate(a), evaluator.evaluate(b)
        if ra.of_a_kind_count > rb.of_a_kind_count:
            assert ra.rank > rb.rank
