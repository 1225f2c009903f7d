"""Tests for the Ship, Captain and Crew evaluator."""

import pytest

from dicetable.evaluators.ship_captain_crew import (
    NOT_QUALIFIED,
    QUALIFIED,
    ShipCaptainCrewEvaluator,
)
from dicetable.models.die import Die, dice_from_faces
from dicetable.models.round_state import PlayerTurnState


@pytest.fixture
def evaluator():
    return ShipCaptainCrewEvaluator()


class TestFreezing:
    def test_freezes_in_sequence_on_one_roll(self, evaluator):
        dice = evaluator.apply_roll_rules(dice_from_faces([4, 5, 6, 3, 2]))
        assert [d.frozen for d in dice] == [True, True, True, False, False]
        assert all(d.held for d in dice if d.frozen)

    def test_captain_waits_for_ship(self, evaluator):
        dice = evaluator.apply_roll_rules(dice_from_faces([5, 4, 3, 2, 2]))
        assert not any(d.frozen for d in dice)

    def test_crew_waits_for_captain(self, evaluator):
        dice = evaluator.apply_roll_rules(dice_from_faces([6, 4, 3, 2, 2]))
        assert [d.frozen for d in dice] == [True, False, False, False, False]

    def test_only_one_ship_freezes(self, evaluator):
        dice = evaluator.apply_roll_rules(dice_from_faces([6, 6, 2, 2, 2]))
        assert sum(d.frozen for d in dice) == 1

    def test_builds_on_earlier_freezes(self, evaluator):
        dice = (Die(6, held=True, frozen=True), Die(5), Die(4), Die(1), Die(1))
        settled = evaluator.apply_roll_rules(dice)
        assert evaluator.is_qualified(settled)


class TestEvaluate:
    def test_qualified_scores_cargo(self, evaluator):
        result = evaluator.evaluate([6, 5, 4, 6, 6])
        assert result.category == QUALIFIED
        assert result.face_value == 12
        assert result.rank == 112
        assert result.description == "Cargo 12"

    def test_not_qualified(self, evaluator):
        result = evaluator.evaluate([6, 5, 3, 2, 2])
        assert result.category == NOT_QUALIFIED
        assert result.rank == 0
        assert result.description == "NQ"

    def test_nq_loses_to_lowest_cargo(self, evaluator):
        low = evaluator.evaluate([6, 5, 4, 1, 1])
        nq = evaluator.evaluate([2, 2, 2, 2, 2])
        assert evaluator.compare(low, nq) == 1

    def test_qualified_ties(self, evaluator):
        a = evaluator.evaluate([6, 5, 4, 3, 3])
        b = evaluator.evaluate([4, 5, 6, 2, 4])
        assert evaluator.determine_winners([a, b]) == [0, 1]


class TestPermissions:
    def test_nothing_is_holdable(self, evaluator):
        assert not evaluator.can_hold(Die(3))
        assert not evaluator.can_hold(Die(6, held=True, frozen=True))

    def test_lock_in_requires_qualification(self, evaluator):
        unqualified = PlayerTurnState(
            dice=evaluator.apply_roll_rules(dice_from_faces([6, 2, 2, 3, 3])), rolls_remaining=2
        )
        qualified = PlayerTurnState(
            dice=evaluator.apply_roll_rules(dice_from_faces([6, 5, 4, 3, 3])), rolls_remaining=2
        )
        assert not evaluator.can_lock_in(unqualified)
        assert evaluator.can_lock_in(qualified)
