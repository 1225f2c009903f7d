"""Tests for round documents and actions."""

from dicetable.models.die import Die
from dicetable.models.enums import ActionKind, GameVariant, RoundPhase
from dicetable.models.hand import HandResult
from dicetable.models.round_state import (
    PlayerAction,
    PlayerTurnState,
    RoundState,
    initial_player_states,
)


def _state() -> RoundState:
    result = HandResult(rank=463, of_a_kind_count=4, description="Four 6s", face_value=6)
    return RoundState(
        round_id="r1",
        variant=GameVariant.HORSES,
        turn_order=("a", "b"),
        current_turn_player_id="b",
        player_states={
            "a": PlayerTurnState(
                dice=tuple(Die(v, held=True) for v in (6, 6, 6, 1, 2)),
                rolls_remaining=0,
                is_complete=True,
                result=result,
            ),
            "b": PlayerTurnState(),
        },
        phase=RoundPhase.PLAYING,
        version=4,
        host_epoch=9,
        acks={"client-a": 2},
    )


def test_document_survives_json_round_trip():
    state = _state()
    assert RoundState.from_dict(state.to_dict()) == state


def test_completed_results_in_turn_order():
    results = _state().completed_results()
    assert list(results) == ["a"]
    assert results["a"].description == "Four 6s"


def test_with_player_state_does_not_mutate():
    state = _state()
    updated = state.with_player_state("b", PlayerTurnState(rolls_remaining=2))
    assert state.player_states["b"].rolls_remaining == 3
    assert updated.player_states["b"].rolls_remaining == 2


def test_is_turn_of():
    state = _state()
    assert state.is_turn_of("b")
    assert not state.is_turn_of("a")


def test_roll_window():
    assert not PlayerTurnState(rolls_remaining=3).can_act_between_rolls
    assert PlayerTurnState(rolls_remaining=2).can_act_between_rolls
    assert not PlayerTurnState(rolls_remaining=0).can_act_between_rolls


def test_initial_player_states():
    states = initial_player_states(["x", "y"], num_dice=5)
    assert set(states) == {"x", "y"}
    assert all(len(s.dice) == 5 and s.rolls_remaining == 3 for s in states.values())


def test_action_round_trip():
    action = PlayerAction(
        client_id="c", player_id="p", kind=ActionKind.ROLL, faces=(1, 2), edit_token=3
    )
    assert PlayerAction.from_dict(action.to_dict()) == action
