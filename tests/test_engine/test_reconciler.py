"""Tests for optimistic local reconciliation."""

from dataclasses import replace

import pytest

from dicetable.engine.reconciler import OptimisticLocalReconciler
from dicetable.models.die import Die
from dicetable.models.enums import ReconcileMode, RoundPhase
from dicetable.models.round_state import PlayerTurnState, RoundState


def snapshot(version, rolls_remaining=3, acks=None, epoch=1, held=False):
    turn = PlayerTurnState(
        dice=tuple(Die(value=2, held=held) for _ in range(5)), rolls_remaining=rolls_remaining
    )
    return RoundState(
        round_id="r",
        turn_order=("me", "other"),
        current_turn_player_id="me",
        player_states={"me": turn, "other": PlayerTurnState()},
        phase=RoundPhase.PLAYING,
        version=version,
        host_epoch=epoch,
        acks=acks or {},
    )


def local_edit(base):
    """The same document with 'me' having rolled locally."""
    return base.with_player_state("me", replace(base.player_states["me"], rolls_remaining=2))


@pytest.fixture
def token_reconciler(clock):
    return OptimisticLocalReconciler("c1", "me", clock, protection_window=1.5)


@pytest.fixture
def window_reconciler(clock):
    return OptimisticLocalReconciler(
        "c1", "me", clock, protection_window=1.5, mode=ReconcileMode.WINDOW
    )


class TestOrdering:
    def test_first_snapshot_becomes_view(self, token_reconciler):
        assert token_reconciler.on_snapshot(snapshot(1))
        assert token_reconciler.view.version == 1

    def test_older_version_dropped(self, token_reconciler):
        token_reconciler.on_snapshot(snapshot(5))
        assert not token_reconciler.on_snapshot(snapshot(4))
        assert token_reconciler.view.version == 5

    def test_duplicate_delivery_is_harmless(self, token_reconciler):
        token_reconciler.on_snapshot(snapshot(5))
        assert token_reconciler.on_snapshot(snapshot(5))
        assert token_reconciler.view.version == 5

    def test_newer_epoch_wins_over_higher_version(self, token_reconciler):
        token_reconciler.on_snapshot(snapshot(9, epoch=1))
        assert token_reconciler.on_snapshot(snapshot(2, epoch=2))
        assert not token_reconciler.on_snapshot(snapshot(10, epoch=1))


class TestTokenMode:
    def test_unacked_echo_keeps_local_seat(self, token_reconciler):
        base = snapshot(1)
        token_reconciler.on_snapshot(base)
        token = token_reconciler.record_local_edit(local_edit(base))
        assert token == 1

        # Someone else's change arrives before the host applied ours
        incoming = snapshot(2)
        assert not token_reconciler.on_snapshot(incoming)
        assert token_reconciler.view.version == 2
        assert token_reconciler.view.player_states["me"].rolls_remaining == 2
        assert token_reconciler.has_pending_edit

    def test_ack_releases_immediately(self, token_reconciler):
        base = snapshot(1)
        token_reconciler.on_snapshot(base)
        token_reconciler.record_local_edit(local_edit(base))

        acked = snapshot(3, rolls_remaining=2, acks={"c1": 1})
        assert token_reconciler.on_snapshot(acked)
        assert token_reconciler.view is acked
        assert not token_reconciler.has_pending_edit

    def test_ack_for_older_token_does_not_release(self, token_reconciler):
        base = snapshot(1)
        token_reconciler.on_snapshot(base)
        token_reconciler.record_local_edit(local_edit(base))
        token_reconciler.record_local_edit(local_edit(base))
        assert token_reconciler.last_token == 2

        assert not token_reconciler.on_snapshot(snapshot(2, acks={"c1": 1}))

    def test_window_caps_unacked_edit(self, token_reconciler, clock):
        base = snapshot(1)
        token_reconciler.on_snapshot(base)
        token_reconciler.record_local_edit(local_edit(base))

        clock.advance(1.5)
        assert token_reconciler.on_snapshot(snapshot(2))
        assert token_reconciler.view.player_states["me"].rolls_remaining == 3


class TestWindowMode:
    def test_snapshots_masked_inside_window(self, window_reconciler, clock):
        base = snapshot(1)
        window_reconciler.on_snapshot(base)
        window_reconciler.record_local_edit(local_edit(base))

        clock.advance(1.0)
        # Even an acknowledging snapshot is masked in window mode
        assert not window_reconciler.on_snapshot(snapshot(2, acks={"c1": 1}))
        assert window_reconciler.view.player_states["me"].rolls_remaining == 2

    def test_snapshot_wins_after_window(self, window_reconciler, clock):
        base = snapshot(1)
        window_reconciler.on_snapshot(base)
        window_reconciler.record_local_edit(local_edit(base))

        clock.advance(2.0)
        assert window_reconciler.on_snapshot(snapshot(2))
        assert window_reconciler.view.player_states["me"].rolls_remaining == 3


def test_spectator_never_masks(clock):
    reconciler = OptimisticLocalReconciler("c9", None, clock)
    base = snapshot(1)
    reconciler.on_snapshot(base)
    reconciler.record_local_edit(local_edit(base))
    assert reconciler.on_snapshot(snapshot(2))


def test_completed_local_turn_keeps_turn_pointer(token_reconciler):
    base = snapshot(1)
    token_reconciler.on_snapshot(base)
    finished = replace(
        base.with_player_state(
            "me", replace(base.player_states["me"], rolls_remaining=0, is_complete=True)
        ),
        current_turn_player_id="other",
    )
    token_reconciler.record_local_edit(finished)

    token_reconciler.on_snapshot(snapshot(2))
    assert token_reconciler.view.current_turn_player_id == "other"
    assert token_reconciler.view.player_states["me"].is_complete
