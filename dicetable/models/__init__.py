"""Dice table domain models."""

from dicetable.models.card import Card, Deck
from dicetable.models.dealer_selection import DealerSelectionState, DealtCard
from dicetable.models.die import Die, FaceSource, PresetFaceSource, RandomFaceSource
from dicetable.models.enums import (
    ActionKind,
    DealerSelectionPhase,
    GameVariant,
    HandTier,
    RoundPhase,
)
from dicetable.models.hand import HandResult
from dicetable.models.player import Seat
from dicetable.models.round_state import PlayerAction, PlayerTurnState, RoundState
from dicetable.models.table import Table

__all__ = [
    "ActionKind",
    "Card",
    "DealerSelectionPhase",
    "DealerSelectionState",
    "DealtCard",
    "Deck",
    "Die",
    "FaceSource",
    "GameVariant",
    "HandResult",
    "HandTier",
    "PlayerAction",
    "PlayerTurnState",
    "PresetFaceSource",
    "RandomFaceSource",
    "RoundPhase",
    "RoundState",
    "Seat",
    "Table",
]
