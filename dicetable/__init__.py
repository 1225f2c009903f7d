"""Dice table game engine: hand evaluation, turn state machine, bots and replication."""

__version__ = "1.0.0"
