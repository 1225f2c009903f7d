"""Engine error taxonomy.

IllegalTransition and MissingParticipant never escape the engine: the first is
logged and turned into a no-op, the second resolves to a deterministic fallback.
WriteFailure is logged by the host and left to the caller's retry policy.
InvariantViolation is a defect and propagates.
"""


class DiceTableError(Exception):
    """Base class for all engine errors."""


class IllegalTransition(DiceTableError):
    """An action arrived for the wrong seat, phase or roll window."""

    def __init__(self, operation: str, player_id: str | None, reason: str) -> None:
        """Initialize with the rejected operation and why it was rejected."""
        super().__init__(f"{operation} by {player_id}: {reason}")
        self.operation = operation
        self.player_id = player_id
        self.reason = reason


class WriteFailure(DiceTableError):
    """The replication channel rejected or failed a write."""

    def __init__(self, round_id: str, reason: str) -> None:
        """Initialize with the round and failure reason."""
        super().__init__(f"write for round {round_id} failed: {reason}")
        self.round_id = round_id
        self.reason = reason


class InvariantViolation(DiceTableError):
    """Round state broke an invariant. Always a bug."""


class MissingParticipant(DiceTableError):
    """A round or dealer selection started with no eligible participants."""
