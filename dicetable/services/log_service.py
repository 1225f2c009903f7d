"""Structured event logging."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class LogService:
    """Writes table and round events as key=value lines.

    Example:
        event=pot_awarded | table_id=t1 | winner=s2 | amount=6

    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        """Initialize with the logger to write to."""
        self._logger = log or logger

    @staticmethod
    def format(event: str, fields: dict[str, Any]) -> str:
        """Render an event and its fields as one line."""
        parts = [f"event={event}"]
        parts.extend(f"{k}={v}" for k, v in fields.items())
        return " | ".join(parts)

    def event(self, event: str, level: int = logging.INFO, **fields: Any) -> None:
        """Log an event at the given level."""
        if self._logger.isEnabledFor(level):
            self._logger.log(level, self.format(event, fields))

    def info(self, event: str, **fields: Any) -> None:
        """Log an info event."""
        self.event(event, logging.INFO, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        """Log a warning event."""
        self.event(event, logging.WARNING, **fields)

    def error(self, event: str, **fields: Any) -> None:
        """Log an error event."""
        self.event(event, logging.ERROR, **fields)
