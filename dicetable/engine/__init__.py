"""Round engine: turn state machine, dealer selection, host and observer sessions."""
