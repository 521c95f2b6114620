"""
Stack Games - Engine Errors

Error conditions raised by the engine. Each carries a stable `kind` string so
that a server can forward it to a client without exposing Python types.
"""


class StackGamesError(ValueError):
    """Base class for engine errors."""

    kind = "error"


class IllegalMoveError(StackGamesError):
    """The requested move is not in the current legal set."""

    kind = "illegal_move"


class InvalidStateError(StackGamesError):
    """Persisted or wire data cannot be turned into a valid engine state."""

    kind = "invalid_state"
