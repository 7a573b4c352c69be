"""Exceptions raised by the review and mastery engine."""


class EngineError(Exception):
    """Base class for errors raised by the engine."""


class InvalidArgumentError(EngineError, ValueError):
    """Raised when a caller passes malformed input (bad enum value, negative count)."""


class InvariantViolationError(EngineError, RuntimeError):
    """Raised when a stored snapshot breaks an assumption the engine relies on.

    The engine refuses to proceed instead of repairing the data.
    """
