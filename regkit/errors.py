"""Exceptions raised by regkit."""


class RegkitError(Exception):
    """Base exception for all regkit errors."""

    pass


class StructuralError(RegkitError):
    """Raised when an automaton description has the wrong shape."""

    pass


class InvariantViolation(RegkitError):
    """Raised when an automaton breaks one of its invariants."""

    pass


class PreconditionError(RegkitError):
    """Raised when an operation gets arguments it can't work with."""

    pass


class NotationError(RegkitError):
    """Raised when a linear regex can't be parsed or printed."""

    def __init__(self, message: str, position: int = -1) -> None:
        self.position = position
        super().__init__(message)

    def __str__(self) -> str:
        if self.position >= 0:
            return f"{super().__str__()} at position {self.position}"
        return super().__str__()
