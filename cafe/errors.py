"""Error types raised by the ordering core and its collaborators."""

from __future__ import annotations


class CafeError(Exception):
    """Base class for expected, recoverable failures."""


class ValidationError(CafeError, ValueError):
    """User input was rejected before any state changed."""


class TransitionError(CafeError):
    """An order lifecycle transition is not allowed from the current state."""


class NotFoundError(CafeError):
    """An entity referenced by id is not present."""


class PermissionDeniedError(CafeError):
    """The persistence boundary refused a read or write."""

    def __init__(self, path: str, operation: str, detail: str = "") -> None:
        self.path = path
        self.operation = operation
        message = f"{operation.capitalize()} permission denied for '{path}'."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class IdentityUnavailableError(CafeError):
    """No anonymous identity has been issued for this session yet."""


class AssistantError(CafeError):
    """The text-completion service failed; ``kind`` classifies the failure."""

    INVALID_CREDENTIAL = "invalid-credential"
    NETWORK = "network"
    OTHER = "other"

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        super().__init__(message)
