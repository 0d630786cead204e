"""Error taxonomy shared by the store, the view-models and the HTTP layer."""

from __future__ import annotations


class DeskError(Exception):
    """Base class for every error this package raises on purpose."""

    kind = "error"
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(DeskError):
    """Backend credentials missing or malformed. Needs action outside the app."""

    kind = "configuration"


class ConnectivityError(DeskError):
    """The request failed at the network layer (including timeouts)."""

    kind = "connectivity"
    retryable = True


class QueryError(DeskError):
    """The backend answered a well-formed request with an error payload."""

    kind = "query"

    def __init__(self, message: str, *, status_code: int | None = None, code: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class ValidationError(DeskError):
    """A client-side precondition failed; nothing was sent to the backend."""

    kind = "validation"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
