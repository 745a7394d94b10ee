"""Error types raised by the sync engine."""

from __future__ import annotations


class OKRHubError(Exception):
    """Base class for all engine errors."""


class ValidationError(OKRHubError):
    """Malformed external id or missing required field."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(OKRHubError):
    """A referenced entity does not exist in the local store."""

    def __init__(self, message: str, entity_type: str | None = None, external_id: str | None = None) -> None:
        super().__init__(message)
        self.entity_type = entity_type
        self.external_id = external_id


class ConflictError(OKRHubError):
    """Reserved. Duplicate creates are idempotent no-ops, not conflicts."""


class TransportError(OKRHubError):
    """Network failure, timeout, non-2xx or unparseable response from LinkHub."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteRejection(OKRHubError):
    """LinkHub answered but flagged an individual item as failed."""

    def __init__(self, message: str, entity_type: str, external_id: str) -> None:
        super().__init__(message)
        self.entity_type = entity_type
        self.external_id = external_id


class AuthorizationError(OKRHubError):
    """The caller-supplied authorization check rejected the operation."""


class NotConfiguredError(OKRHubError):
    """LinkHub connection details are missing."""
