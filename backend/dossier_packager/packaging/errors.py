"""
Domain-specific exception hierarchy for dossier packaging.

All packaging exceptions inherit from PackagingError so callers can
catch broadly or narrowly as needed.  Each exception carries structured
context (dossier ID, partition, etc.) for logging/debugging.
"""

from __future__ import annotations


class PackagingError(Exception):
    """Base exception for all packaging errors."""

    def __init__(
        self,
        message: str,
        *,
        dossier_id: str | None = None,
        graph: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.dossier_id = dossier_id
        self.graph = graph
        self.details = details or {}
        super().__init__(message)


class SelectionError(PackagingError):
    """Eligible dossiers could not be selected (store failure or malformed rows)."""
    pass


class InvalidTransitionError(PackagingError):
    """A status change would violate the packaging state machine."""

    def __init__(
        self,
        message: str,
        *,
        target_status: str | None = None,
        **kwargs,
    ) -> None:
        self.target_status = target_status
        super().__init__(message, **kwargs)


class DescriptorError(PackagingError):
    """Rendering or writing a descriptor document failed."""
    pass


class ArchiveError(PackagingError):
    """Writing the zip archive failed."""
    pass


class StorageError(PackagingError):
    """A logical file reference could not be resolved to local storage."""
    pass


class RegistrationError(PackagingError):
    """Registering the produced artifact in the store failed."""
    pass


class GateError(PackagingError):
    """The run lock could not be checked; no batch was started."""
    pass
