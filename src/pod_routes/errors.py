"""Exceptions raised by the pod route reconciler."""

from __future__ import annotations

from typing import Optional


class PodRoutesError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(PodRoutesError, ValueError):
    """Raised at construction time when mandatory settings are missing."""


class NotFound(PodRoutesError):
    """A node, address or port does not exist (or no longer exists)."""


class NoAddressFound(NotFound):
    """The node has no address of the requested IP family."""


class MultipleResults(PodRoutesError):
    """More than one server carries the requested node name."""


class BackendError(PodRoutesError):
    """A remote call to the compute or network backend failed."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None) -> None:
        message = f"{operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class CompensationFailure(PodRoutesError):
    """Restoring a previous resource state failed during error unwind."""

    def __init__(self, description: str, cause: BaseException) -> None:
        super().__init__(f"unable to {description}: {cause}")
        self.description = description
        self.cause = cause


class OperationCancelled(PodRoutesError):
    """The caller cancelled the operation before the next remote call."""


class InvalidRoute(PodRoutesError, ValueError):
    """The route's destination is not a valid CIDR."""
