"""Exception hierarchy for anicache.

All exceptions inherit from :class:`AnicacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`anicache.exit_codes`.
The top-level error handler in :func:`anicache.app.main` catches
``AnicacheError`` and exits with the appropriate code.

Subclass hierarchy::

    AnicacheError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- DispatchError              (exit 5)
    |   +-- ProviderError          (exit 5)
    |   |   +-- UnknownOperationError
    |   +-- ShapeError             (exit 5)
    +-- PersistenceError           (exit 1, never surfaced by the cache)
    +-- ConfigError                (exit 1)
"""

from anicache.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PROVIDER_ERROR,
)


class AnicacheError(Exception):
    """Base exception for all anicache errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AnicacheError):
    """Raised for invalid CLI arguments or unsupported catalog requests."""

    exit_code = EXIT_INVALID_USAGE


class DispatchError(AnicacheError):
    """Base class for errors surfaced by :func:`anicache.dispatch.dispatch`."""

    exit_code = EXIT_PROVIDER_ERROR


class ProviderError(DispatchError):
    """Raised when the data provider reports a failure or raises."""


class UnknownOperationError(ProviderError):
    """Raised when an operation id has no provider function registered."""

    def __init__(self, operation: str):
        super().__init__(f"unknown operation: {operation}")
        self.operation = operation


class ShapeError(DispatchError):
    """Raised when a provider result is neither a success nor a failure."""


class PersistenceError(AnicacheError):
    """Raised when a cache snapshot cannot be read or written.

    The cache absorbs this error at the persistence boundary; it is only
    ever logged.
    """


class ConfigError(AnicacheError):
    """Raised for configuration problems (invalid JSON, failed validation)."""
