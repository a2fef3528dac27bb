"""Custom exception hierarchy for listkit."""

from __future__ import annotations


class ListKitError(Exception):
    """Base class for all custom errors raised by listkit."""


# --- 3-layer hierarchy ---

class DomainError(ListKitError):
    """Base class for errors raised by the data structures."""


class ApplicationError(ListKitError):
    """Base class for errors raised while coordinating list data."""


class ConfigurationError(ListKitError):
    """Base class for invalid configuration."""


# --- Application errors ---

class FetchError(ApplicationError):
    """Raised (and reported) when the fetch collaborator fails during a reload.

    The original exception is kept as ``__cause__`` and on :attr:`original`.
    """

    def __init__(self, message: str, original: BaseException | None = None) -> None:
        super().__init__(message)
        self.original = original


class InvalidStructureError(ApplicationError):
    """Raised when a fetcher returns something that cannot become a structure."""


# --- Configuration errors ---

class OptionsValidationError(ConfigurationError):
    """Raised when coordinator options fail schema validation."""
