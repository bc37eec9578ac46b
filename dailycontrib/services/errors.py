"""Error taxonomy for the daily contribution pipeline."""

from __future__ import annotations


class ContributionError(Exception):
    """Base class for pipeline errors."""


class StorageError(ContributionError):
    """Raised when the storage directory or an artifact cannot be read or written."""


class CatalogError(ContributionError):
    """Raised when the catalog cannot produce a document for a category.

    This signals a programming error (an unregistered category, a broken
    template) and is not handled by the pipeline.
    """


class ConfigError(ContributionError):
    """Raised when configuration values are missing or malformed."""


class BackendOperationError(ContributionError):
    """Raised when a repository backend operation exits unsuccessfully.

    Parameters
    ----------
    operation
        Backend step that failed (``stage``, ``diff``, ``commit``, ``push`` ...).
    diagnostic
        The backend's own error output.
    """

    operation: str
    diagnostic: str

    def __init__(self, operation: str, diagnostic: str) -> None:
        self.operation = operation
        self.diagnostic = diagnostic
        super().__init__(f"{operation} failed: {diagnostic}" if diagnostic else f"{operation} failed")


class BackendIdentityWarning(UserWarning):
    """Non-fatal notice that no commit author identity is configured."""
