"""Domain error types."""


class AdherenceError(Exception):
    """Base error for the adherence service."""


class InvalidInput(AdherenceError, ValueError):  # noqa: N818
    """Raised when a request is rejected before any write happens."""


class StorageUnavailable(AdherenceError):  # noqa: N818
    """Raised when the storage backend cannot be reached."""
