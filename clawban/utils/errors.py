"""Error handling utilities."""


class ClawbanError(Exception):
    """Base exception for the Clawban backend."""
    pass


class InvalidArgumentError(ClawbanError):
    """Caller contract violation (bad enum value, over-length field, malformed id)."""
    pass


class StorageError(ClawbanError):
    """Durable store operation error."""
    pass


class ConflictError(StorageError):
    """Unique constraint violation reported by the durable store."""
    pass
