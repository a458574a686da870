"""Service error hierarchy for chain reads, metadata fetching and storage.

This module defines the exception hierarchy for service-level errors:
- ServiceError: Base for all service errors
- TransientError: Retryable errors (network, rate limits, timeouts, lost races)
- PermanentError: Non-retryable errors (malformed input, missing entry points)
"""


class ServiceError(Exception):
    """Base exception for all service errors."""

    pass


class TransientError(ServiceError):
    """Transient error that may succeed on retry.

    Examples:
    - Network timeouts
    - Rate limit exceeded (429)
    - Node unavailable (502, 503)
    - Conditional write lost to a concurrent writer
    """

    pass


class PermanentError(ServiceError):
    """Permanent error that will not succeed on retry.

    Examples:
    - Malformed transfer event payload
    - Contract does not expose the requested entry point
    - Authentication failures (401, 403)
    """

    pass


# Starknet RPC errors
class RpcError(TransientError):
    """JSON-RPC transport failure or unexpected response shape."""

    pass


class RpcRateLimitError(RpcError):
    """Rate limit exceeded (429)."""

    pass


class ContractCallError(PermanentError):
    """The node rejected a read-only contract call (missing entry point, revert)."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class BlockFetchError(TransientError):
    """Block header (and therefore its timestamp) could not be read."""

    pass


# Transfer pipeline errors
class EventDecodeError(PermanentError):
    """Raw transfer event could not be decoded."""

    pass


class ConcurrentUpdateError(TransientError):
    """Conditional write kept losing against concurrent writers."""

    pass


# Metadata errors
class MetadataFetchError(TransientError):
    """Metadata document could not be fetched or is not JSON."""

    pass


# File storage errors
class StorageError(ServiceError):
    """Base exception for file storage errors."""

    pass


class StorageAuthError(StorageError, PermanentError):
    """Storage backend rejected our credentials (401, 403)."""

    pass


class StorageNetworkError(StorageError, TransientError):
    """Network timeout or storage backend unavailable."""

    pass
