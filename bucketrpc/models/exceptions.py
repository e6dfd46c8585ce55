"""
Exceptions raised by service operations.

The service turns each of these into a failed Result; none of them escape to
RPC callers.
"""

from bucketrpc.models.result import ErrorKind


class ServiceError(Exception):
    """Base class for domain failures carrying an ErrorKind."""

    kind: ErrorKind = ErrorKind.ENGINE_ERROR


class BucketNotFoundError(ServiceError):
    """
    Raised when a bucket path does not resolve.

    The message is shared by every resolution failure, whatever level was
    missing.
    """

    kind = ErrorKind.BUCKET_NOT_FOUND

    def __init__(self, message: str = "Bucket not Found") -> None:
        super().__init__(message)


class KeyNotFoundError(ServiceError):
    """Raised when GetKey targets a key absent from a resolved bucket."""

    kind = ErrorKind.KEY_NOT_FOUND

    def __init__(self, message: str = "Key not Found") -> None:
        super().__init__(message)
