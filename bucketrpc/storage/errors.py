"""
Errors raised by the bucket storage engine.
"""


class StorageError(Exception):
    """Base class for every failure reported by the storage engine."""


class DatabaseNotOpenError(StorageError):
    def __init__(self) -> None:
        super().__init__("database not open")


class DatabaseTimeoutError(StorageError):
    """
    Raised when a transaction cannot acquire the database lock in time.

    Only one read-write transaction may be active at once, so writers wait
    for each other up to the store's configured timeout.
    """

    def __init__(self) -> None:
        super().__init__("timeout")


class TxClosedError(StorageError):
    def __init__(self) -> None:
        super().__init__("tx closed")


class TxNotWritableError(StorageError):
    def __init__(self) -> None:
        super().__init__("tx not writable")


class BucketNotFoundError(StorageError):
    """Raised when deleting a nested bucket that does not exist."""

    def __init__(self) -> None:
        super().__init__("bucket not found")


class BucketNameRequiredError(StorageError):
    def __init__(self) -> None:
        super().__init__("bucket name required")


class KeyRequiredError(StorageError):
    def __init__(self) -> None:
        super().__init__("key required")


class IncompatibleValueError(StorageError):
    """
    Raised when a key and a nested bucket would share a name.

    Keys and nested buckets live in a single namespace inside their parent
    bucket: a value cannot be written over a bucket and a bucket cannot be
    created over a value.
    """

    def __init__(self) -> None:
        super().__init__("incompatible value")
