"""
Embedded transactional bucket store.
"""

from bucketrpc.storage.bucket import Bucket
from bucketrpc.storage.errors import (
    BucketNameRequiredError,
    BucketNotFoundError,
    DatabaseNotOpenError,
    DatabaseTimeoutError,
    IncompatibleValueError,
    KeyRequiredError,
    StorageError,
    TxClosedError,
    TxNotWritableError,
)
from bucketrpc.storage.store import Store, Transaction

__all__ = [
    "Bucket",
    "BucketNameRequiredError",
    "BucketNotFoundError",
    "DatabaseNotOpenError",
    "DatabaseTimeoutError",
    "IncompatibleValueError",
    "KeyRequiredError",
    "StorageError",
    "Store",
    "Transaction",
    "TxClosedError",
    "TxNotWritableError",
]
