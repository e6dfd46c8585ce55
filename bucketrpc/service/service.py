"""
Service - the bucket operations exposed over RPC.
"""

import logging
from typing import Callable

from bucketrpc.models import (
    BucketNotFoundError,
    ErrorKind,
    KeyNotFoundError,
    Query,
    Response,
    Result,
    ServiceError,
)
from bucketrpc.service.resolver import Found, resolve
from bucketrpc.storage import Bucket, Store, StorageError, Transaction
from bucketrpc.storage import BucketNotFoundError as StoreBucketNotFoundError

logger = logging.getLogger(__name__)


class Service:
    """
    Nested-bucket key/value operations over a shared Store.

    Every operation runs in exactly one transaction: GetKey in a read-only
    one, everything else in a read-write one. The Store serializes writers
    and gives readers snapshots, so a Service carries no locks of its own and
    may be called from many threads at once.

    Each operation returns a Result and never raises.
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    @property
    def store(self) -> Store:
        return self._store

    def create_bucket(self, query: Query) -> Result:
        """
        Create bucket query.key under query.bucket, or at the root when the
        path is empty. Creating an existing bucket succeeds.
        """

        def action(tx: Transaction) -> Result:
            parent = self._parent(tx, query.bucket)
            parent.create_bucket_if_not_exists(query.key)
            return Result.ok()

        return self._execute("CreateBucket", query, write=True, action=action)

    def set_key(self, query: Query) -> Result:
        """Write query.value under query.key, overwriting any previous value."""

        def action(tx: Transaction) -> Result:
            bucket = self._resolve(tx, query.bucket)
            bucket.put(query.key, query.value or b"")
            return Result.ok()

        return self._execute("SetKey", query, write=True, action=action)

    def get_key(self, query: Query) -> Result:
        """Read query.key. The returned bytes outlive the transaction."""

        def action(tx: Transaction) -> Result:
            bucket = self._resolve(tx, query.bucket)
            value = bucket.get(query.key)
            if value is None:
                raise KeyNotFoundError()
            return Result.ok(bytes(value))

        return self._execute("GetKey", query, write=False, action=action)

    def delete(self, query: Query) -> Result:
        """Remove query.key. Removing a missing key succeeds."""

        def action(tx: Transaction) -> Result:
            bucket = self._resolve(tx, query.bucket)
            bucket.delete(query.key)
            return Result.ok()

        return self._execute("Delete", query, write=True, action=action)

    def delete_bucket(self, query: Query) -> Result:
        """
        Remove bucket query.key and everything nested in it.

        A missing target bucket fails with the store's own "bucket not found"
        message, distinct from the message of a path that does not resolve.
        """

        def action(tx: Transaction) -> Result:
            parent = self._parent(tx, query.bucket)
            parent.delete_bucket(query.key)
            return Result.ok()

        return self._execute("DeleteBucket", query, write=True, action=action)

    def _resolve(self, tx: Transaction, path: list[bytes]) -> Bucket:
        # Keys always live inside a bucket, never at the root namespace
        if not path:
            raise BucketNotFoundError()

        resolution = resolve(tx, path)
        if not isinstance(resolution, Found):
            raise BucketNotFoundError()
        return resolution.bucket

    def _parent(self, tx: Transaction, path: list[bytes]) -> Bucket:
        if not path:
            return tx.root
        return self._resolve(tx, path)

    def _execute(
        self,
        operation: str,
        query: Query,
        write: bool,
        action: Callable[[Transaction], Result],
    ) -> Result:
        logger.debug(f"{operation} bucket={query.bucket!r} key={query.key!r}")
        try:
            if write:
                return self._store.update(action)
            return self._store.view(action)
        except ServiceError as e:
            logger.debug(f"{operation} failed: {e}")
            return Result.failure(e.kind, str(e))
        except StoreBucketNotFoundError as e:
            logger.debug(f"{operation} failed: {e}")
            return Result.failure(ErrorKind.BUCKET_NOT_FOUND, str(e))
        except StorageError as e:
            logger.warning(f"{operation} storage error: {e}")
            return Result.failure(ErrorKind.ENGINE_ERROR, str(e))
        except Exception as e:
            logger.exception(f"{operation} unexpected error")
            return Result.failure(ErrorKind.ENGINE_ERROR, str(e))

    def call(self, method: str, query: Query) -> Response:
        """
        Dispatch an operation by its RPC name and return the wire Response.

        Raises:
            KeyError: method is not one of the service operations.
        """
        return self.methods()[method](query).to_response()

    def methods(self) -> dict[str, Callable[[Query], Result]]:
        return {
            "CreateBucket": self.create_bucket,
            "SetKey": self.set_key,
            "GetKey": self.get_key,
            "Delete": self.delete,
            "DeleteBucket": self.delete_bucket,
        }
