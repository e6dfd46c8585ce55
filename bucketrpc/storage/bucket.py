"""
Bucket - a named container of key/value pairs and nested buckets.
"""

from typing import TYPE_CHECKING

from bucketrpc.storage.errors import (
    BucketNameRequiredError,
    BucketNotFoundError,
    IncompatibleValueError,
    KeyRequiredError,
)

if TYPE_CHECKING:
    from bucketrpc.storage.store import Transaction

# Row id of the hidden bucket that parents every root-level bucket
ROOT_BUCKET_ID = 0

_DELETE_SUBTREE_ENTRIES = """
    WITH RECURSIVE subtree(id) AS (
        SELECT ?
        UNION ALL
        SELECT buckets.id FROM buckets JOIN subtree ON buckets.parent_id = subtree.id
    )
    DELETE FROM entries WHERE bucket_id IN (SELECT id FROM subtree)
"""

_DELETE_SUBTREE_BUCKETS = """
    WITH RECURSIVE subtree(id) AS (
        SELECT ?
        UNION ALL
        SELECT buckets.id FROM buckets JOIN subtree ON buckets.parent_id = subtree.id
    )
    DELETE FROM buckets WHERE id IN (SELECT id FROM subtree)
"""


class Bucket:
    """
    Handle to one bucket, valid only for the lifetime of its transaction.

    Attributes:
        tx: The transaction the handle belongs to.
        id: Row id of the bucket.
    """

    def __init__(self, tx: "Transaction", id: int) -> None:
        self.tx = tx
        self.id = id

    def bucket(self, name: bytes) -> "Bucket | None":
        """Return the nested bucket called name, or None if it does not exist."""
        row = self.tx.execute(
            "SELECT id FROM buckets WHERE parent_id = ? AND name = ?",
            (self.id, name),
        ).fetchone()
        return None if row is None else Bucket(self.tx, row[0])

    def create_bucket_if_not_exists(self, name: bytes) -> "Bucket":
        """
        Return the nested bucket called name, creating it if absent.

        Raises:
            BucketNameRequiredError: name is empty.
            IncompatibleValueError: A key called name already holds a value.
        """
        self.tx.check_writable()
        if not name:
            raise BucketNameRequiredError()

        existing = self.bucket(name)
        if existing is not None:
            return existing
        if self._has_key(name):
            raise IncompatibleValueError()

        cursor = self.tx.execute(
            "INSERT INTO buckets (parent_id, name) VALUES (?, ?)", (self.id, name)
        )
        return Bucket(self.tx, cursor.lastrowid)

    def delete_bucket(self, name: bytes) -> None:
        """
        Delete the nested bucket called name along with everything beneath it.

        Raises:
            BucketNotFoundError: No nested bucket is called name.
            IncompatibleValueError: name refers to a key, not a bucket.
        """
        self.tx.check_writable()
        child = self.bucket(name)
        if child is None:
            if self._has_key(name):
                raise IncompatibleValueError()
            raise BucketNotFoundError()

        self.tx.execute(_DELETE_SUBTREE_ENTRIES, (child.id,))
        self.tx.execute(_DELETE_SUBTREE_BUCKETS, (child.id,))

    def get(self, key: bytes) -> bytes | None:
        """
        Return the value stored under key, or None.

        Nested buckets are not values: looking up a bucket name returns None.
        """
        row = self.tx.execute(
            "SELECT value FROM entries WHERE bucket_id = ? AND key = ?",
            (self.id, key),
        ).fetchone()
        return None if row is None else bytes(row[0])

    def put(self, key: bytes, value: bytes) -> None:
        """
        Store value under key, replacing any previous value.

        Raises:
            KeyRequiredError: key is empty.
            IncompatibleValueError: key names a nested bucket.
        """
        self.tx.check_writable()
        if not key:
            raise KeyRequiredError()
        if self.bucket(key) is not None:
            raise IncompatibleValueError()

        self.tx.execute(
            "INSERT OR REPLACE INTO entries (bucket_id, key, value) VALUES (?, ?, ?)",
            (self.id, key, bytes(value)),
        )

    def delete(self, key: bytes) -> None:
        """Remove key if present. Removing a missing key is a no-op."""
        self.tx.check_writable()
        if self.bucket(key) is not None:
            raise IncompatibleValueError()

        self.tx.execute(
            "DELETE FROM entries WHERE bucket_id = ? AND key = ?", (self.id, key)
        )

    def _has_key(self, key: bytes) -> bool:
        row = self.tx.execute(
            "SELECT 1 FROM entries WHERE bucket_id = ? AND key = ?", (self.id, key)
        ).fetchone()
        return row is not None

    def __repr__(self) -> str:
        return f"Bucket(id={self.id})"
