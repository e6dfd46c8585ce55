"""
Store - single-file transactional bucket store backed by SQLite.

Buckets form a tree rooted at a hidden root bucket. Each bucket holds
key/value pairs and nested buckets; both share one namespace per bucket.

Concurrency follows SQLite in WAL mode:
- At most one read-write transaction at a time (BEGIN IMMEDIATE).
- Any number of read-only transactions, each reading a stable snapshot.
"""

import logging
import os
import sqlite3
from pathlib import Path
from typing import Callable, TypeVar

from bucketrpc.storage.bucket import ROOT_BUCKET_ID, Bucket
from bucketrpc.storage.errors import (
    DatabaseNotOpenError,
    DatabaseTimeoutError,
    StorageError,
    TxClosedError,
    TxNotWritableError,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS buckets (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        parent_id INTEGER,
        name BLOB NOT NULL,
        UNIQUE (parent_id, name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS entries (
        bucket_id INTEGER NOT NULL,
        key BLOB NOT NULL,
        value BLOB NOT NULL,
        PRIMARY KEY (bucket_id, key)
    )
    """,
    "INSERT OR IGNORE INTO buckets (id, parent_id, name) VALUES (0, NULL, X'')",
)


def translate_error(error: sqlite3.Error) -> StorageError:
    """Map a sqlite3 failure onto the storage error hierarchy."""
    if isinstance(error, sqlite3.OperationalError) and "locked" in str(error):
        return DatabaseTimeoutError()
    return StorageError(str(error))


class Transaction:
    """
    A read-only or read-write transaction over one SQLite connection.

    Used as a context manager, a writable transaction commits when the block
    exits cleanly; every other exit rolls back.
    """

    def __init__(self, connection: sqlite3.Connection, writable: bool) -> None:
        self._connection = connection
        self._writable = writable
        self._closed = False
        self.root = Bucket(self, ROOT_BUCKET_ID)

    @property
    def writable(self) -> bool:
        return self._writable

    @property
    def closed(self) -> bool:
        return self._closed

    def bucket(self, name: bytes) -> Bucket | None:
        """Return the root-level bucket called name, or None."""
        return self.root.bucket(name)

    def create_bucket_if_not_exists(self, name: bytes) -> Bucket:
        return self.root.create_bucket_if_not_exists(name)

    def delete_bucket(self, name: bytes) -> None:
        self.root.delete_bucket(name)

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run one statement inside this transaction."""
        if self._closed:
            raise TxClosedError()
        try:
            return self._connection.execute(sql, params)
        except sqlite3.Error as e:
            raise translate_error(e) from e

    def check_writable(self) -> None:
        if self._closed:
            raise TxClosedError()
        if not self._writable:
            raise TxNotWritableError()

    def commit(self) -> None:
        """
        Persist every change made in this transaction.

        Raises:
            TxClosedError: The transaction already ended.
            TxNotWritableError: The transaction is read-only.
        """
        self.check_writable()
        try:
            self._connection.execute("COMMIT")
        except sqlite3.Error as e:
            self.rollback()
            raise translate_error(e) from e
        self._close()

    def rollback(self) -> None:
        """Discard every change made in this transaction."""
        if self._closed:
            raise TxClosedError()
        try:
            self._connection.execute("ROLLBACK")
        except sqlite3.Error as e:
            # SQLite may already have rolled back on its own after an I/O error
            logger.warning(f"Rollback failed: {e}")
        finally:
            self._close()

    def _close(self) -> None:
        self._closed = True
        self._connection.close()

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._closed:
            return
        if exc_type is None and self._writable:
            self.commit()
        else:
            self.rollback()


class Store:
    """
    Handle to one bucket store file.

    A Store is safe to share between threads: every transaction opens its own
    connection, and SQLite serializes writers across all of them.
    """

    # Seconds a transaction waits for the write lock before giving up
    DEFAULT_TIMEOUT = 1.0

    def __init__(self, path: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        """
        Args:
            path: Database file path. Parent directories are created on open.
            timeout: Seconds to wait for the database lock.
        """
        if not path or not path.strip():
            raise ValueError("path cannot be empty")
        if timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")

        self._path = os.path.abspath(path)
        self._timeout = timeout
        self._opened = False

    @classmethod
    def open(cls, path: str, timeout: float = DEFAULT_TIMEOUT) -> "Store":
        """
        Open (creating if needed) the store at path.

        Returns:
            A Store ready to begin transactions.
        """
        store = cls(path, timeout)
        store._initialize()
        return store

    @property
    def path(self) -> str:
        return self._path

    @property
    def timeout(self) -> float:
        return self._timeout

    def _initialize(self) -> None:
        Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        connection = self._connect()
        try:
            connection.execute("PRAGMA journal_mode=WAL")
            connection.execute("BEGIN IMMEDIATE")
            for statement in _SCHEMA:
                connection.execute(statement)
            connection.execute("COMMIT")
        except sqlite3.Error as e:
            raise translate_error(e) from e
        finally:
            connection.close()

        self._opened = True
        logger.info(f"Opened bucket store at {self._path}")

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(
            self._path,
            timeout=self._timeout,
            isolation_level=None,
            check_same_thread=False,
        )

    def begin(self, write: bool) -> Transaction:
        """
        Start a transaction.

        Args:
            write: True for a read-write transaction. Blocks while another
                   writer is active, up to the store timeout.

        Returns:
            The open Transaction. The caller must commit or roll it back.
        """
        if not self._opened:
            raise DatabaseNotOpenError()

        connection = self._connect()
        try:
            if write:
                connection.execute("BEGIN IMMEDIATE")
            else:
                connection.execute("PRAGMA query_only = ON")
                connection.execute("BEGIN")
                # The snapshot is taken on the first read
                connection.execute(
                    "SELECT id FROM buckets WHERE id = ?", (ROOT_BUCKET_ID,)
                ).fetchone()
        except sqlite3.Error as e:
            connection.close()
            raise translate_error(e) from e

        return Transaction(connection, writable=write)

    def view(self, fn: Callable[[Transaction], T]) -> T:
        """Run fn inside a read-only transaction and return its result."""
        with self.begin(write=False) as tx:
            return fn(tx)

    def update(self, fn: Callable[[Transaction], T]) -> T:
        """
        Run fn inside a read-write transaction.

        The transaction commits if fn returns and rolls back if it raises.
        """
        with self.begin(write=True) as tx:
            return fn(tx)

    def close(self) -> None:
        if self._opened:
            self._opened = False
            logger.info(f"Closed bucket store at {self._path}")

    def __enter__(self) -> "Store":
        if not self._opened:
            self._initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
