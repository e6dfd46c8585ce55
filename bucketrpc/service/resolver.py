"""
Bucket path resolution.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from bucketrpc.storage import Bucket, Transaction


@dataclass(frozen=True)
class Found:
    bucket: Bucket


@dataclass(frozen=True)
class NotFound:
    pass


NOT_FOUND = NotFound()

Resolution = Found | NotFound


def resolve(tx: Transaction, path: Sequence[bytes]) -> Resolution:
    """
    Walk path one level at a time and return the bucket it names.

    path[0] is looked up among the root-level buckets, every later name among
    the children of the bucket reached so far. The walk stops at the first
    missing level. Nothing is ever created.

    Args:
        tx: Open transaction to read through.
        path: Non-empty sequence of bucket names.

    Returns:
        Found with the terminal bucket, or NOT_FOUND.
    """
    if not path:
        raise ValueError("path cannot be empty")

    bucket = tx.bucket(path[0])
    for name in path[1:]:
        if bucket is None:
            break
        bucket = bucket.bucket(name)

    if bucket is None:
        return NOT_FOUND
    return Found(bucket)
