"""
Data models for the bucket RPC service.
"""

from bucketrpc.models.exceptions import BucketNotFoundError, KeyNotFoundError, ServiceError
from bucketrpc.models.query import Query, Response
from bucketrpc.models.result import ErrorKind, Result

__all__ = [
    "BucketNotFoundError",
    "ErrorKind",
    "KeyNotFoundError",
    "Query",
    "Response",
    "Result",
    "ServiceError",
]
