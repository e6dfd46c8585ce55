"""
Nested-bucket key-value store served over RPC.

This package provides:
- Store - single-file transactional bucket store
- resolve(tx, path) - nested bucket path resolution
- Service - CreateBucket, SetKey, GetKey, Delete, DeleteBucket
- Client - async RPC caller
"""

from bucketrpc.client import Client, RPCError
from bucketrpc.models import ErrorKind, Query, Response, Result
from bucketrpc.service import Service, resolve
from bucketrpc.storage import Store

__all__ = [
    "Client",
    "ErrorKind",
    "Query",
    "RPCError",
    "Response",
    "Result",
    "Service",
    "Store",
    "resolve",
]
