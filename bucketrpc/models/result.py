"""
Result - outcome of one service operation.
"""

from dataclasses import dataclass
from enum import Enum

from bucketrpc.models.query import Response


class ErrorKind(Enum):
    """Why an operation failed."""

    BUCKET_NOT_FOUND = "bucket_not_found"
    KEY_NOT_FOUND = "key_not_found"
    ENGINE_ERROR = "engine_error"


@dataclass(frozen=True)
class Result:
    """
    Either a success payload or a tagged error.

    Attributes:
        value: Bytes read by a successful GetKey, None otherwise.
        error: Kind of failure, None on success.
        message: Human readable failure message, empty on success.
    """

    value: bytes | None = None
    error: ErrorKind | None = None
    message: str = ""

    @classmethod
    def ok(cls, value: bytes | None = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result":
        return cls(error=kind, message=message or kind.value)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def to_response(self) -> Response:
        """Convert to the wire shape. A failed result never carries a value."""
        if self.error is not None:
            return Response(value=None, error=self.message)
        return Response(value=self.value, error="")
