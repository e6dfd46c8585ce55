"""
Query and Response - the request/response pair of every RPC operation.

On the wire both are JSON objects; byte strings travel base64 encoded.
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any


def encode_bytes(data: bytes | None) -> str | None:
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def decode_bytes(data: Any, field_name: str) -> bytes:
    if not isinstance(data, str):
        raise ValueError(f"'{field_name}' must be a base64 string")
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise ValueError(f"'{field_name}' is not valid base64: {e}") from e


@dataclass
class Query:
    """
    Arguments of one operation.

    Attributes:
        bucket: Bucket path from the root, outermost name first.
        key: Key to read/write, or the bucket name for bucket operations.
        value: Value to write. Only SetKey uses it.
    """

    bucket: list[bytes] = field(default_factory=list)
    key: bytes = b""
    value: bytes | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "bucket": [encode_bytes(name) for name in self.bucket],
            "key": encode_bytes(self.key),
            "value": encode_bytes(self.value),
        }

    @classmethod
    def from_json(cls, payload: Any) -> "Query":
        """
        Decode a Query from its JSON form.

        Raises:
            ValueError: The payload is not a well-formed query.
        """
        if not isinstance(payload, dict):
            raise ValueError("params must be an object")

        bucket = payload.get("bucket", [])
        if not isinstance(bucket, list):
            raise ValueError("'bucket' must be an array")

        key = payload.get("key")
        value = payload.get("value")

        return cls(
            bucket=[decode_bytes(name, "bucket") for name in bucket],
            key=b"" if key is None else decode_bytes(key, "key"),
            value=None if value is None else decode_bytes(value, "value"),
        )


@dataclass
class Response:
    """
    Reply of one operation.

    Attributes:
        value: Bytes read by GetKey. None whenever error is set.
        error: Failure message, empty when the operation succeeded.
    """

    value: bytes | None = None
    error: str = ""

    def to_json(self) -> dict[str, Any]:
        return {"value": encode_bytes(self.value), "error": self.error}

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> "Response":
        value = payload.get("value")
        return cls(
            value=None if value is None else decode_bytes(value, "value"),
            error=payload.get("error") or "",
        )
