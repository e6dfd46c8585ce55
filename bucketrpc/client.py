"""
Client - async caller for the bucket RPC service.
"""

import asyncio
import json
from collections.abc import Sequence
from typing import Any

from bucketrpc.models import Query, Response


class RPCError(Exception):
    """
    Raised when a call fails at the transport level.

    Application failures (missing bucket, missing key, storage errors) are
    not RPCErrors: they come back in Response.error.
    """

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        super().__init__(f"{status}: {message}")


class Client:
    """
    Calls "<name>.<Operation>" on a bucket RPC server.

    One connection is opened per call.
    """

    def __init__(self, host: str, port: int, name: str = "Bolt", path: str = "/rpc") -> None:
        self.host = host
        self.port = port
        self.name = name
        self.path = path

    async def call(self, method: str, query: Query) -> Response:
        """
        Invoke method with query.

        Args:
            method: Fully qualified method, e.g. "Bolt.GetKey".
            query: Operation arguments.

        Returns:
            The decoded Response.

        Raises:
            RPCError: The server rejected the request, or no valid HTTP
                      reply arrived (status 0).
        """
        status, body = await self._post({"method": method, "params": query.to_json()})
        if status != 200:
            raise RPCError(status, body.get("error") or body.get("raw", ""))
        return Response.from_json(body)

    async def _post(self, payload: dict[str, Any]) -> tuple[int, dict[str, Any]]:
        body = json.dumps(payload).encode()
        head = (
            f"POST {self.path} HTTP/1.1\r\n"
            f"Host: {self.host}\r\n"
            "Content-Type: application/json\r\n"
            f"Content-Length: {len(body)}\r\n"
            "Connection: close\r\n"
            "\r\n"
        )

        try:
            reader, writer = await asyncio.open_connection(self.host, self.port)
            try:
                writer.write(head.encode() + body)
                await writer.drain()
                raw = await reader.read()
            finally:
                writer.close()
                try:
                    await writer.wait_closed()
                except (ConnectionError, OSError):
                    pass
        except (ConnectionError, OSError) as e:
            raise RPCError(0, f"connection failed: {e}") from e

        status_line = raw.split(b"\r\n", 1)[0].decode(errors="replace")
        parts = status_line.split(" ")
        if len(parts) < 2 or not parts[0].startswith("HTTP/") or not parts[1].isdigit():
            raise RPCError(0, f"malformed response: {status_line!r}")
        status = int(parts[1])

        header_end = raw.find(b"\r\n\r\n")
        text = raw[header_end + 4:].decode(errors="replace") if header_end >= 0 else ""

        try:
            parsed = json.loads(text) if text else {}
        except json.JSONDecodeError:
            parsed = {"raw": text}
        return status, parsed
    def _method(self, operation: str) -> str:
        return f"{self.name}.{operation}"

    async def create_bucket(self, bucket: Sequence[bytes], name: bytes) -> Response:
        return await self.call(self._method("CreateBucket"), Query(list(bucket), name))

    async def set_key(self, bucket: Sequence[bytes], key: bytes, value: bytes) -> Response:
        return await self.call(self._method("SetKey"), Query(list(bucket), key, value))

    async def get_key(self, bucket: Sequence[bytes], key: bytes) -> Response:
        return await self.call(self._method("GetKey"), Query(list(bucket), key))

    async def delete(self, bucket: Sequence[bytes], key: bytes) -> Response:
        return await self.call(self._method("Delete"), Query(list(bucket), key))

    async def delete_bucket(self, bucket: Sequence[bytes], name: bytes) -> Response:
        return await self.call(self._method("DeleteBucket"), Query(list(bucket), name))
