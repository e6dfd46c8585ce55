import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from .request import Request
from .response import Response, error

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]


class RequestTooLargeError(Exception):
    """Raised when a request declares a body over MAX_BODY_SIZE."""

    def __init__(self, content_length: int):
        self.content_length = content_length
        super().__init__(f"Request body too large: {content_length} bytes")


class HTTPServer:
    # Seconds to wait for the request line and each header line
    HEADER_TIMEOUT = 5.0
    # Seconds to wait for the full body
    BODY_TIMEOUT = 30.0
    # Largest accepted body (10MB)
    MAX_BODY_SIZE = 10 * 1024 * 1024

    STATUS_MESSAGES = {
        200: 'OK',
        400: 'Bad Request',
        404: 'Not Found',
        405: 'Method Not Allowed',
        413: 'Payload Too Large',
        500: 'Internal Server Error',
    }

    def __init__(self, host: str = '0.0.0.0', port: int = 8080):
        self.host = host
        self.port = port
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self._server: Optional[asyncio.Server] = None

    def route(self, path: str, methods: Optional[List[str]] = None):
        """Decorator for registering route handlers"""
        if methods is None:
            methods = ['GET']

        def decorator(handler: Handler) -> Handler:
            for method in methods:
                self.routes[(method.upper(), path)] = handler
            return handler
        return decorator

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually listened on (useful when constructed with port 0)."""
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def parse_request(self, reader: asyncio.StreamReader) -> Optional[Request]:
        """Parse HTTP request with timeout and size limits"""
        try:
            request_line = await asyncio.wait_for(reader.readline(), timeout=self.HEADER_TIMEOUT)
            if not request_line:
                return None

            method, full_path, version = request_line.decode('utf-8').strip().split(' ', 2)

            parsed_url = urlparse(full_path)

            headers = {}
            while True:
                line = await asyncio.wait_for(reader.readline(), timeout=self.HEADER_TIMEOUT)
                if line in (b'\r\n', b'\n', b''):
                    break

                header_line = line.decode('utf-8').strip()
                if ':' in header_line:
                    key, value = header_line.split(':', 1)
                    headers[key.strip().lower()] = value.strip()

            body = b''
            content_length = int(headers.get('content-length', 0))
            if content_length > 0:
                if content_length > self.MAX_BODY_SIZE:
                    raise RequestTooLargeError(content_length)

                body = await asyncio.wait_for(
                    reader.readexactly(content_length),
                    timeout=self.BODY_TIMEOUT
                )

            return Request(
                method=method.upper(),
                path=parsed_url.path,
                headers=headers,
                query_params=parse_qs(parsed_url.query),
                body=body,
                version=version
            )

        except asyncio.TimeoutError:
            return None
        except (ValueError, asyncio.IncompleteReadError) as e:
            logger.error(f"Error parsing request: {e}")
            return None

    def build_response(self, response: Response) -> bytes:
        """Build HTTP response bytes"""
        status_text = self.STATUS_MESSAGES.get(response.status, 'Unknown')

        headers = dict(response.headers)
        headers.setdefault('content-type', 'text/plain')
        headers['content-length'] = str(len(response.body))
        headers['connection'] = 'keep-alive'
        headers['server'] = 'BucketRpcHttp/1.0'

        response_line = f"HTTP/1.1 {response.status} {status_text}\r\n"
        header_lines = ''.join(f"{key}: {value}\r\n" for key, value in headers.items())

        return response_line.encode() + header_lines.encode() + b'\r\n' + response.body

    async def handle_request(self, request: Request) -> Response:
        """Route request to appropriate handler"""
        handler = self.routes.get((request.method, request.path))

        if handler is None:
            if any(path == request.path for _, path in self.routes):
                return Response(status=405, body=b'Method Not Allowed')
            return Response(status=404, body=b'Route Not Found')

        try:
            result = await handler(request)

            if isinstance(result, Response):
                return result

            raise TypeError("Response cannot be casted to appropriate HTTP response format")
        except Exception as e:
            logger.error(f"Handler error: {e}")
            return Response(status=500, body=b'Internal Server Error')

    async def reject_oversized(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter, content_length: int
    ):
        """Reply 413 and discard the unread body"""
        writer.write(self.build_response(error(413, "Request body too large")))
        await writer.drain()

        remaining = content_length
        while remaining > 0:
            chunk = await asyncio.wait_for(
                reader.read(min(remaining, 64 * 1024)),
                timeout=self.BODY_TIMEOUT
            )
            if not chunk:
                break
            remaining -= len(chunk)

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Handle a single client connection with keep-alive"""
        peer = writer.get_extra_info('peername')

        try:
            while True:
                try:
                    request = await self.parse_request(reader)
                except RequestTooLargeError as e:
                    logger.error(f"Error parsing request: {e}")
                    await self.reject_oversized(reader, writer, e.content_length)
                    break

                if request is None:
                    break

                start_time = time.perf_counter()
                logger.debug(f"--> {request.method} {request.path}")

                response = await self.handle_request(request)

                writer.write(self.build_response(response))
                await writer.drain()

                elapsed_ms = (time.perf_counter() - start_time) * 1000
                logger.debug(
                    f"<-- {response.status} - {len(response.body)} bytes - {elapsed_ms:.2f}ms"
                )

                if request.headers.get('connection', '').lower() == 'close':
                    break

        except ConnectionResetError:
            pass
        except Exception as e:
            logger.error(f"Connection error from {peer}: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def listen(self) -> asyncio.Server:
        """Bind the listening socket without blocking"""
        self._server = await asyncio.start_server(self.handle_client, self.host, self.port)

        addr = self._server.sockets[0].getsockname()
        logger.info(f'Bucket RPC server listening on http://{addr[0]}:{addr[1]}')
        return self._server

    async def start(self):
        """Start the HTTP server and serve until cancelled"""
        server = await self.listen()

        try:
            async with server:
                await server.serve_forever()
        except asyncio.CancelledError:
            logger.info("Server shutdown requested")
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Gracefully shutdown the server"""
        if self._server is None:
            return
        logger.info("Shutting down server...")
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Server shutdown complete")
