import asyncio
import logging
import os

from bucketrpc.models import Query
from bucketrpc.service import Service
from bucketrpc.storage import Store
from http_server.request import Request
from http_server.response import Response, error, response
from http_server.server import HTTPServer

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger()

# Name the service is registered under; methods are called as "Bolt.<Operation>"
RPC_NAME = "Bolt"
RPC_PATH = "/rpc"


async def main():
    server = HTTPServer(
        host=os.environ.get("BUCKETRPC_HOST", "0.0.0.0"),
        port=int(os.environ.get("BUCKETRPC_PORT", "8080")),
    )
    store = Store.open(
        os.environ.get("BUCKETRPC_DB", "data/bolt.db"),
        timeout=float(os.environ.get("BUCKETRPC_TIMEOUT", Store.DEFAULT_TIMEOUT)),
    )
    try:
        await register_routes(server, Service(store))
        logger.debug(f"Registered routes: {list(server.routes)}")
        await server.start()
    finally:
        store.close()


async def register_routes(server: HTTPServer, service: Service, name: str = RPC_NAME):

    operations = service.methods()

    @server.route(RPC_PATH, ['POST'])
    async def call(request: Request) -> Response:
        if not request.is_json:
            return error(400, "Request body must be a JSON object")

        method = request.get("method")
        if not method or not isinstance(method, str):
            return error(400, "Missing 'method' in request body")

        service_name, _, operation_name = method.partition(".")
        if service_name != name or operation_name not in operations:
            return error(400, f"rpc: can't find method {method}")

        try:
            query = Query.from_json(request.get("params", {}))
        except ValueError as e:
            return error(400, f"Invalid params: {e}")

        # Store transactions are blocking calls
        loop = asyncio.get_running_loop()
        reply = await loop.run_in_executor(None, service.call, operation_name, query)
        return response(status_code=200).json(reply.to_json())


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
