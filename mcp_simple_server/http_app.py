import logging

import uvicorn
from mcp.server.websocket import websocket_server
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute
from starlette.websockets import WebSocket

from mcp_simple_server import SERVER_DESCRIPTION, SERVER_NAME, __version__
from mcp_simple_server.config import Settings
from mcp_simple_server.server import build_server
from mcp_simple_server.tools import TOOLS
from mcp_simple_server.ws_bridge import websocket_bridge

logger = logging.getLogger(__name__)

MCP_SUBPROTOCOL = "mcp"


def create_app(settings: Settings) -> Starlette:
    async def root(request: Request) -> JSONResponse:
        host = request.headers.get("host") or f"{settings.host}:{settings.port}"
        return JSONResponse(
            {
                "name": SERVER_NAME,
                "version": __version__,
                "description": SERVER_DESCRIPTION,
                "websocket": f"ws://{host}{settings.ws_path}",
                "tools": [{"name": t.name, "description": t.description} for t in TOOLS],
            }
        )

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "mode": "http", "version": __version__})

    async def handle_ws(websocket: WebSocket) -> None:
        srv = build_server(settings)
        logger.info("New WebSocket connection established")
        try:
            if settings.ws_transport == "sdk":
                async with websocket_server(websocket.scope, websocket.receive, websocket.send) as streams:
                    await srv.run(streams[0], streams[1], srv.create_initialization_options())
            else:
                offered = websocket.scope.get("subprotocols") or []
                await websocket.accept(subprotocol=MCP_SUBPROTOCOL if MCP_SUBPROTOCOL in offered else None)
                async with websocket_bridge(websocket) as (read, write):
                    await srv.run(read, write, srv.create_initialization_options())
        except Exception:
            # only this session ends; the listener and other sockets keep running
            logger.exception("WebSocket session failed")
        logger.info("WebSocket connection closed")

    routes = [
        Route("/", endpoint=root, methods=["GET"]),
        Route("/health", endpoint=health, methods=["GET"]),
        WebSocketRoute(settings.ws_path, endpoint=handle_ws),
    ]
    return Starlette(routes=routes)


async def run_http(settings: Settings) -> None:
    app = create_app(settings)
    config = uvicorn.Config(
        app=app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
    server = uvicorn.Server(config)
    logger.info("MCP server running on http://%s:%d", settings.host, settings.port)
    logger.info("WebSocket endpoint: ws://%s:%d%s", settings.host, settings.port, settings.ws_path)
    await server.serve()
