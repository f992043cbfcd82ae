import logging

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from mcp_simple_server import SERVER_NAME, __version__
from mcp_simple_server.config import Settings
from mcp_simple_server.tools import TOOLS, ToolDispatcher

logger = logging.getLogger(__name__)


def build_server(settings: Settings, dispatcher: ToolDispatcher | None = None) -> Server:
    """Create a fresh MCP server for a single session."""
    srv = Server(SERVER_NAME, version=__version__)
    dispatcher = dispatcher or ToolDispatcher()

    @srv.list_tools()
    async def list_tools() -> list[types.Tool]:
        return list(TOOLS)

    # Registered directly so argument validation and error text stay with the dispatcher
    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        params = req.params
        logger.debug("Calling tool %s (%s mode)", params.name, settings.mode)
        return types.ServerResult(dispatcher.invoke(params.name, params.arguments))

    srv.request_handlers[types.CallToolRequest] = call_tool
    return srv


async def run_stdio(settings: Settings) -> None:
    srv = build_server(settings)
    async with stdio_server() as (read, write):
        logger.info("MCP server running on stdio")
        await srv.run(read, write, srv.create_initialization_options())
