import time
import json
import argparse
from contextlib import AsyncExitStack

import anyio
from mcp import ClientSession
from mcp.client.websocket import websocket_client


class MCPWebSocketPersistent:
    """Persistent MCP WebSocket client.

    Must be closed from the task that started it. When several clients share a
    task, close them in reverse start order since their task groups nest.
    """

    def __init__(self, url: str) -> None:
        self._stack: AsyncExitStack | None = None
        self._session: ClientSession | None = None
        self._url = url

    async def start(self) -> None:
        self._stack = AsyncExitStack()
        await self._stack.__aenter__()
        streams = await self._stack.enter_async_context(websocket_client(self._url))
        session = ClientSession(*streams)
        await self._stack.enter_async_context(session)
        await session.initialize()
        self._session = session

    async def list_tools(self) -> list[str]:
        if not self._session:
            raise RuntimeError("client not started")
        tools = await self._session.list_tools()
        return [t.name for t in tools.tools]

    async def call(self, name: str, arguments: dict | None = None) -> tuple[float, str, bool]:
        if not self._session:
            raise RuntimeError("client not started")
        t_rpc0 = time.perf_counter()
        res = await self._session.call_tool(name, arguments or {})
        t_rpc1 = time.perf_counter()
        text = res.content[0].text if res.content else ""
        return (t_rpc1 - t_rpc0) * 1000, text, bool(res.isError)

    async def close(self) -> None:
        if self._stack:
            await self._stack.aclose()
            self._stack = None
            self._session = None


async def once_call(url: str, name: str, arguments: dict) -> tuple[float, float, str, bool]:
    t0 = time.perf_counter()
    async with websocket_client(url) as streams:
        async with ClientSession(*streams) as session:
            await session.initialize()
            t_rpc0 = time.perf_counter()
            res = await session.call_tool(name, arguments)
            t_rpc1 = time.perf_counter()
            text = res.content[0].text if res.content else ""
            return (t_rpc1 - t0) * 1000, (t_rpc1 - t_rpc0) * 1000, text, bool(res.isError)


async def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--url", default="ws://127.0.0.1:3000/")
    ap.add_argument("--tool", default="echo")
    ap.add_argument("--arguments", default='{"message": "hello"}', help="JSON object")
    args = ap.parse_args()
    lat_total, lat_rpc, out, is_error = await once_call(args.url, args.tool, json.loads(args.arguments))
    print(json.dumps({"latency_total_ms": lat_total, "latency_rpc_ms": lat_rpc, "text": out, "isError": is_error}))


if __name__ == "__main__":
    anyio.run(main)
