import anyio, sys, time, json, argparse
from mcp import ClientSession
from mcp.client.stdio import stdio_client, StdioServerParameters
from contextlib import AsyncExitStack


def server_params(env: dict[str, str] | None = None) -> StdioServerParameters:
    return StdioServerParameters(
        command=sys.executable,
        args=["-m", "mcp_simple_server"],
        env={"MCP_MODE": "stdio", **(env or {})},
    )


async def once_call(name: str, arguments: dict) -> tuple[float, str, bool]:
    async with stdio_client(server_params()) as streams:
        async with ClientSession(*streams) as session:
            await session.initialize()
            tools = await session.list_tools()
            if name not in [t.name for t in tools.tools]:
                raise RuntimeError(f"{name} tool not found")
            # timing starts after initialization and tool discovery
            start = time.perf_counter()
            res = await session.call_tool(name, arguments)
            latency = (time.perf_counter() - start) * 1000
            return latency, res.content[0].text if res.content else "", bool(res.isError)


class MCPStdioPersistent:
    """Persistent MCP stdio client that keeps one server process alive."""

    def __init__(self, env: dict[str, str] | None = None) -> None:
        self._env = env
        self._stack: AsyncExitStack | None = None
        self._session: ClientSession | None = None

    async def start(self) -> None:
        self._stack = AsyncExitStack()
        await self._stack.__aenter__()
        streams = await self._stack.enter_async_context(stdio_client(server_params(self._env)))
        session = ClientSession(*streams)
        await self._stack.enter_async_context(session)
        await session.initialize()
        self._session = session

    async def list_tools(self) -> list[str]:
        if not self._session:
            raise RuntimeError("client not started")
        tools = await self._session.list_tools()
        return [t.name for t in tools.tools]

    async def call(self, name: str, arguments: dict | None = None) -> tuple[str, bool]:
        if not self._session:
            raise RuntimeError("client not started")
        res = await self._session.call_tool(name, arguments or {})
        return res.content[0].text if res.content else "", bool(res.isError)

    async def close(self) -> None:
        if self._stack:
            await self._stack.aclose()
            self._stack = None
            self._session = None


async def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--tool", default="echo")
    ap.add_argument("--arguments", default='{"message": "hello"}', help="JSON object")
    args = ap.parse_args()
    lat, out, is_error = await once_call(args.tool, json.loads(args.arguments))
    print(json.dumps({"latency_ms": lat, "text": out, "isError": is_error}))

if __name__ == "__main__":
    anyio.run(main)
