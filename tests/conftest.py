import json
import socket
from pathlib import Path

import pytest
from mcp.types import LATEST_PROTOCOL_VERSION

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def send_rpc(ws, msg_id, method, params=None):
    payload = {"jsonrpc": "2.0", "id": msg_id, "method": method}
    if params is not None:
        payload["params"] = params
    ws.send_text(json.dumps(payload) + "\n")


def receive_rpc(ws) -> dict:
    return json.loads(ws.receive_text())


def initialize(ws) -> dict:
    send_rpc(
        ws,
        0,
        "initialize",
        {
            "protocolVersion": LATEST_PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": {"name": "pytest", "version": "0"},
        },
    )
    response = receive_rpc(ws)
    ws.send_text(json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}) + "\n")
    return response


def call_tool(ws, msg_id, name, arguments):
    send_rpc(ws, msg_id, "tools/call", {"name": name, "arguments": arguments})
