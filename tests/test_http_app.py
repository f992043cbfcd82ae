import pytest
from starlette.testclient import TestClient

from mcp_simple_server import __version__
from mcp_simple_server.config import Settings
from mcp_simple_server.http_app import create_app

from conftest import call_tool, initialize, receive_rpc, send_rpc


@pytest.fixture(params=["bridge", "sdk"])
def ws_transport(request):
    return request.param


@pytest.fixture
def client(ws_transport):
    app = create_app(Settings(mode="http", ws_transport=ws_transport))
    with TestClient(app) as c:
        yield c


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "mode": "http", "version": __version__}


def test_root_metadata(client):
    res = client.get("/", headers={"host": "example.test:3000"})
    assert res.status_code == 200
    body = res.json()
    assert body["name"] == "mcp-simple-server"
    assert body["version"] == __version__
    assert body["description"]
    assert body["websocket"] == "ws://example.test:3000/"
    assert body["tools"] == [
        {"name": "echo", "description": "Echoes back the provided message"},
        {"name": "add", "description": "Adds two numbers together"},
        {"name": "get_timestamp", "description": "Returns the current timestamp in ISO 8601 format"},
    ]


def test_root_advertises_configured_path():
    app = create_app(Settings(mode="http", ws_path="/mcp"))
    with TestClient(app) as c:
        assert c.get("/", headers={"host": "localhost:3000"}).json()["websocket"] == "ws://localhost:3000/mcp"
        with c.websocket_connect("/mcp", subprotocols=["mcp"]) as ws:
            assert initialize(ws)["result"]["serverInfo"]["name"] == "mcp-simple-server"


def test_session_lists_and_calls_tools(client):
    with client.websocket_connect("/", subprotocols=["mcp"]) as ws:
        init = initialize(ws)
        assert init["id"] == 0
        assert "tools" in init["result"]["capabilities"]

        send_rpc(ws, 1, "tools/list", {})
        listing = receive_rpc(ws)
        assert [t["name"] for t in listing["result"]["tools"]] == ["echo", "add", "get_timestamp"]

        call_tool(ws, 2, "add", {"a": 2, "b": 3})
        added = receive_rpc(ws)
        assert added["id"] == 2
        assert added["result"]["content"] == [{"type": "text", "text": "2 + 3 = 5"}]
        assert not added["result"].get("isError", False)

        call_tool(ws, 3, "echo", {})
        failed = receive_rpc(ws)
        assert failed["result"]["isError"] is True
        assert failed["result"]["content"][0]["text"].startswith("Error:")
        assert "Message is required" in failed["result"]["content"][0]["text"]

        call_tool(ws, 4, "divide", {"a": 1})
        unknown = receive_rpc(ws)
        assert unknown["result"]["isError"] is True
        assert unknown["result"]["content"][0]["text"] == "Error: Unknown tool: divide"

        # the session survives failed calls
        call_tool(ws, 5, "echo", {"message": "still here"})
        assert receive_rpc(ws)["result"]["content"][0]["text"] == "still here"


def test_bridge_accepts_clients_without_subprotocol():
    app = create_app(Settings(mode="http"))
    with TestClient(app) as c:
        with c.websocket_connect("/") as ws:
            initialize(ws)
            call_tool(ws, 1, "echo", {"message": "plain"})
            assert receive_rpc(ws)["result"]["content"][0]["text"] == "plain"


def test_concurrent_sessions_are_isolated(client):
    with client.websocket_connect("/", subprotocols=["mcp"]) as ws1:
        with client.websocket_connect("/", subprotocols=["mcp"]) as ws2:
            initialize(ws1)
            initialize(ws2)

            call_tool(ws1, 1, "add", {"a": 1, "b": 2})
            call_tool(ws2, 1, "echo", {"message": "second"})
            call_tool(ws1, 2, "echo", {"message": "first"})
            call_tool(ws2, 2, "add", {"a": 10, "b": 20})

            first = [receive_rpc(ws1), receive_rpc(ws1)]
            second = [receive_rpc(ws2), receive_rpc(ws2)]

    assert [r["id"] for r in first] == [1, 2]
    assert [r["result"]["content"][0]["text"] for r in first] == ["1 + 2 = 3", "first"]
    assert [r["id"] for r in second] == [1, 2]
    assert [r["result"]["content"][0]["text"] for r in second] == ["second", "10 + 20 = 30"]


def test_closing_one_session_leaves_others_running(client):
    with client.websocket_connect("/", subprotocols=["mcp"]) as survivor:
        initialize(survivor)
        with client.websocket_connect("/", subprotocols=["mcp"]) as doomed:
            initialize(doomed)
            call_tool(doomed, 1, "echo", {"message": "bye"})
            assert receive_rpc(doomed)["result"]["content"][0]["text"] == "bye"

        call_tool(survivor, 1, "echo", {"message": "alive"})
        assert receive_rpc(survivor)["result"]["content"][0]["text"] == "alive"
        assert client.get("/health").status_code == 200

        with client.websocket_connect("/", subprotocols=["mcp"]) as fresh:
            initialize(fresh)
            call_tool(fresh, 1, "add", {"a": 2, "b": 2})
            assert receive_rpc(fresh)["result"]["content"][0]["text"] == "2 + 2 = 4"


def test_undecodable_binary_message_keeps_session_open():
    app = create_app(Settings(mode="http"))
    with TestClient(app) as c:
        with c.websocket_connect("/", subprotocols=["mcp"]) as ws:
            initialize(ws)
            ws.send_bytes(b"\xff\xfe\n")
            call_tool(ws, 1, "echo", {"message": "after garbage"})
            assert receive_rpc(ws)["result"]["content"][0]["text"] == "after garbage"
