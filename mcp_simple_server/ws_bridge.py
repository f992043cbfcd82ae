"""Bridge a Starlette WebSocket into the stream pair ``Server.run`` expects.

Inbound text is split into newline-delimited JSON-RPC frames (a message
boundary also ends a frame). Each outbound ``SessionMessage`` is sent as one
newline-terminated text message.
"""

import enum
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import anyio
import mcp.types as types
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp.shared.message import SessionMessage
from pydantic import ValidationError
from starlette.websockets import WebSocket, WebSocketState

from mcp_simple_server.errors import ConnectionNotOpenError

logger = logging.getLogger(__name__)


class BridgeState(enum.Enum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class WebSocketBridge:
    def __init__(self, websocket: WebSocket) -> None:
        self._ws = websocket
        self.state = BridgeState.OPEN
        self.error: BaseException | None = None
        self._closed = anyio.Event()

        self._read_writer: MemoryObjectSendStream[SessionMessage | Exception]
        self.read_stream: MemoryObjectReceiveStream[SessionMessage | Exception]
        self._read_writer, self.read_stream = anyio.create_memory_object_stream(0)

        self.write_stream: MemoryObjectSendStream[SessionMessage]
        self._write_reader: MemoryObjectReceiveStream[SessionMessage]
        self.write_stream, self._write_reader = anyio.create_memory_object_stream(0)

    @property
    def is_open(self) -> bool:
        return (
            self.state is BridgeState.OPEN
            and self._ws.application_state == WebSocketState.CONNECTED
            and self._ws.client_state == WebSocketState.CONNECTED
        )

    async def pump_inbound(self) -> None:
        try:
            while self.state is BridgeState.OPEN:
                message = await self._ws.receive()
                if message["type"] == "websocket.disconnect":
                    # peer is gone, nothing left to close on the socket
                    self.state = BridgeState.CLOSED
                    break
                data = message.get("text")
                if data is None:
                    try:
                        data = (message.get("bytes") or b"").decode("utf-8")
                    except UnicodeDecodeError as e:
                        # malformed payload, the session reports it and keeps reading
                        await self._read_writer.send(e)
                        continue
                await self.feed(data)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            # session stopped reading
            pass
        except Exception as e:
            logger.warning("WebSocket receive failed: %s", e)
            await self.aclose(e)
        finally:
            self._read_writer.close()

    async def feed(self, data: str) -> None:
        for line in data.split("\n"):
            if not line.strip():
                continue
            try:
                frame = types.JSONRPCMessage.model_validate_json(line)
            except ValidationError as e:
                await self._read_writer.send(e)
                continue
            await self._read_writer.send(SessionMessage(frame))

    async def send(self, session_message: SessionMessage) -> None:
        if not self.is_open:
            raise ConnectionNotOpenError("WebSocket is not open")
        payload = session_message.message.model_dump_json(by_alias=True, exclude_none=True)
        await self._ws.send_text(payload + "\n")

    async def pump_outbound(self) -> None:
        try:
            async for session_message in self._write_reader:
                await self.send(session_message)
        except anyio.ClosedResourceError:
            pass
        except Exception as e:
            logger.warning("WebSocket send failed: %s", e)
            await self.aclose(e)

    async def aclose(self, error: BaseException | None = None) -> None:
        if error is not None and self.error is None:
            self.error = error
        if self.state is BridgeState.CLOSING:
            await self._closed.wait()
            return
        if self.state is BridgeState.OPEN:
            self.state = BridgeState.CLOSING
            if self._ws.application_state != WebSocketState.DISCONNECTED and (
                self._ws.client_state != WebSocketState.DISCONNECTED
            ):
                try:
                    await self._ws.close()
                except (RuntimeError, OSError) as e:
                    logger.debug("WebSocket already gone while closing: %s", e)
        self.state = BridgeState.CLOSED
        self._read_writer.close()
        self._write_reader.close()
        self._closed.set()

    async def wait_closed(self) -> None:
        await self._closed.wait()


@asynccontextmanager
async def websocket_bridge(
    websocket: WebSocket,
) -> AsyncIterator[
    tuple[MemoryObjectReceiveStream[SessionMessage | Exception], MemoryObjectSendStream[SessionMessage]]
]:
    """Run a bridge over an accepted WebSocket for the lifetime of the block."""
    bridge = WebSocketBridge(websocket)
    async with anyio.create_task_group() as tg:
        tg.start_soon(bridge.pump_inbound)
        tg.start_soon(bridge.pump_outbound)
        try:
            yield bridge.read_stream, bridge.write_stream
        finally:
            await bridge.aclose()
            tg.cancel_scope.cancel()
    if bridge.error is not None:
        raise bridge.error
