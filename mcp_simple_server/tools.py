"""Tool registry and dispatcher.

The registry is plain data handed to ``list_tools``. The dispatcher turns an
untyped ``arguments`` mapping into a per-tool argument object, runs the
handler, and always answers with a ``CallToolResult``: failures become
``isError`` results whose text starts with ``Error:``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from mcp.types import CallToolResult, TextContent, Tool

from mcp_simple_server.errors import ToolError

logger = logging.getLogger(__name__)

TOOLS: tuple[Tool, ...] = (
    Tool(
        name="echo",
        description="Echoes back the provided message",
        inputSchema={
            "type": "object",
            "properties": {
                "message": {"type": "string", "description": "The message to echo back"}
            },
            "required": ["message"],
        },
    ),
    Tool(
        name="add",
        description="Adds two numbers together",
        inputSchema={
            "type": "object",
            "properties": {
                "a": {"type": "number", "description": "The first number"},
                "b": {"type": "number", "description": "The second number"},
            },
            "required": ["a", "b"],
        },
    ),
    Tool(
        name="get_timestamp",
        description="Returns the current timestamp in ISO 8601 format",
        inputSchema={"type": "object", "properties": {}},
    ),
)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but not a number for tool callers
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class EchoArguments:
    message: str

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> "EchoArguments":
        message = arguments.get("message")
        if not message:
            raise ToolError("Message is required")
        if not isinstance(message, str):
            raise ToolError("Message must be a string")
        return cls(message=message)


@dataclass(frozen=True)
class AddArguments:
    a: int | float
    b: int | float

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> "AddArguments":
        a, b = arguments.get("a"), arguments.get("b")
        if not (_is_number(a) and _is_number(b)):
            raise ToolError("Both 'a' and 'b' must be numbers")
        return cls(a=a, b=b)


@dataclass(frozen=True)
class TimestampArguments:
    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> "TimestampArguments":
        return cls()


class TimestampClock:
    """UTC wall clock that never hands out a value earlier than the last one."""

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._last: datetime | None = None

    def __call__(self) -> str:
        current = self._now().astimezone(timezone.utc)
        if self._last is not None and current < self._last:
            current = self._last
        self._last = current
        return current.isoformat(timespec="milliseconds").replace("+00:00", "Z")


_DEFAULT_CLOCK = TimestampClock()


def text_result(text: str, is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


class ToolDispatcher:
    def __init__(self, clock: TimestampClock | None = None) -> None:
        # one clock per process so timestamps stay ordered across sessions
        self._clock = clock or _DEFAULT_CLOCK
        self._handlers: dict[str, Callable[[Mapping[str, Any]], str]] = {
            "echo": self._echo,
            "add": self._add,
            "get_timestamp": self._get_timestamp,
        }

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    def invoke(self, name: str, arguments: Mapping[str, Any] | None = None) -> CallToolResult:
        try:
            handler = self._handlers.get(name)
            if handler is None:
                raise ToolError(f"Unknown tool: {name}")
            text = handler(arguments or {})
        except Exception as e:
            logger.warning("Tool %s failed: %s", name, e)
            return text_result(f"Error: {e}", is_error=True)
        return text_result(text)

    def _echo(self, arguments: Mapping[str, Any]) -> str:
        return EchoArguments.from_arguments(arguments).message

    def _add(self, arguments: Mapping[str, Any]) -> str:
        args = AddArguments.from_arguments(arguments)
        return f"{args.a} + {args.b} = {args.a + args.b}"

    def _get_timestamp(self, arguments: Mapping[str, Any]) -> str:
        TimestampArguments.from_arguments(arguments)
        return self._clock()
