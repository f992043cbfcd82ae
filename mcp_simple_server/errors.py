class ServerError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(ServerError):
    """Startup configuration is missing or malformed."""


class ToolError(ServerError):
    """A tool call could not be resolved or its arguments are invalid."""


class ConnectionNotOpenError(ServerError):
    """A write was attempted on a WebSocket that is no longer open."""
