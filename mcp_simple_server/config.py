import os
from dataclasses import dataclass
from typing import Mapping

from mcp_simple_server.errors import ConfigError

MODES = ("stdio", "http")
WS_TRANSPORTS = ("bridge", "sdk")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup and passed down explicitly."""

    mode: str = "stdio"
    host: str = "0.0.0.0"
    port: int = 3000
    ws_path: str = "/"
    ws_transport: str = "bridge"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise ConfigError(f"MCP_MODE must be one of {', '.join(MODES)}, got {self.mode!r}")
        if not 0 < self.port < 65536:
            raise ConfigError(f"PORT must be between 1 and 65535, got {self.port}")
        if not self.ws_path.startswith("/"):
            raise ConfigError(f"MCP_WS_PATH must start with '/', got {self.ws_path!r}")
        if self.ws_transport not in WS_TRANSPORTS:
            raise ConfigError(
                f"MCP_WS_TRANSPORT must be one of {', '.join(WS_TRANSPORTS)}, got {self.ws_transport!r}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"MCP_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            mode=env.get("MCP_MODE", "stdio").strip().lower() or "stdio",
            host=env.get("MCP_HOST", "0.0.0.0"),
            port=parse_port(env.get("PORT")),
            ws_path=env.get("MCP_WS_PATH", "/"),
            ws_transport=env.get("MCP_WS_TRANSPORT", "bridge").strip().lower(),
            log_level=env.get("MCP_LOG_LEVEL", "INFO").strip().upper(),
        )


def parse_port(value: str | None, default: int = 3000) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got {value!r}") from None
