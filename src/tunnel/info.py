"""TunnelInfo: immutable (server_addr, remote_port) observed by the tunnel client."""

from dataclasses import dataclass
from typing import Any, Dict

MIN_PORT = 1
MAX_PORT = 65535


@dataclass(frozen=True)
class TunnelInfo:
    """Last-known tunnel endpoint. Replaced as a whole, never field by field."""

    server_addr: str
    remote_port: int

    def __post_init__(self) -> None:
        if not isinstance(self.server_addr, str) or not self.server_addr.strip():
            raise ValueError("server_addr must be a non-empty string")
        # bool is an int subclass; True is not a port
        if isinstance(self.remote_port, bool) or not isinstance(self.remote_port, int):
            raise ValueError(f"remote_port must be an integer, got {self.remote_port!r}")
        if not MIN_PORT <= self.remote_port <= MAX_PORT:
            raise ValueError(
                f"remote_port must be in [{MIN_PORT}, {MAX_PORT}], got {self.remote_port}"
            )

    @property
    def public_url(self) -> str:
        return f"{self.server_addr}:{self.remote_port}"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "server": self.server_addr,
            "remote_port": self.remote_port,
            "public_url": self.public_url,
        }
