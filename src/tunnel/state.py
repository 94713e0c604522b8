"""In-memory tunnel slot: one external writer (tunnel client), many HTTP readers."""

import logging
import threading
from typing import Optional

from src.core.logging_utils import log_tunnel_state
from src.tunnel.info import TunnelInfo

logger = logging.getLogger(__name__)


class TunnelState:
    """Thread-safe Optional[TunnelInfo].

    The lock only guards the reference swap. TunnelInfo is frozen, so the
    reference handed out by read() is already a snapshot: a reader sees either
    the old record or the new one, never a mix of both.
    """

    def __init__(self, initial: Optional[TunnelInfo] = None):
        self._lock = threading.Lock()
        self._info: Optional[TunnelInfo] = initial

    def read(self) -> Optional[TunnelInfo]:
        with self._lock:
            return self._info

    def write(self, new_value: Optional[TunnelInfo]) -> None:
        """Replace the slot (last write wins). None marks the tunnel as not established."""
        with self._lock:
            previous = self._info
            self._info = new_value
        log_tunnel_state(current=new_value, previous=previous)

    def publish(self, server_addr: str, remote_port: int) -> TunnelInfo:
        """Build and store a TunnelInfo. Raises ValueError on an invalid endpoint."""
        info = TunnelInfo(server_addr=server_addr, remote_port=remote_port)
        self.write(info)
        return info

    def clear(self) -> None:
        self.write(None)

    @property
    def is_connected(self) -> bool:
        return self.read() is not None
