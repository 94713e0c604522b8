"""Status server bootstrap: bind 0.0.0.0:<port>, then serve the FastAPI app with uvicorn.

Binding happens on our own socket before uvicorn starts, so an occupied or
privileged port raises BindError to the caller instead of uvicorn logging and
exiting the process.
"""

import logging
import socket
import threading
from typing import Any, Dict, Optional

import uvicorn

from src.config.settings import DEFAULT_HOST, DEFAULT_LOG_LEVEL, get_status_server_config
from src.core.logging_utils import log_server_state
from src.status_server.app import create_app
from src.status_server.lifecycle import ServerLifecycle, ServerState
from src.tunnel.state import TunnelState

logger = logging.getLogger(__name__)

_BACKLOG = 2048


class BindError(OSError):
    """Status server could not bind host:port (in use, insufficient privilege, bad address)."""

    def __init__(self, host: str, port: int, cause: OSError):
        reason = cause.strerror or str(cause)
        super().__init__(cause.errno, f"cannot bind status server to {host}:{port}: {reason}")
        self.host = host
        self.port = port


class StatusServer:
    """One listener serving one TunnelState. bind() then serve(), or start_in_background()."""

    def __init__(
        self,
        state: TunnelState,
        port: int,
        host: str = DEFAULT_HOST,
        log_level: str = DEFAULT_LOG_LEVEL,
    ) -> None:
        self._state = state
        self._host = host
        self._port = port
        self._sock: Optional[socket.socket] = None
        self._lifecycle = ServerLifecycle(on_transition=self._on_transition)
        self._app = create_app(state)
        self._server = uvicorn.Server(
            uvicorn.Config(self._app, host=host, port=port, log_level=log_level, lifespan="off")
        )

    def _on_transition(self, from_state: ServerState, to_state: ServerState) -> None:
        log_server_state(from_state.value, to_state.value, host=self._host, port=self._port)

    @property
    def state(self) -> TunnelState:
        return self._state

    @property
    def lifecycle(self) -> ServerLifecycle:
        return self._lifecycle

    @property
    def serving(self) -> bool:
        return self._lifecycle.is_serving()

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        """Configured port, or the kernel-assigned one after bind() when configured as 0."""
        return self._port

    def bind(self) -> socket.socket:
        """Bind and listen. Raises BindError; the server stays STARTING on failure.

        Raises RuntimeError once the server has been stopped; a stopped server is not restarted.
        """
        if self._sock is not None:
            return self._sock
        if self._lifecycle.current == ServerState.STOPPED:
            raise RuntimeError(f"status server on {self._host}:{self._port} was stopped")
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self._host, self._port))
            sock.listen(_BACKLOG)
        except OSError as e:
            sock.close()
            logger.error("Status server bind failed on %s:%s: %s", self._host, self._port, e)
            raise BindError(self._host, self._port, e) from e
        self._sock = sock
        self._port = sock.getsockname()[1]
        self._lifecycle.transition(ServerState.SERVING)
        logger.info("API server listening on http://%s:%s", self._host, self._port)
        return sock

    def serve(self) -> None:
        """Bind if needed, then block serving requests until stop() or a shutdown signal."""
        sock = self.bind()
        try:
            self._server.run(sockets=[sock])
        finally:
            self._lifecycle.transition(ServerState.STOPPED)

    def start_in_background(self) -> threading.Thread:
        """Bind in the calling thread (so BindError surfaces here), serve on a daemon thread."""
        self.bind()
        thread = threading.Thread(target=self.serve, name="status-server", daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        """Ask uvicorn to exit; serve() returns once in-flight requests finish."""
        self._server.should_exit = True
        if self._lifecycle.current == ServerState.STARTING:
            self._lifecycle.transition(ServerState.STOPPED)


def start_api_server(
    port: int,
    state: TunnelState,
    host: str = DEFAULT_HOST,
    log_level: str = DEFAULT_LOG_LEVEL,
) -> None:
    """Serve state on host:port (blocking). Raises BindError if the port cannot be bound."""
    StatusServer(state, port, host=host, log_level=log_level).serve()


def run_server(
    config: Dict[str, Any],
    state: Optional[TunnelState] = None,
    port: Optional[int] = None,
) -> None:
    """Start the status server (host 0.0.0.0, port from config unless port is given). Blocks."""
    server_cfg = get_status_server_config(config, port=port)
    state = state if state is not None else TunnelState()
    start_api_server(
        server_cfg["port"],
        state,
        host=server_cfg["host"],
        log_level=server_cfg["log_level"],
    )
