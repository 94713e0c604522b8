"""Tunnel status server: GET /api/tunnel, GET /health over a shared TunnelState."""

from src.status_server.app import create_app, tunnel_payload
from src.status_server.lifecycle import ServerLifecycle, ServerState
from src.status_server.server import BindError, StatusServer, run_server, start_api_server

__all__ = [
    "BindError",
    "ServerLifecycle",
    "ServerState",
    "StatusServer",
    "create_app",
    "run_server",
    "start_api_server",
    "tunnel_payload",
]
