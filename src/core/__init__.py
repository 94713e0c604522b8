"""Shared utilities: structured logging helpers."""

from src.core.logging_utils import log_server_state, log_tunnel_state

__all__ = ["log_server_state", "log_tunnel_state"]
