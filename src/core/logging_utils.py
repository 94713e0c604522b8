"""Structured logging for tunnel state changes and status server lifecycle."""

import logging
import uuid
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from src.tunnel.info import TunnelInfo

logger = logging.getLogger(__name__)


def _ensure_trace_id(extra: dict) -> str:
    trace_id = extra.get("trace_id")
    if not trace_id:
        trace_id = str(uuid.uuid4())[:8]
        extra["trace_id"] = trace_id
    return trace_id


def _format(event: str, extra: dict) -> str:
    return event + " " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))


def log_tunnel_state(
    current: Optional["TunnelInfo"],
    previous: Optional["TunnelInfo"] = None,
    trace_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log a TunnelState write: connected flag, endpoint, and whether it replaced another endpoint."""
    extra = extra or {}
    if trace_id:
        extra["trace_id"] = trace_id
    _ensure_trace_id(extra)
    extra["connected"] = current is not None
    if current is not None:
        extra["server"] = current.server_addr
        extra["remote_port"] = current.remote_port
    if previous is not None:
        extra["previous"] = previous.public_url
    logger.info(_format("tunnel_state", extra))


def log_server_state(
    from_state: str,
    to_state: str,
    host: Optional[str] = None,
    port: Optional[int] = None,
    trace_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log status server lifecycle transition: from_state, to_state, host, port."""
    extra = extra or {}
    if trace_id:
        extra["trace_id"] = trace_id
    _ensure_trace_id(extra)
    extra["from_state"] = from_state
    extra["to_state"] = to_state
    if host is not None:
        extra["host"] = host
    if port is not None:
        extra["port"] = port
    logger.info(_format("server_state", extra))
