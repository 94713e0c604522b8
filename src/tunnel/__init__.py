"""Tunnel endpoint record and the shared slot the status server reads from."""

from src.tunnel.info import TunnelInfo
from src.tunnel.state import TunnelState

__all__ = ["TunnelInfo", "TunnelState"]
