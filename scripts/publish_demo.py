#!/usr/bin/env python3
"""Run the status server with a stand-in tunnel client that publishes a fixed endpoint.

Usage: publish_demo.py SERVER_ADDR REMOTE_PORT [--config config.yaml] [--delay SEC]

The server starts with an empty slot (503), then after --delay seconds the
endpoint is written and /api/tunnel switches to 200. Ctrl+C to stop.
"""

import argparse
import logging
import os
import sys
import time

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)
os.chdir(_PROJECT_ROOT)

logging.basicConfig(
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    level=logging.INFO,
)
logger = logging.getLogger("publish_demo")


def main() -> int:
    parser = argparse.ArgumentParser(description="Status server with a demo tunnel publisher")
    parser.add_argument("server_addr", help="Tunnel server address to publish")
    parser.add_argument("remote_port", type=int, help="Remote port assigned by the tunnel server")
    parser.add_argument("--config", default=None, help="YAML config (default: config/config.yaml)")
    parser.add_argument("--delay", type=float, default=2.0, help="Seconds before publishing (default 2)")
    args = parser.parse_args()

    from src.config.settings import get_status_server_config, read_config
    from src.status_server.server import BindError, StatusServer
    from src.tunnel.state import TunnelState

    config, _ = read_config(args.config)
    server_cfg = get_status_server_config(config)
    state = TunnelState()
    server = StatusServer(state, server_cfg["port"], host=server_cfg["host"], log_level=server_cfg["log_level"])
    try:
        thread = server.start_in_background()
    except BindError as e:
        print(f"{e}. Run: lsof -i :{e.port}", file=sys.stderr)
        return 1

    try:
        time.sleep(max(0.0, args.delay))
        info = state.publish(args.server_addr, args.remote_port)
        logger.info("Published tunnel endpoint %s", info.public_url)
        while thread.is_alive():
            thread.join(timeout=1.0)
    except ValueError as e:
        print(f"Invalid tunnel endpoint: {e}", file=sys.stderr)
        server.stop()
        thread.join(timeout=5.0)
        return 1
    except KeyboardInterrupt:
        logger.info("Stopping status server")
        server.stop()
        thread.join(timeout=5.0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
