#!/usr/bin/env python3
"""Entry point: run the tunnel status server (GET /api/tunnel, GET /health).

Usage: run_server.py [config.yaml] [--port N] [--debug]

The tunnel slot starts empty, so /api/tunnel answers 503 until a tunnel client
in the same process writes to it. Exits 1 when the port cannot be bound.
"""

import argparse
import logging
import os
import sys

# Project root: always resolve relative to script location, not cwd
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)
os.chdir(_PROJECT_ROOT)

# ANSI color codes
_RESET = "\033[0m"
_BOLD = "\033[1m"
_GRAY = "\033[90m"
_CYAN = "\033[36m"
_YELLOW = "\033[33m"
_RED = "\033[31m"

_LEVEL_COLORS = {
    logging.DEBUG: _GRAY,
    logging.INFO: _CYAN,
    logging.WARNING: _YELLOW,
    logging.ERROR: _RED + _BOLD,
    logging.CRITICAL: _RED + _BOLD,
}


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors per log level."""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, _RESET)
        record.levelname = f"{color}[{record.levelname}]{_RESET}"
        return super().format(record)


def setup_logging(debug: bool = False) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.root.handlers.clear()
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG if debug else logging.INFO)


def main() -> int:
    parser = argparse.ArgumentParser(description="Tunnel status server")
    parser.add_argument("config", nargs="?", default=None, help="YAML config (default: config/config.yaml)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind; wins over TUNNEL_STATUS_PORT and the config file")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    args = parser.parse_args()
    setup_logging(debug=args.debug)

    from src.config.settings import read_config
    from src.status_server.server import BindError, run_server

    config, resolved = read_config(args.config)
    logging.getLogger(__name__).info("Config: %s", resolved)
    try:
        run_server(config, port=args.port)
    except BindError as e:
        print(f"{e}. Run: lsof -i :{e.port}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
