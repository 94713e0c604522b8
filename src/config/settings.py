"""YAML config for the status server: file resolution, port, host, log level.

Defaults: loaded from config/config.yaml.example (single source of truth). The
port falls back to 8765 only when neither file nor environment provides one.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from src.tunnel.info import MAX_PORT, MIN_PORT

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

CONFIG_ENV = "TUNNEL_STATUS_CONFIG"
PORT_ENV = "TUNNEL_STATUS_PORT"

DEFAULT_PORT = 8765
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_LEVEL = "info"

# Lazy-loaded example config
_EXAMPLE_CONFIG: Optional[Dict[str, Any]] = None


def _load_example_config() -> Dict[str, Any]:
    """Load config.yaml.example as defaults. Empty dict when the example is not shipped."""
    global _EXAMPLE_CONFIG
    if _EXAMPLE_CONFIG is None:
        path = _PROJECT_ROOT / "config" / "config.yaml.example"
        if path.exists():
            with open(path, encoding="utf-8") as f:
                _EXAMPLE_CONFIG = yaml.safe_load(f) or {}
        else:
            _EXAMPLE_CONFIG = {}
    return _EXAMPLE_CONFIG


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into base. Override values take precedence."""
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def read_config(config_path: Optional[str] = None) -> Tuple[dict, str]:
    """Load YAML config. Returns (config, resolved_path).

    Order: explicit path, $TUNNEL_STATUS_CONFIG, config/config.yaml, config/config.yaml.example.
    """
    config_path = config_path or os.environ.get(CONFIG_ENV) or str(_PROJECT_ROOT / "config" / "config.yaml")
    if not Path(config_path).exists():
        config_path = str(_PROJECT_ROOT / "config" / "config.yaml.example")
    config_path = str(Path(config_path).resolve())
    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    return config, config_path


def _validate_port(value: Any) -> int:
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"status server port must be an integer, got {value!r}")
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"status server port must be an integer, got {value!r}")
    if not MIN_PORT <= port <= MAX_PORT:
        raise ValueError(f"status server port must be in [{MIN_PORT}, {MAX_PORT}], got {port}")
    return port


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def get_status_server_port(config: Optional[Dict[str, Any]] = None, port: Optional[int] = None) -> int:
    """Port: explicit port, then $TUNNEL_STATUS_PORT, then status_server.port, then server.port,
    then the example file, then 8765. A present but invalid value (including 0) raises ValueError."""
    if port is not None:
        return _validate_port(port)
    env_port = os.environ.get(PORT_ENV)
    if env_port:
        return _validate_port(env_port)
    cfg = config or {}
    value = _first_present(
        (cfg.get("status_server") or {}).get("port"),
        (cfg.get("server") or {}).get("port"),
        (_load_example_config().get("status_server") or {}).get("port"),
        DEFAULT_PORT,
    )
    return _validate_port(value)


def get_status_server_config(config: Optional[Dict[str, Any]] = None, port: Optional[int] = None) -> Dict[str, Any]:
    """Return flat {host, port, log_level} for the status server. port overrides file and environment."""
    cfg = _deep_merge(_load_example_config(), config or {})
    section = cfg.get("status_server") or {}
    return {
        "host": section.get("host") or DEFAULT_HOST,
        "port": get_status_server_port(config, port=port),
        "log_level": str(section.get("log_level") or DEFAULT_LOG_LEVEL).lower(),
    }
