"""Pytest fixtures for the tunnel status server tests."""

import sys
from pathlib import Path

import pytest
import yaml

# Ensure project root is in path for src imports
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


@pytest.fixture
def project_root() -> Path:
    return _project_root()


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Path to config file. Prefers config.yaml, falls back to example."""
    cfg = project_root / "config" / "config.yaml"
    if cfg.exists():
        return cfg
    return project_root / "config" / "config.yaml.example"


@pytest.fixture
def config(config_path: Path) -> dict:
    """Load config dict from YAML."""
    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@pytest.fixture
def state():
    """Empty TunnelState (tunnel not established)."""
    from src.tunnel.state import TunnelState

    return TunnelState()


@pytest.fixture
def client(state):
    """TestClient over create_app(state); the test writes to `state` directly."""
    from fastapi.testclient import TestClient

    from src.status_server.app import create_app

    return TestClient(create_app(state))
