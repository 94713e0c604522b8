"""Status server bootstrap: bind failure is fatal, real listener serves concurrent readers."""

import socket
import threading
import time

import httpx
import pytest

import src.status_server.server as server_module
from src.status_server.lifecycle import ServerState
from src.status_server.server import BindError, StatusServer, run_server, start_api_server
from src.tunnel.info import TunnelInfo


@pytest.fixture
def occupied_port():
    """A port held by a listening socket for the duration of the test."""
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    blocker.bind(("0.0.0.0", 0))
    blocker.listen(1)
    try:
        yield blocker.getsockname()[1]
    finally:
        blocker.close()


@pytest.fixture
def running_server(state):
    """StatusServer on an ephemeral loopback port, served from a background thread."""
    server = StatusServer(state, 0, host="127.0.0.1", log_level="warning")
    thread = server.start_in_background()
    yield server
    server.stop()
    thread.join(timeout=10)


class TestBind:
    def test_bind_occupied_port_raises(self, state, occupied_port):
        server = StatusServer(state, occupied_port)
        with pytest.raises(BindError) as exc_info:
            server.bind()
        assert exc_info.value.port == occupied_port
        assert exc_info.value.host == "0.0.0.0"
        assert isinstance(exc_info.value, OSError)
        assert server.lifecycle.current == ServerState.STARTING
        assert server.serving is False

    def test_start_api_server_surfaces_bind_error(self, state, occupied_port):
        with pytest.raises(BindError):
            start_api_server(occupied_port, state)

    def test_start_in_background_surfaces_bind_error(self, state, occupied_port):
        server = StatusServer(state, occupied_port)
        with pytest.raises(BindError):
            server.start_in_background()

    def test_bind_assigns_ephemeral_port(self, state):
        server = StatusServer(state, 0, host="127.0.0.1")
        sock = server.bind()
        try:
            assert server.port == sock.getsockname()[1]
            assert server.port > 0
            assert server.serving is True
            assert server.bind() is sock
        finally:
            sock.close()

    def test_stopped_before_bind_refuses_to_start(self, state):
        server = StatusServer(state, 0, host="127.0.0.1")
        server.stop()
        assert server.lifecycle.current == ServerState.STOPPED
        with pytest.raises(RuntimeError):
            server.bind()
        with pytest.raises(RuntimeError):
            server.serve()
        with pytest.raises(RuntimeError):
            server.start_in_background()
        assert server.serving is False
        assert server.lifecycle.current == ServerState.STOPPED


class TestServing:
    def test_health_and_tunnel_over_http(self, running_server, state):
        base = f"http://127.0.0.1:{running_server.port}"
        r = httpx.get(f"{base}/health", timeout=10, trust_env=False)
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}

        r = httpx.get(f"{base}/api/tunnel", timeout=10, trust_env=False)
        assert r.status_code == 503

        state.publish("198.51.100.7", 41000)
        r = httpx.get(f"{base}/api/tunnel", timeout=10, trust_env=False)
        assert r.status_code == 200
        assert r.json()["public_url"] == "198.51.100.7:41000"

        r = httpx.post(f"{base}/health", timeout=10, trust_env=False)
        assert r.status_code == 404
        assert r.text == "Not Found"

        r = httpx.get(f"{base}/%68ealth", timeout=10, trust_env=False)
        assert r.status_code == 404
        assert r.text == "Not Found"

    def test_concurrent_readers_see_whole_records(self, running_server, state):
        old = TunnelInfo("203.0.113.1", 1111)
        new = TunnelInfo("203.0.113.2", 2222)
        allowed = {old.public_url: old, new.public_url: new}
        state.write(old)
        base = f"http://127.0.0.1:{running_server.port}"
        bad = []
        done = threading.Event()

        def writer():
            i = 0
            while not done.is_set():
                state.write(new if i % 2 == 0 else old)
                i += 1
                time.sleep(0.001)

        def reader():
            with httpx.Client(base_url=base, timeout=10, trust_env=False) as http:
                for _ in range(20):
                    body = http.get("/api/tunnel").json()
                    info = allowed.get(body.get("public_url"))
                    if info is None or body["server"] != info.server_addr or body["remote_port"] != info.remote_port:
                        bad.append(body)

        w = threading.Thread(target=writer)
        readers = [threading.Thread(target=reader) for _ in range(5)]
        w.start()
        for t in readers:
            t.start()
        for t in readers:
            t.join()
        done.set()
        w.join()
        assert bad == []

    def test_stop_reaches_stopped(self, state):
        server = StatusServer(state, 0, host="127.0.0.1", log_level="warning")
        thread = server.start_in_background()
        assert server.serving is True
        server.stop()
        thread.join(timeout=10)
        assert not thread.is_alive()
        assert server.lifecycle.current == ServerState.STOPPED


class TestRunServer:
    def test_port_and_host_from_config(self, monkeypatch, state):
        monkeypatch.delenv("TUNNEL_STATUS_PORT", raising=False)
        calls = []
        monkeypatch.setattr(
            server_module,
            "start_api_server",
            lambda port, st, host, log_level: calls.append((port, st, host, log_level)),
        )
        run_server({"status_server": {"port": 9011}}, state=state)
        assert calls == [(9011, state, "0.0.0.0", "info")]

    def test_explicit_port_wins_over_env(self, monkeypatch, state):
        monkeypatch.setenv("TUNNEL_STATUS_PORT", "9400")
        calls = []
        monkeypatch.setattr(
            server_module,
            "start_api_server",
            lambda port, st, host, log_level: calls.append(port),
        )
        run_server({"status_server": {"port": 9011}}, state=state, port=9022)
        assert calls == [9022]

    def test_creates_empty_state_when_none_given(self, monkeypatch):
        monkeypatch.delenv("TUNNEL_STATUS_PORT", raising=False)
        calls = []
        monkeypatch.setattr(
            server_module,
            "start_api_server",
            lambda port, st, host, log_level: calls.append(st),
        )
        run_server({})
        assert len(calls) == 1
        assert calls[0].read() is None
