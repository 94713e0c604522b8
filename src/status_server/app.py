"""FastAPI app for GET /api/tunnel and GET /health. Everything else is a plain-text 404."""

from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.tunnel.info import TunnelInfo
from src.tunnel.state import TunnelState

NOT_CONNECTED_ERROR = "Tunnel not established yet"
NOT_FOUND_BODY = "Not Found"


def tunnel_payload(info: Optional[TunnelInfo]) -> Tuple[int, Dict[str, Any]]:
    """Render (status_code, body) for one TunnelState snapshot."""
    if info is None:
        return 503, {"status": "not_connected", "error": NOT_CONNECTED_ERROR}
    payload: Dict[str, Any] = {"status": "connected"}
    payload.update(info.as_dict())
    return 200, payload


def _not_found_response() -> PlainTextResponse:
    return PlainTextResponse(NOT_FOUND_BODY, status_code=404)


async def _not_found(_: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    # Unknown path (404) and known path with another method (405) look the same to callers.
    if exc.status_code in (404, 405):
        return _not_found_response()
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code)


def _raw_path_is(request: Request, path: bytes) -> bool:
    """Compare the path as sent, before percent-decoding; routing alone matches /%68ealth."""
    raw = request.scope.get("raw_path")
    if raw is None:
        raw = request.scope["path"].encode("utf-8")
    return raw.split(b"?", 1)[0] == path


def create_app(state: TunnelState) -> FastAPI:
    """Build the status app bound to one TunnelState. The app only reads the state."""
    app = FastAPI(
        title="Tunnel Status Server",
        description="Current tunnel endpoint and liveness probe",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )
    app.add_exception_handler(StarletteHTTPException, _not_found)
    app.state.tunnel_state = state

    @app.get("/api/tunnel")
    def get_tunnel(request: Request) -> Response:
        """200 with the endpoint when connected, 503 not_connected otherwise."""
        if not _raw_path_is(request, b"/api/tunnel"):
            return _not_found_response()
        status_code, body = tunnel_payload(state.read())
        return JSONResponse(status_code=status_code, content=body)

    @app.get("/health")
    def get_health(request: Request) -> Response:
        if not _raw_path_is(request, b"/health"):
            return _not_found_response()
        return JSONResponse(content={"status": "ok"})

    return app
