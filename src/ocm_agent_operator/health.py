"""Liveness, readiness and metrics endpoints, served on one port."""

from __future__ import annotations

import json
import threading
from typing import Any, Callable

from prometheus_client import make_wsgi_app
from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wrappers import Response

# Set once the startup hook has wired the controller
_ready = threading.Event()


def mark_ready(ready: bool = True) -> None:
    """Switch the /readyz answer."""
    if ready:
        _ready.set()
    else:
        _ready.clear()


def _json_response(payload: dict[str, Any], status: int) -> Response:
    return Response(json.dumps(payload, separators=(",", ":")), status=status, mimetype="application/json")


def _healthz() -> Response:
    return _json_response({"status": "ok"}, 200)


def _readyz() -> Response:
    if _ready.is_set():
        return _json_response({"status": "ready"}, 200)
    return _json_response({"status": "starting"}, 503)


HEALTH_ROUTES: dict[str, Callable[[], Response]] = {
    "/healthz": _healthz,
    "/readyz": _readyz,
}


def create_combined_wsgi_app() -> Any:
    """Serve the health routes and hand every other path to prometheus."""
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> Any:
        route = HEALTH_ROUTES.get(environ.get("PATH_INFO", ""))
        if route is None:
            return metrics_app(environ, start_response)
        return route()(environ, start_response)

    return combined_app


def start_metrics_server(port: int, host: str = "") -> BaseWSGIServer:
    """Serve metrics and health checks from a daemon thread.

    Returns:
        The running server, so the cleanup hook can shut it down
    """
    server = make_server(host, port, create_combined_wsgi_app(), threaded=True)
    threading.Thread(target=server.serve_forever, name="metrics-server", daemon=True).start()
    return server
