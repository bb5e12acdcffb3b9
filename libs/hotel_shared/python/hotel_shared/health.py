from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping

from fastapi import FastAPI
from fastapi.responses import JSONResponse

_log = logging.getLogger("hotel.health")


def add_standard_health(
    app: FastAPI,
    env_key: str = "ENV",
    checks: Mapping[str, Callable[[], object]] | None = None,
):
    """
    Mount `GET /health`.

    Each entry of `checks` is called on every probe; a check that raises marks
    the service as degraded and the endpoint answers 503 so load balancers
    stop routing to it.
    """

    @app.get("/health")
    def _health():
        results: dict[str, str] = {}
        ok = True
        for name, check in (checks or {}).items():
            try:
                check()
                results[name] = "ok"
            except Exception as e:
                ok = False
                results[name] = "error"
                _log.warning("health check %s failed: %s", name, e)
        body = {
            "status": "ok" if ok else "degraded",
            "env": os.getenv(env_key, "dev"),
            "service": app.title,
            "version": getattr(app, "version", None),
            "checks": results,
        }
        return JSONResponse(body, status_code=200 if ok else 503)
