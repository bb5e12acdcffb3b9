from __future__ import annotations

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_rid_ctx: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """
    Request id of the current request, or "" outside of a request.

    Log lines emitted from startup hooks, the seed routine or tests carry an
    empty id instead of a made-up one.
    """
    return _rid_ctx.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, header_name: str = REQUEST_ID_HEADER):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next):
        rid = (request.headers.get(self.header_name) or "").strip()[:64] or uuid.uuid4().hex
        token = _rid_ctx.set(rid)
        try:
            response: Response = await call_next(request)
        finally:
            _rid_ctx.reset(token)
        response.headers.setdefault(self.header_name, rid)
        return response
