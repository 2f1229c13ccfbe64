import logging
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from fastapi import Request


def _client_ip(request: Request) -> Optional[str]:
    """Left-most X-Forwarded-For entry, else the socket peer address."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    if request.client:
        return request.client.host
    return None


class LoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = logging.getLogger("uvicorn.error")

    def _log_request(
        self,
        *,
        method: str,
        route: str,
        status: int,
        duration_ms: int,
        client_ip: str,
        req_id: str,
        body_bytes: Optional[int],
    ) -> None:
        self.logger.info(
            "%s %s -> %s %dms ip=%s req_id=%s body=%s",
            method,
            route,
            status,
            duration_ms,
            client_ip,
            req_id,
            "-" if body_bytes is None else body_bytes,
        )

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        req_id = str(uuid.uuid4())

        client_ip = _client_ip(request) or "-"
        method = request.method
        path = request.url.path

        # Attach request id to request.state for downstream handlers
        request.state.request_id = req_id

        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            status = response.status_code if response else 500
            route = getattr(request.scope.get("route"), "path", path)
            body = getattr(request.state, "request_body", None)
            self._log_request(
                method=method,
                route=route,
                status=status,
                duration_ms=duration_ms,
                client_ip=client_ip,
                req_id=req_id,
                body_bytes=None if body is None else len(body),
            )
            if response is not None:
                response.headers["X-Request-ID"] = req_id
                response.headers["X-Process-Time"] = f"{duration_ms}ms"
