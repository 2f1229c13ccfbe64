"""ASGI middleware that decodes request bodies before the app sees them."""

from __future__ import annotations

from typing import Optional

from starlette.types import ASGIApp, Receive, Scope, Send

from ..errors import BodyParserError
from ..exception_handlers import body_parser_error_response
from ..parser import BodyParser, new_default
from ..request import HEADER_CONTENT_LENGTH, RequestView, replay_receive


class BodyParserMiddleware:
    """Run :class:`BodyParser` on every HTTP request.

    When the body was read and decoded, the app receives the decoded bytes
    through ``receive`` (so ``await request.body()`` and ``request.json()``
    see them), ``Content-Length`` is rewritten to match, and the bytes are
    also available as ``request.state.request_body``. Pipeline failures are
    answered here with a JSON error and the app is not called.
    """

    def __init__(self, app: ASGIApp, parser: Optional[BodyParser] = None):
        self.app = app
        self.parser = parser or new_default()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        view = RequestView(scope, receive)
        handed_over = False

        async def call_next() -> None:
            nonlocal handed_over
            handed_over = True
            app_receive = receive
            if view.stream_opened:
                body = view.body or b""
                view.set_header(HEADER_CONTENT_LENGTH, str(len(body)))
                app_receive = replay_receive(body, receive)
            await self.app(scope, app_receive, send)

        try:
            await self.parser(view, call_next)
        except BodyParserError as exc:
            if handed_over:
                raise
            response = body_parser_error_response(
                exc,
                method=view.method,
                path=view.path,
                req_id=scope.get("state", {}).get("request_id"),
            )
            await response(scope, receive, send)
