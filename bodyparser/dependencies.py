"""FastAPI dependencies exposing the body parser to individual routes."""

from typing import Optional

from fastapi import Request

from .parser import BodyParser, new_default
from .request import RequestView


def decoded_body(request: Request) -> bytes:
    """Body stored by :class:`BodyParserMiddleware`; b"" when it was not read."""
    return getattr(request.state, "request_body", None) or b""


def parse_body(parser: Optional[BodyParser] = None):
    """FastAPI dependency that runs ``parser`` for a single route.

    Use it on apps without :class:`BodyParserMiddleware`. Failures raise
    :class:`bodyparser.errors.BodyParserError`, which the registered
    exception handler turns into a JSON error response.
    """
    parser = parser or new_default()

    async def dependency(request: Request) -> bytes:
        view = RequestView(request.scope, request.receive)

        async def call_next() -> bytes:
            return view.body or b""

        return await parser(view, call_next)

    return dependency
