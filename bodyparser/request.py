"""Request view over an ASGI scope, as consumed by the body parser."""

from __future__ import annotations

from typing import Optional

from starlette.types import Message, Receive, Scope

from .reader import ReceiveStream

HEADER_CONTENT_TYPE = "content-type"
HEADER_CONTENT_ENCODING = "content-encoding"
HEADER_CONTENT_LENGTH = "content-length"

# Key under scope["state"]; downstream reads it as ``request.state.request_body``
BODY_STATE_KEY = "request_body"


class RequestView:
    """Method, headers, raw body stream and decoded body slot of a request.

    Header writes go straight to ``scope["headers"]`` so any Starlette
    ``Request`` built from the same scope further down the stack sees them.
    The decoded body lives in ``scope["state"]``, which backs
    ``request.state``.
    """

    def __init__(self, scope: Scope, receive: Receive):
        self.scope = scope
        self._receive = receive
        self._stream: Optional[ReceiveStream] = None

    @property
    def method(self) -> str:
        return self.scope.get("method", "GET").upper()

    @property
    def path(self) -> str:
        return self.scope.get("path", "")

    def get_header(self, name: str) -> str:
        """Return the first value of ``name``, or "" if absent."""
        key = name.lower().encode("latin-1")
        for k, v in self.scope.get("headers", []):
            if k.lower() == key:
                return v.decode("latin-1")
        return ""

    def set_header(self, name: str, value: str) -> None:
        """Replace every ``name`` header with ``value``; "" removes it."""
        key = name.lower().encode("latin-1")
        headers = [(k, v) for k, v in self.scope.get("headers", []) if k.lower() != key]
        if value:
            headers.append((key, value.encode("latin-1")))
        self.scope["headers"] = headers

    @property
    def stream(self) -> ReceiveStream:
        """Raw body stream; created on first access and read at most once."""
        if self._stream is None:
            self._stream = ReceiveStream(self._receive)
        return self._stream

    @property
    def stream_opened(self) -> bool:
        return self._stream is not None

    @property
    def body(self) -> Optional[bytes]:
        return self.scope.get("state", {}).get(BODY_STATE_KEY)

    @body.setter
    def body(self, value: Optional[bytes]) -> None:
        self.scope.setdefault("state", {})[BODY_STATE_KEY] = value


def replay_receive(body: bytes, receive: Receive) -> Receive:
    """Return a ``receive`` that yields ``body`` once, then defers to ``receive``.

    Deferring afterwards keeps ``http.disconnect`` visible to the app.
    """
    sent = False

    async def _receive() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return _receive
