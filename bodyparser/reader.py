"""Byte streams for request bodies and a size-bounded reader over them."""

from __future__ import annotations

from typing import Optional, Protocol

from starlette.requests import ClientDisconnect
from starlette.types import Message, Receive

# Read size used when draining a stream; a read asks for at most this much
DEFAULT_CHUNK_SIZE = 32 * 1024


class ByteStream(Protocol):
    """Readable, closable async byte stream. ``read`` returns b"" at EOF."""

    async def read(self, size: int = -1) -> bytes: ...

    async def close(self) -> None: ...


class BodyTooLarge(Exception):
    """Raised by :class:`BoundedReader` once the byte budget is exceeded."""

    def __init__(self, limit: int, seen: int):
        super().__init__(f"request body is too large, it should be <= {limit}")
        self.limit = limit
        # Bytes produced by the underlying stream before the reader stopped
        self.seen = seen


class ReceiveStream:
    """Adapt an ASGI ``receive`` callable to :class:`ByteStream`.

    ``http.request`` messages are buffered and handed out in slices of at
    most ``size`` bytes. An ``http.disconnect`` before the last chunk raises
    :class:`starlette.requests.ClientDisconnect`.
    """

    def __init__(self, receive: Receive):
        self._receive = receive
        self._buffer = b""
        self._more_body = True
        self._closed = False

    async def read(self, size: int = -1) -> bytes:
        if self._closed:
            raise ValueError("read from closed stream")
        while not self._buffer and self._more_body:
            message: Message = await self._receive()
            if message["type"] == "http.request":
                self._buffer = message.get("body", b"")
                self._more_body = message.get("more_body", False)
            elif message["type"] == "http.disconnect":
                self._more_body = False
                raise ClientDisconnect()
        if size < 0 or size >= len(self._buffer):
            chunk, self._buffer = self._buffer, b""
        else:
            chunk, self._buffer = self._buffer[:size], self._buffer[size:]
        return chunk

    async def close(self) -> None:
        self._buffer = b""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed


class BoundedReader:
    """Stream wrapper that never yields more than ``limit`` bytes.

    Each read asks the wrapped stream for one byte beyond the remaining
    budget, which is enough to detect an overflow without a second pass and
    without knowing the total size up front.

    States: *active*, then *exhausted*. EOF and errors raised by the wrapped
    stream are sticky, as is :class:`BodyTooLarge`. When a read overflows,
    the bytes up to the budget are returned (or, when there are none, the
    error is raised right away) and every later read raises the same
    :class:`BodyTooLarge` without touching the wrapped stream.
    """

    def __init__(self, stream: ByteStream, limit: int):
        self._stream = stream
        self._remaining = limit
        self._limit = limit
        self._seen = 0
        self._exhausted = False
        self._error: Optional[BaseException] = None

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    async def read(self, size: int = DEFAULT_CHUNK_SIZE) -> bytes:
        if self._error is not None:
            raise self._error
        if self._exhausted or size == 0:
            return b""
        if size < 0 or size > self._remaining + 1:
            size = self._remaining + 1
        try:
            chunk = await self._stream.read(size)
        except Exception as exc:
            self._exhausted = True
            self._error = exc
            raise

        self._seen += len(chunk)
        if len(chunk) <= self._remaining:
            self._remaining -= len(chunk)
            if not chunk:
                self._exhausted = True
            return chunk

        allowed = self._remaining
        self._remaining = 0
        self._exhausted = True
        self._error = BodyTooLarge(self._limit, self._seen)
        if not allowed:
            # Nothing left to hand back; b"" would read as EOF
            raise self._error
        return chunk[:allowed]

    async def close(self) -> None:
        await self._stream.close()


async def read_all(stream: ByteStream, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
    """Read ``stream`` until EOF. Errors raised by the stream propagate."""
    buf = bytearray()
    while True:
        chunk = await stream.read(chunk_size)
        if not chunk:
            return bytes(buf)
        buf.extend(chunk)
