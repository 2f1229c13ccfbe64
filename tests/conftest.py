"""Shared fakes for driving the body parser without a server."""

from __future__ import annotations

import asyncio
import pathlib
import sys
from typing import Dict, Iterable, List, Optional

import pytest

# Ensure this repo's package is first on sys.path to avoid name collisions
REPO_ROOT = str(pathlib.Path(__file__).resolve().parents[1])
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


def run(coro):
    """Run a coroutine to completion from a sync test."""
    return asyncio.run(coro)


def make_scope(
    method: str = "POST",
    headers: Optional[Dict[str, str]] = None,
    *,
    body: Optional[bytes] = None,
) -> dict:
    """Minimal ASGI http scope; ``body`` pre-populates the decoded body slot."""
    scope = {
        "type": "http",
        "method": method,
        "path": "/",
        "headers": [
            (k.lower().encode("latin-1"), v.encode("latin-1"))
            for k, v in (headers or {}).items()
        ],
        "state": {},
    }
    if body is not None:
        scope["state"]["request_body"] = body
    return scope


class FakeReceive:
    """ASGI ``receive`` serving ``chunks`` as http.request messages."""

    def __init__(self, *chunks: bytes, disconnect: bool = False):
        self.messages: List[dict] = [
            {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
            for i, chunk in enumerate(chunks)
        ]
        if disconnect:
            # Client goes away before the last chunk
            if self.messages:
                self.messages[-1]["more_body"] = True
            self.messages.append({"type": "http.disconnect"})
        self.calls = 0

    async def __call__(self) -> dict:
        self.calls += 1
        if self.messages:
            return self.messages.pop(0)
        return {"type": "http.disconnect"}


class FakeStream:
    """ByteStream returning ``chunks`` one read at a time, sliced to the read size."""

    def __init__(self, chunks: Iterable[bytes] = (), error: Optional[BaseException] = None):
        self.chunks = list(chunks)
        self.error = error
        self.reads: List[int] = []
        self.closed = False

    async def read(self, size: int = -1) -> bytes:
        self.reads.append(size)
        if self.chunks:
            chunk = self.chunks.pop(0)
            if 0 <= size < len(chunk):
                self.chunks.insert(0, chunk[size:])
                chunk = chunk[:size]
            return chunk
        if self.error is not None:
            raise self.error
        return b""

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_app(monkeypatch):
    """Create the daemon app with env configured via pytest monkeypatch."""

    def _make_app(**env: str):
        for key, value in env.items():
            monkeypatch.setenv(f"BODYPARSER_{key.upper()}", value)

        from bodyparser import daemon

        daemon.get_settings.cache_clear()
        return daemon.create_daemon()

    yield _make_app

    from bodyparser.config import get_settings

    get_settings.cache_clear()
