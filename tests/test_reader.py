"""Tests for the bounded reader and the ASGI receive stream."""

from __future__ import annotations

import pytest
from starlette.requests import ClientDisconnect

from bodyparser.reader import BodyTooLarge, BoundedReader, ReceiveStream, read_all

from conftest import FakeReceive, FakeStream, run


def test_bounded_reader_passes_through_under_limit():
    """Bytes within budget pass unchanged and the budget shrinks."""
    stream = FakeStream([b"abc", b"de"])
    reader = BoundedReader(stream, 10)

    assert run(reader.read(100)) == b"abc"
    assert reader.remaining == 7
    assert run(reader.read(100)) == b"de"
    assert reader.remaining == 5
    assert run(reader.read(100)) == b""
    assert reader.exhausted


def test_bounded_reader_requests_one_byte_past_budget():
    """A large read is clipped to remaining + 1 bytes."""
    stream = FakeStream([b"x" * 100])
    reader = BoundedReader(stream, 4)

    run(reader.read(32 * 1024))
    assert stream.reads == [5]


def test_bounded_reader_overflow_is_sticky():
    """Overflow returns the bytes up to the limit, then raises on every read."""
    stream = FakeStream([b"abc"])
    reader = BoundedReader(stream, 1)

    assert run(reader.read(100)) == b"a"
    assert reader.remaining == 0
    with pytest.raises(BodyTooLarge) as first:
        run(reader.read(100))
    with pytest.raises(BodyTooLarge) as second:
        run(reader.read(100))
    assert first.value is second.value
    assert first.value.limit == 1
    assert first.value.seen == 2
    # The wrapped stream is not touched once exhausted
    assert stream.reads == [2]


def test_bounded_reader_overflow_with_no_budget_left_raises_immediately():
    """An overflow after the budget is spent must not look like EOF."""
    stream = FakeStream([b"ab", b"c"])
    reader = BoundedReader(stream, 2)

    assert run(reader.read(100)) == b"ab"
    with pytest.raises(BodyTooLarge):
        run(reader.read(100))


def test_bounded_reader_exact_limit_is_allowed():
    stream = FakeStream([b"abc"])
    assert run(read_all(BoundedReader(stream, 3))) == b"abc"


def test_bounded_reader_underlying_error_is_sticky():
    """Errors from the wrapped stream are raised unchanged and remembered."""
    err = OSError("connection reset")
    stream = FakeStream([b"ab"], error=err)
    reader = BoundedReader(stream, 10)

    assert run(reader.read(100)) == b"ab"
    with pytest.raises(OSError) as exc_info:
        run(reader.read(100))
    assert exc_info.value is err
    with pytest.raises(OSError):
        run(reader.read(100))
    assert len(stream.reads) == 2


def test_bounded_reader_eof_is_sticky():
    stream = FakeStream([b"a"])
    reader = BoundedReader(stream, 10)

    assert run(read_all(reader)) == b"a"
    assert run(reader.read(10)) == b""
    assert len(stream.reads) == 2


def test_bounded_reader_close_closes_stream():
    stream = FakeStream([b"a"])
    run(BoundedReader(stream, 10).close())
    assert stream.closed


def test_read_all_raises_over_limit_without_buffering_more():
    """A one-byte limit over a three-byte body fails instead of truncating."""
    stream = FakeStream([b"abc"])
    with pytest.raises(BodyTooLarge):
        run(read_all(BoundedReader(stream, 1)))


def test_receive_stream_joins_chunks_and_slices_reads():
    receive = FakeReceive(b"hello ", b"world")
    stream = ReceiveStream(receive)

    assert run(stream.read(3)) == b"hel"
    assert run(stream.read(100)) == b"lo "
    assert run(stream.read(100)) == b"world"
    assert run(stream.read(100)) == b""
    # No receive after the last chunk
    assert receive.calls == 2


def test_receive_stream_disconnect_raises():
    stream = ReceiveStream(FakeReceive(b"par", disconnect=True))

    assert run(stream.read(100)) == b"par"
    with pytest.raises(ClientDisconnect):
        run(stream.read(100))


def test_receive_stream_close():
    stream = ReceiveStream(FakeReceive(b"abc"))
    run(stream.close())
    assert stream.closed
    with pytest.raises(ValueError):
        run(stream.read(1))
