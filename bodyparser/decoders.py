"""Body decoders: an applicability predicate paired with a transform.

A decoder is chosen per request by :func:`select_decoder`; at most one
decoder runs, so registering gzip and json together does not chain them.
"""

from __future__ import annotations

import gzip
import json
import re
import zlib
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence
from urllib.parse import parse_qsl

from .errors import gzip_error, invalid_json_error, malformed_form_error
from .request import HEADER_CONTENT_ENCODING, HEADER_CONTENT_TYPE, RequestView

GZIP = "gzip"
JSON_CONTENT_TYPE = "application/json"
FORM_URL_ENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Fixed part of a gzip member header (RFC 1952)
GZIP_HEADER_SIZE = 10

_BAD_ESCAPE = re.compile(rb"%(?![0-9A-Fa-f]{2})")

_CLOSERS = {ord("{"): ord("}"), ord("["): ord("]")}


def media_type(request: RequestView) -> str:
    """First ``;``-delimited field of the Content-Type header, as sent."""
    return request.get_header(HEADER_CONTENT_TYPE).split(";")[0]


class Decoder(ABC):
    """Rewrites a request body when :meth:`applies` holds for the request."""

    name = "decoder"

    @abstractmethod
    def applies(self, request: RequestView) -> bool:
        """Whether this decoder handles ``request``."""

    @abstractmethod
    def transform(self, request: RequestView, data: bytes) -> bytes:
        """Return the decoded body, or raise :class:`BodyParserError`."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class FuncDecoder(Decoder):
    """Decoder built from a pair of plain callables."""

    def __init__(
        self,
        applies: Callable[[RequestView], bool],
        transform: Callable[[RequestView, bytes], bytes],
        name: str = "custom",
    ):
        self._applies = applies
        self._transform = transform
        self.name = name

    def applies(self, request: RequestView) -> bool:
        return self._applies(request)

    def transform(self, request: RequestView, data: bytes) -> bytes:
        return self._transform(request, data)


class GzipDecoder(Decoder):
    """Decompress bodies sent with ``Content-Encoding: gzip``.

    Side effect: the Content-Encoding header is cleared before decompressing,
    so later stages see the body as an identity-encoded payload.
    """

    name = "gzip"

    def applies(self, request: RequestView) -> bool:
        return request.get_header(HEADER_CONTENT_ENCODING) == GZIP

    def transform(self, request: RequestView, data: bytes) -> bytes:
        request.set_header(HEADER_CONTENT_ENCODING, "")
        return gunzip(data)


class JSONDecoder(Decoder):
    """Cheap structural check for JSON bodies.

    Only the outer brackets are checked: the trimmed body must start with
    ``{`` or ``[`` and end with the matching closer. Bracket-balanced
    garbage gets through; the app's own parser is expected to reject it.
    """

    name = "json"

    def applies(self, request: RequestView) -> bool:
        return media_type(request) == JSON_CONTENT_TYPE

    def transform(self, request: RequestView, data: bytes) -> bytes:
        data = data.strip()
        if not data:
            return b""
        closer = _CLOSERS.get(data[0])
        if closer is None or len(data) < 2 or data[-1] != closer:
            raise invalid_json_error()
        return data


class FormURLEncodedDecoder(Decoder):
    """Transcode ``application/x-www-form-urlencoded`` bodies to JSON.

    Keys come out in first-seen order. A key seen once maps to a string,
    a repeated key maps to a list of strings in the order they were sent.
    """

    name = "form"

    def applies(self, request: RequestView) -> bool:
        return media_type(request) == FORM_URL_ENCODED_CONTENT_TYPE

    def transform(self, request: RequestView, data: bytes) -> bytes:
        try:
            values = parse_form(data)
        except ValueError as exc:
            raise malformed_form_error(exc) from exc
        result = {key: items[0] if len(items) == 1 else items for key, items in values.items()}
        return json.dumps(result, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def gunzip(data: bytes) -> bytes:
    if len(data) < GZIP_HEADER_SIZE:
        raise gzip_error(EOFError("unexpected EOF"))
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as exc:
        raise gzip_error(exc) from exc


def parse_form(data: bytes) -> Dict[str, List[str]]:
    """Parse ``k=v&k=v`` into ``{key: [values]}`` keeping first-seen key order.

    Raises ``ValueError`` on a bad percent escape, a ``;`` separator, or
    bytes that do not decode as UTF-8.
    """
    match = _BAD_ESCAPE.search(data)
    if match:
        escape = data[match.start():match.start() + 3].decode("latin-1")
        raise ValueError(f'invalid URL escape "{escape}"')
    if b";" in data:
        raise ValueError("invalid semicolon separator in query")
    try:
        text = data.decode("utf-8")
        pairs = parse_qsl(text, keep_blank_values=True, errors="strict")
    except UnicodeDecodeError as exc:
        raise ValueError(f"invalid UTF-8 in form body: {exc.reason}") from exc
    values: Dict[str, List[str]] = {}
    for key, value in pairs:
        values.setdefault(key, []).append(value)
    return values


def select_decoder(decoders: Sequence[Decoder], request: RequestView) -> Optional[Decoder]:
    """Return the first decoder, in registration order, that applies."""
    for decoder in decoders:
        if decoder.applies(request):
            return decoder
    return None


def default_json_content_type_validate(request: RequestView) -> bool:
    return request.get_header(HEADER_CONTENT_TYPE).startswith(JSON_CONTENT_TYPE)


def default_json_and_form_content_type_validate(request: RequestView) -> bool:
    content_type = request.get_header(HEADER_CONTENT_TYPE)
    return content_type.startswith((JSON_CONTENT_TYPE, FORM_URL_ENCODED_CONTENT_TYPE))
