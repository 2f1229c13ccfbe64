"""Body parser pipeline: gating, bounded read, decoder selection."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, FrozenSet, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .decoders import (
    Decoder,
    FormURLEncodedDecoder,
    GzipDecoder,
    JSONDecoder,
    default_json_and_form_content_type_validate,
    default_json_content_type_validate,
    select_decoder,
)
from .errors import body_too_large_error, read_failed_error
from .reader import BodyTooLarge, BoundedReader, read_all
from .request import HEADER_CONTENT_LENGTH, RequestView

log = logging.getLogger("uvicorn.error")

# 50 KiB
DEFAULT_LIMIT = 50 * 1024
DEFAULT_METHODS = frozenset({"POST", "PUT", "PATCH"})

Predicate = Callable[[RequestView], bool]
T = TypeVar("T")


def default_skipper(request: RequestView) -> bool:
    return False


class BodyParserConfig(BaseModel):
    """Read-only pipeline configuration, shared by every request."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # Max body size in bytes; 0 disables the limit
    limit: int = Field(default=DEFAULT_LIMIT, ge=0)
    # Order matters: the first decoder that applies is the only one run
    decoders: Tuple[Decoder, ...] = ()
    skipper: Predicate = default_skipper
    content_type_validate: Predicate = default_json_content_type_validate
    methods: FrozenSet[str] = DEFAULT_METHODS

    @field_validator("methods", mode="before")
    @classmethod
    def _normalize_methods(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        return frozenset(m.strip().upper() for m in value if m and m.strip())

    def add_decoder(self, decoder: Decoder) -> "BodyParserConfig":
        """Return a copy with ``decoder`` registered after the existing ones."""
        return self.model_copy(update={"decoders": self.decoders + (decoder,)})

    @classmethod
    def from_settings(cls, settings) -> "BodyParserConfig":
        """Build the config described by :class:`bodyparser.config.Settings`."""
        decoders: Tuple[Decoder, ...] = (GzipDecoder(), JSONDecoder())
        validate = default_json_content_type_validate
        if settings.accept_form:
            decoders += (FormURLEncodedDecoder(),)
            validate = default_json_and_form_content_type_validate
        return cls(
            limit=settings.body_limit,
            decoders=decoders,
            content_type_validate=validate,
            methods=settings.methods,
        )


class BodyParser:
    """Decode request bodies before handing them to the next stage.

    Calling the parser with a :class:`RequestView` and a continuation either
    stores the decoded body on the view and returns what the continuation
    returns, or raises :class:`bodyparser.errors.BodyParserError` without
    calling the continuation.
    """

    def __init__(self, config: Optional[BodyParserConfig] = None):
        self.config = config or BodyParserConfig()

    def _gated_out(self, request: RequestView) -> Optional[str]:
        if self.config.skipper(request):
            return "skipped"
        if request.body:
            return "body already read"
        if not self.config.content_type_validate(request):
            return "content type"
        if request.method not in self.config.methods:
            return "method"
        return None

    async def read_body(self, request: RequestView) -> bytes:
        """Read the raw body under the configured limit and close the stream."""
        limit = self.config.limit
        raw = request.stream
        stream = BoundedReader(raw, limit) if limit > 0 else raw
        try:
            return await read_all(stream)
        except BodyTooLarge as exc:
            size, exact = _body_size(request, exc)
            raise body_too_large_error(size, limit, exact=exact) from exc
        except Exception as exc:
            raise read_failed_error(exc) from exc
        finally:
            await stream.close()

    async def __call__(self, request: RequestView, call_next: Callable[[], Awaitable[T]]) -> T:
        reason = self._gated_out(request)
        if reason is not None:
            log.debug("Body parser pass-through %s %s (%s)", request.method, request.path, reason)
            return await call_next()

        body = await self.read_body(request)

        decoder = select_decoder(self.config.decoders, request)
        if decoder is not None:
            size = len(body)
            body = decoder.transform(request, body)
            log.debug("Body decoded by %s: %d -> %d bytes", decoder.name, size, len(body))

        request.body = body
        return await call_next()


def _body_size(request: RequestView, exc: BodyTooLarge) -> Tuple[int, bool]:
    """Best known size of an oversized body and whether it is exact."""
    try:
        declared = int(request.get_header(HEADER_CONTENT_LENGTH))
    except ValueError:
        declared = -1
    if declared > exc.limit:
        return declared, True
    return exc.seen, False


def new(config: Optional[BodyParserConfig] = None) -> BodyParser:
    return BodyParser(config)


def new_default() -> BodyParser:
    """Parser with the default limit, gzip then json decoding, json-only gate."""
    return BodyParser(BodyParserConfig(decoders=(GzipDecoder(), JSONDecoder())))


def new_json_and_form() -> BodyParser:
    """Like :func:`new_default`, also accepting url-encoded forms as json."""
    return BodyParser(
        BodyParserConfig(
            decoders=(GzipDecoder(), JSONDecoder(), FormURLEncodedDecoder()),
            content_type_validate=default_json_and_form_content_type_validate,
        )
    )
