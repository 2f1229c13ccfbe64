"""Request body decoding for ASGI apps: bounded reads, gzip, json and form decoders."""

from .decoders import (
    Decoder,
    FormURLEncodedDecoder,
    FuncDecoder,
    GzipDecoder,
    JSONDecoder,
    default_json_and_form_content_type_validate,
    default_json_content_type_validate,
    select_decoder,
)
from .errors import ERR_CATEGORY, BodyParserError
from .middleware.body_parser import BodyParserMiddleware
from .parser import (
    DEFAULT_LIMIT,
    BodyParser,
    BodyParserConfig,
    new,
    new_default,
    new_json_and_form,
)
from .reader import BodyTooLarge, BoundedReader, ReceiveStream, read_all
from .request import RequestView
from .version import __version__

__all__ = [
    "BodyParser",
    "BodyParserConfig",
    "BodyParserError",
    "BodyParserMiddleware",
    "BodyTooLarge",
    "BoundedReader",
    "DEFAULT_LIMIT",
    "Decoder",
    "ERR_CATEGORY",
    "FormURLEncodedDecoder",
    "FuncDecoder",
    "GzipDecoder",
    "JSONDecoder",
    "ReceiveStream",
    "RequestView",
    "default_json_and_form_content_type_validate",
    "default_json_content_type_validate",
    "new",
    "new_default",
    "new_json_and_form",
    "read_all",
    "select_decoder",
    "__version__",
]
