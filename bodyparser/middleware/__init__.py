from .body_parser import BodyParserMiddleware
from .logging import LoggingMiddleware

__all__ = ["BodyParserMiddleware", "LoggingMiddleware"]
