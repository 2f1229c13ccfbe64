"""Classified errors raised by the body parser pipeline."""

from __future__ import annotations

from typing import Any, Dict, Optional

# Stable tag carried by every pipeline failure (log correlation, tooling)
ERR_CATEGORY = "bodyparser"


class BodyParserError(Exception):
    """A pipeline failure with an HTTP status and an exceptional flag.

    ``exception`` marks infrastructure faults (mapped to 5xx) as opposed to
    faults in the client's input (mapped to 4xx).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 400,
        exception: bool = False,
        category: str = ERR_CATEGORY,
        err: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.exception = exception
        self.category = category
        self.err = err

    def __str__(self) -> str:
        return f"category={self.category}, message={self.message}"

    def __repr__(self) -> str:
        return (
            f"BodyParserError(status_code={self.status_code}, "
            f"exception={self.exception}, message={self.message!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status_code,
            "category": self.category,
            "detail": self.message,
            "exception": self.exception,
        }


def invalid_json_error() -> BodyParserError:
    return BodyParserError("invalid json format", status_code=400)


def body_too_large_error(size: int, limit: int, *, exact: bool = True) -> BodyParserError:
    """Client error for a body over ``limit``.

    ``exact`` is false when the real size is unknown (no Content-Length) and
    ``size`` is only how much was seen before the reader gave up.
    """
    qualifier = "" if exact else "at least "
    return BodyParserError(
        f"request body is {qualifier}{size} bytes, it should be <= {limit}",
        status_code=400,
    )


def read_failed_error(err: BaseException) -> BodyParserError:
    """Internal error for a body stream that failed while being read."""
    return BodyParserError(
        str(err) or err.__class__.__name__,
        status_code=500,
        exception=True,
        err=err,
    )


def gzip_error(err: BaseException) -> BodyParserError:
    # The body did not match its declared encoding: a client fault
    return BodyParserError(f"gzip: {err}", status_code=400, err=err)


def malformed_form_error(err: BaseException) -> BodyParserError:
    # Exceptional (500), unlike invalid json which is a plain 400
    return BodyParserError(str(err), status_code=500, exception=True, err=err)
