"""Logging utilities: configure Uvicorn-compatible logs and startup banner."""

import logging as pylog
from typing import Iterable, List, Optional

from fastapi.routing import APIRoute

from .version import __version__

# Use uvicorn.error logger (guaranteed to exist + colored in dev)
log = pylog.getLogger("uvicorn.error")


# pylint: disable=too-few-public-methods
class _MessageFilter(pylog.Filter):
    def __init__(self, *, deny_contains: Optional[List[str]] = None):
        super().__init__()
        self.deny_contains = deny_contains or []

    def filter(self, record: pylog.LogRecord) -> bool:  # True -> keep
        msg = record.getMessage()
        for frag in self.deny_contains:
            if frag in msg:
                return False
        return True


def configure_logging(level: str = "INFO", *, deny_contains: Iterable[str] = ()) -> None:
    """Apply ``level`` to the uvicorn loggers and drop messages matching ``deny_contains``."""
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = pylog.getLogger(name)
        logger.setLevel(level)
        for existing in [f for f in logger.filters if isinstance(f, _MessageFilter)]:
            logger.removeFilter(existing)
        if deny_contains:
            logger.addFilter(_MessageFilter(deny_contains=list(deny_contains)))
    if not log.handlers and not pylog.getLogger().handlers:
        # Running outside uvicorn (tests, embedding): make output visible
        pylog.basicConfig(level=level, format="%(levelname)s:     %(message)s")


def log_startup_banner(
    *,
    host: Optional[str] = None,
    port: Optional[int] = None,
    limit: int = 0,
    methods: Iterable[str] = (),
    accept_form: bool = False,
    version: str = __version__,
) -> None:
    """Log the startup banner with configuration details."""
    url = f"http://{host}:{port}"
    limit_str = f"{limit} bytes" if limit > 0 else "unlimited"
    types = "application/json, application/x-www-form-urlencoded" if accept_form else "application/json"

    ruler = "═" * 72

    banner = f"""
{ruler}
        Body Parser Daemon v{version}

        Listening → {url}
        Body limit → {limit_str}
        Methods → {', '.join(sorted(methods)) or '-'}
        Content types → {types}
{ruler}
    """

    for line in banner.strip().splitlines():
        log.info(line)


def log_endpoints(app) -> None:
    """Log all registered APIRoute endpoints."""
    lines = []
    for route in getattr(app, "routes", []):
        if isinstance(route, APIRoute):
            methods = sorted(
                m for m in (route.methods or []) if m not in {"HEAD", "OPTIONS"}
            )
            method_str = ",".join(methods) or "-"
            lines.append((route.path, method_str, route.name))

    lines.sort(key=lambda x: (x[0], x[1]))
    header = f"Available endpoints ({len(lines)}):"

    log.info("%s", header)
    for path, methods, name in lines:
        log.info("  %-7s %-40s (%s)", methods, path, name)
