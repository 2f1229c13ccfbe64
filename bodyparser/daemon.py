"""ASGI app factory and configuration for the body parser daemon."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import get_settings
from .exception_handlers import register_exception_handlers
from .logging import configure_logging, log_endpoints, log_startup_banner
from .middleware.body_parser import BodyParserMiddleware
from .middleware.logging import LoggingMiddleware
from .parser import BodyParser, BodyParserConfig
from .routes.echo import router as echo_router
from .routes.health import router as health_router
from .version import __version__

log = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app startup and shutdown events."""
    log.info("Body Parser Daemon is ready to accept requests.")
    yield
    log.info("Body Parser Daemon is shutting down.")


def create_daemon() -> FastAPI:
    """Create and configure the FastAPI app."""
    app = FastAPI(title="Body Parser Daemon", version=__version__, lifespan=lifespan)

    settings = get_settings()
    configure_logging(
        settings.log_level,
        deny_contains=["Invalid HTTP request received."],
    )
    app.state.settings = settings

    config = BodyParserConfig.from_settings(settings)
    app.state.body_parser = BodyParser(config)

    # Added last runs first: logging wraps the parser so request ids are set
    app.add_middleware(BodyParserMiddleware, parser=app.state.body_parser)
    app.add_middleware(LoggingMiddleware)
    register_exception_handlers(app)
    log.info(
        "App started limit=%s methods=%s decoders=%s log_level=%s",
        config.limit,
        ",".join(sorted(config.methods)),
        ",".join(d.name for d in config.decoders),
        settings.log_level,
    )

    log_startup_banner(
        host=settings.listen_host,
        port=settings.listen_port,
        limit=config.limit,
        methods=config.methods,
        accept_form=settings.accept_form,
    )

    app.include_router(health_router)
    app.include_router(echo_router)

    log_endpoints(app)

    return app


# Expose ASGI app for uvicorn
app = create_daemon()
