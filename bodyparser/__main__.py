"""Module entrypoint: run the body parser demo app with Uvicorn."""

import uvicorn

from .config import get_settings


def main() -> None:
    """Start Uvicorn pointing at the packaged ASGI app."""
    settings = get_settings()
    uvicorn.run(
        "bodyparser.daemon:app",
        host=settings.listen_host,
        port=settings.listen_port or 3000,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
