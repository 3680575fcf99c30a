"""Entry point for the tool server."""

import contextlib
import sys

import structlog
import uvicorn

from toolserver.app import create_app
from toolserver.config import Settings
from toolserver.logging import configure_logging

logger = structlog.get_logger()


def main() -> None:
    """Entry point for python -m toolserver.

    uvicorn handles SIGTERM/SIGINT; the application lifespan then closes
    open event channels before the process exits.
    """
    settings = Settings()
    configure_logging(debug=settings.debug)

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "warning",
        access_log=False,
        timeout_graceful_shutdown=int(settings.shutdown_timeout),
    )
    server = uvicorn.Server(config)

    with contextlib.suppress(KeyboardInterrupt):
        server.run()

    logger.info("server_exited")
    sys.exit(0)


if __name__ == "__main__":
    main()
