"""Main entry point - runs the HTTP API."""

import logging

import uvicorn

from swapflow.api.app import create_app
from swapflow.config import get_settings

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main() -> None:
    """Run the API server."""
    settings = get_settings()
    configure_logging(settings.debug)

    logger.info("Starting swapflow...")
    logger.info(f"Environment: {settings.environment}")

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
