"""Entry point - starts the FastAPI server."""

import asyncio
import signal

import structlog
import uvicorn

from org_products_service.log import configure_logging
from org_products_service.rest.app import create_app
from org_products_service.settings import get_settings

logger = structlog.get_logger()


async def main() -> None:
    settings = get_settings()
    configure_logging(settings)

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host="0.0.0.0",
        port=settings.rest_port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)

    logger.info("starting_service", rest_port=settings.rest_port)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, server.handle_exit, sig, None)

    await server.serve()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
