"""Application entrypoint for the message API service.

This module wires together the FastAPI application with its lifespan hook,
the message router mounted under the API prefix, and CORS configuration. It is
the root that other modules depend on when the API process starts.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import message_router
from app.core.config import Settings, get_settings
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Announce where the API can be reached once the server has started."""

    settings: Settings = app.state.settings
    logger.info("Server is running at http://localhost:%s", settings.PORT)
    logger.info(
        "API endpoint available at http://localhost:%s%s/message",
        settings.PORT,
        settings.API_PREFIX,
    )
    logger.info("Listening on %s:%s", settings.HOST, settings.PORT)
    yield
    logger.info("API service stopped")


def create_application(settings: Settings | None = None) -> FastAPI:
    """Assemble and configure the FastAPI application instance.

    - Injects the lifespan manager defined above to log start-up details.
    - Applies permissive CORS settings sourced from environment-driven `settings`.
    - Registers the message router under the configured API prefix.
    """

    settings = settings or get_settings()

    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        lifespan=lifespan,
    )
    application.state.settings = settings

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(message_router, prefix=settings.API_PREFIX)

    return application


app = create_application()


def run() -> None:
    """Start uvicorn on the configured host and port."""

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
