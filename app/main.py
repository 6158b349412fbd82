"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from dotenv import load_dotenv
from fastapi import FastAPI

from app.adapters.inbound.http.routes import app_error_handler, router
from app.application.errors import AppError
from app.infrastructure.wiring.container import Container

# Load environment variables from .env file
load_dotenv()


def create_app(container: Optional[Container] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        container: Pre-built container (defaults to one built from settings)

    Returns:
        FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container = container or Container()
        await app.state.container.start()
        try:
            yield
        finally:
            await app.state.container.close()

    application = FastAPI(
        title="Field Sales Sync",
        description="Offline-first lead and appointment sync engine",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.include_router(router)
    application.add_exception_handler(AppError, app_error_handler)
    return application


app = create_app()
