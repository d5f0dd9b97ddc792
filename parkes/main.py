import logging
from contextlib import asynccontextmanager
from typing import Iterable, Optional
from fastapi import APIRouter, FastAPI
from starlette.middleware.cors import CORSMiddleware
from parkes.adapters.database import DatabaseAdapter
from parkes.config import general
from parkes.errors import RestError, rest_error_handler
from parkes.middleware import RequestLogger

logger = logging.getLogger(__name__)


def create_app(
    routers: Iterable[APIRouter] = (),
    adapter: Optional[DatabaseAdapter] = None,
    create_tables: bool = False,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if adapter is not None and create_tables:
            await adapter.createTables()
        logger.info(f"{general.PROJECT_NAME}, {general.API_VERSION}: Bootstrap complete")
        yield
        if adapter is not None:
            await adapter.dispose()

    app = FastAPI(title=general.PROJECT_NAME, version=general.API_VERSION, lifespan=lifespan)

    app.add_middleware(RequestLogger)

    # Set all CORS origins enabled
    if general.HTTP_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin).rstrip("/") for origin in general.HTTP_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(RestError, rest_error_handler)

    for router in routers:
        app.include_router(router)

    return app
