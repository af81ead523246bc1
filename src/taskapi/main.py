"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (schema, demo seed, engine).
Middleware, CORS, and routers all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskapi import __version__
from taskapi.api import api_router
from taskapi.config import settings
from taskapi.db.engine import async_session_factory, engine
from taskapi.db.seed import create_schema, seed_demo_data
from taskapi.log import configure_logging
from taskapi.middleware.request_id import RequestIdMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "taskapi.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    await create_schema(engine)
    if settings.seed_demo_data:
        async with async_session_factory() as session:
            await seed_demo_data(session)

    yield

    logger.info("taskapi.shutdown")
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="Task Management API",
        description="Tasks, comments and role-based access for admins and users",
        version=__version__,
        lifespan=lifespan,
    )

    # Starlette runs middleware in reverse order of registration:
    # RequestId → CORS → handler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: taskapi.main:app)
app = create_app()
