"""
Main entrypoint for the Phonebook API.

This module assembles the FastAPI application, sets up logging, error
rendering and CORS, and includes the routers.  The ``create_app``
function builds and configures the app, which is then instantiated at
module import time as ``app``.  Run it with uvicorn, e.g.::

    uvicorn phonebook_api.app.main:app --reload

The record store connection is opened once on startup, kept on
``app.state.store`` for the lifetime of the process and closed on
shutdown.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.router import public_router
from .api.v1.router import router as v1_router
from .core.config import settings
from .core.db import PersonStore
from .core.errors import register_exception_handlers
from .core.logging_config import setup_logging


def create_app(database_url: Optional[str] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    database_url : Optional[str]
        Overrides ``settings.database_url``.  Tests pass ``":memory:"``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    setup_logging(
        settings.log_level,
        settings.log_file or None,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )

    store = PersonStore(database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await store.connect()
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Unversioned paths are what existing clients use; /api/v1 is the
    # same router for clients that pin a version.
    app.include_router(v1_router, prefix="/api")
    app.include_router(v1_router, prefix="/api/v1")
    app.include_router(public_router)

    return app


app = create_app()
