from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from coursemart.api.v1.router import api_router
from coursemart.core.csrf import install_csrf_protection
from coursemart.core.errors import install_exception_handlers
from coursemart.core.logging_config import configure_logging
from coursemart.core.settings import get_settings
from coursemart.db import registry  # noqa: F401
from coursemart.db.mongo import close_mongo_client
from coursemart.db.session import dispose_engine, get_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    close_mongo_client()
    await dispose_engine()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="CourseMart API", lifespan=lifespan)

    install_csrf_protection(app)
    install_exception_handlers(app)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/health/db")
    async def health_db(db: AsyncSession = Depends(get_db)):
        await db.execute(text("SELECT 1"))
        return {"ok": True}

    logger.debug("Application created (csrf_enabled=%s)", settings.csrf_enabled)
    return app


app = create_app()
