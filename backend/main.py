"""
ScopeGrid - FastAPI Application
===============================
Multi-tenant data backend: role/override based column access,
saved per-user table views and permission-scoped grid queries.
"""
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from scopegrid.core.config import Settings, get_settings
from scopegrid.core.exceptions import ScopeGridError
from scopegrid.schemas.common import HealthResponse
from scopegrid.database.session import check_db_connection, create_all_tables, SessionLocal
from scopegrid.api.v1.router import api_router
from scopegrid.middleware.exception_handler import (
    global_exception_handler,
    request_logging_middleware,
    scopegrid_exception_handler,
    validation_exception_handler,
)
from scopegrid.services.bootstrap import bootstrap
from scopegrid.services.resource_registry import registry

settings = get_settings()


def configure_logging(config: Settings) -> None:
    """stderr always; a rotating file sink only when LOG_FILE is set."""
    logger.remove()
    logger.add(sys.stderr, level=config.LOG_LEVEL, format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}")
    if not config.LOG_FILE:
        return
    os.makedirs(os.path.dirname(config.LOG_FILE) or ".", exist_ok=True)
    logger.add(
        config.LOG_FILE,
        rotation="10 MB",
        retention="30 days",
        level=config.LOG_LEVEL,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}",
    )


def run_bootstrap() -> None:
    db = SessionLocal()
    try:
        bootstrap(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Bootstrap skipped: {e}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.APP_ENV})")

    if not check_db_connection():
        logger.error("❌ Database connection failed!")
    else:
        logger.info("✅ Database connection successful")
        if settings.DB_AUTO_CREATE:
            create_all_tables()
        if settings.SEED_ON_STARTUP:
            run_bootstrap()

    logger.info(f"Serving resources: {', '.join(registry.table_ids())}")
    yield
    logger.info(f"Shutting down {settings.APP_NAME}")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ScopeGridError, scopegrid_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)


def create_app() -> FastAPI:
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Permission-scoped data grid backend",
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.debug = settings.DEBUG

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_logging_middleware)
    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/", tags=["Health"])
    async def root():
        return {"app": settings.APP_NAME, "version": settings.APP_VERSION, "status": "running", "docs": "/docs"}

    @app.get("/health", tags=["Health"], response_model=HealthResponse)
    async def health_check():
        db_ok = check_db_connection()
        return {
            "status": "healthy" if db_ok else "degraded",
            "database": "connected" if db_ok else "disconnected",
            "version": settings.APP_VERSION,
            "resources": registry.table_ids(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
