"""
Inventory Microservice
Stock levels per product, relative adjustments with a zero floor, and an
append-only adjustment ledger.

Served as an application factory:

    uvicorn inventory_service.main:create_app --factory
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import os
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from shared.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from inventory_service.core_settings import Settings, get_settings
from inventory_service.api.routes import router as inventory_router
from inventory_service.api.errors import register_exception_handlers
from inventory_service.domain.errors import StoreUnavailable
from inventory_service.infrastructure.catalog import ProductCatalogClient
from inventory_service.infrastructure.db import (
    REQUIRED_TABLES,
    build_engine,
    build_session_factory,
    check_connection,
    init_models,
)

SERVICE_DESCRIPTION = "Inventory management microservice"

logger = get_logger(__name__)

def _prepare_store(name: str, engine: Engine) -> None:
    try:
        check_connection(engine)
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"{name} store is not reachable") from exc
    init_models(engine)
    logger.info(f"{name} store ready")

def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    ledger_engine: Optional[Engine] = None,
    catalog: Optional[ProductCatalogClient] = None,
) -> FastAPI:
    """
    Build the application around explicit store handles.

    Engines default to the configured URLs; the ledger shares the inventory
    engine unless LEDGER_DATABASE_URL (or `ledger_engine`) points elsewhere.
    """
    settings = settings or get_settings()
    os.environ.setdefault("SERVICE_VERSION", settings.SERVICE_VERSION)
    setup_logging(service_name=settings.SERVICE_NAME, level=settings.LOG_LEVEL)

    if engine is None:
        engine = build_engine(settings.database_url, echo=settings.SQL_ECHO)
    if ledger_engine is None:
        if settings.LEDGER_DATABASE_URL:
            ledger_engine = build_engine(settings.ledger_database_url, echo=settings.SQL_ECHO)
        else:
            ledger_engine = engine
    if catalog is None and settings.PRODUCTS_SERVICE_URL:
        catalog = ProductCatalogClient(settings.PRODUCTS_SERVICE_URL, timeout=settings.PRODUCTS_TIMEOUT_SECONDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.SERVICE_NAME} version {settings.SERVICE_VERSION}")
        try:
            _prepare_store("Inventory", engine)
        except StoreUnavailable as exc:
            logger.error("Inventory store unreachable at startup", exc_info=exc.__cause__)
            raise
        if ledger_engine is not engine:
            try:
                _prepare_store("Ledger", ledger_engine)
            except StoreUnavailable as exc:
                # Adjustments proceed unrecorded until the ledger store is back
                logger.warning("Ledger store unreachable at startup", exc_info=exc.__cause__)
        logger.info(f"{settings.SERVICE_NAME} started successfully")

        yield

        logger.info(f"Shutting down {settings.SERVICE_NAME}")
        if catalog is not None:
            catalog.close()
        engine.dispose()
        if ledger_engine is not engine:
            ledger_engine.dispose()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        description=SERVICE_DESCRIPTION,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.ledger_engine = ledger_engine
    app.state.ledger_session_factory = build_session_factory(ledger_engine)
    app.state.catalog = catalog

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    stores = {"inventory": engine}
    if ledger_engine is not engine:
        stores["ledger"] = ledger_engine
    health_service = ServiceHealth(
        settings.SERVICE_NAME,
        settings.SERVICE_VERSION,
        stores=stores,
        required_tables=REQUIRED_TABLES,
        degradable_stores=("ledger",),
    )
    app.include_router(health_service.create_health_router())
    app.include_router(inventory_router)

    @app.get("/")
    def root():
        return {
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "status": "running",
            "docs": "/api/docs"
        }

    @app.get("/info")
    def info():
        return {
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "description": SERVICE_DESCRIPTION,
            "environment": os.getenv("ENVIRONMENT", "development"),
            "endpoints": {
                "inventory": "/inventory",
                "health": "/health",
                "ready": "/health/ready",
                "live": "/health/live",
                "metrics": "/metrics",
                "docs": "/api/docs"
            }
        }

    return app
