"""Custodia FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from custodia import __version__
from custodia.api.auth import request_logging_middleware
from custodia.api.dependencies import get_ledger
from custodia.config import get_config
from custodia.ledger.errors import (
    AlreadyRegistered,
    CustodyError,
    InvalidCustodian,
    ItemNotFound,
    LogFull,
    NotOwner,
    NotRegistered,
    Unauthorized,
    ValidationFailed,
)
from custodia.utils import get_logger, setup_logging

logger = get_logger(__name__)

ERROR_STATUS: dict[type[CustodyError], int] = {
    Unauthorized: 403,
    NotOwner: 403,
    ItemNotFound: 404,
    AlreadyRegistered: 409,
    NotRegistered: 409,
    LogFull: 409,
    InvalidCustodian: 422,
    ValidationFailed: 422,
}


def status_for(error: CustodyError) -> int:
    return ERROR_STATUS.get(type(error), 400)


async def custody_error_handler(request: Request, exc: CustodyError) -> JSONResponse:
    """Return ledger errors as explicit JSON results."""
    return JSONResponse(status_code=status_for(exc), content=exc.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle handler."""
    config = get_config()
    setup_logging(config.log_level, config.log_file)

    if not config.demo_mode and not config.api_key:
        logger.warning("CUSTODIA_API_KEY is not set; protected endpoints will return 500. Use CUSTODIA_DEMO_MODE=true for local runs.")

    ledger = get_ledger()
    logger.info("Custodia API starting - admin=%s, items=%d", ledger.admin, ledger.get_last_item_id())
    yield
    logger.info("Custodia API shutdown")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title="Custodia API",
        description="Append-only chain-of-custody ledger for uniquely identified items",
        version=__version__,
        lifespan=lifespan,
    )

    config = get_config()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Caller-ID"],
    )
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_logging_middleware)
    app.add_exception_handler(CustodyError, custody_error_handler)

    from custodia.api.routes.health import router as health_router
    from custodia.api.routes.items import router as items_router
    from custodia.api.routes.ledger import router as ledger_router
    from custodia.api.routes.participants import router as participants_router

    app.include_router(health_router)
    app.include_router(participants_router)
    app.include_router(items_router)
    app.include_router(ledger_router)

    return app


app = create_app()
