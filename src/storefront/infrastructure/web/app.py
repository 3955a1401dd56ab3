"""FastAPI application factory.

Run with::

    uvicorn storefront.infrastructure.web.app:app --host 0.0.0.0 --port 8000

or ``storefront serve``.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.domain.exceptions import (
    DomainException,
    DownloadError,
    EntityNotFoundError,
    InvalidTransition,
)
from storefront.infrastructure.config import get_settings
from storefront.infrastructure.logging import configure_logging
from storefront.infrastructure.web.routes import (
    download_router,
    order_router,
    return_router,
)

logger = structlog.get_logger(__name__)


def _status_for(exc: DomainException) -> int:
    if isinstance(exc, DownloadError):
        return exc.status_code
    if isinstance(exc, EntityNotFoundError):
        return 404
    if isinstance(exc, InvalidTransition):
        return 409
    return 400


async def _domain_error(request: Request, exc: DomainException) -> JSONResponse:
    status_code = _status_for(exc)
    logger.info(
        "Request rejected",
        path=request.url.path,
        error=str(exc),
        status_code=status_code,
    )
    message = exc.public_message if isinstance(exc, DownloadError) else str(exc)
    return JSONResponse({"error": message}, status_code=status_code)


async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        {"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        status_code=400,
    )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)

    app = FastAPI(title="Storefront fulfillment", version="0.1.0")
    app.add_exception_handler(DomainException, _domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _invalid_request)  # type: ignore[arg-type]
    app.include_router(download_router)
    app.include_router(order_router)
    app.include_router(return_router)
    return app


app = create_app()
