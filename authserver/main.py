"""
FastAPI application entrypoint for the authorization server.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from authserver.api.routes import router as api_router
from authserver.core.config import get_settings
from authserver.core.logging import configure_logging
from authserver.services import StorageContractError

logger = logging.getLogger(__name__)


async def _storage_contract_error_handler(
    request: Request, exc: StorageContractError
) -> JSONResponse:
    logger.error("Storage contract violation on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={
            "error": "server_error",
            "error_description": "The authorization server encountered an internal error.",
        },
        headers={"Cache-Control": "no-store"},
    )


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Authorization Code Grant Server",
        version="0.1.0",
        description="OAuth 2.0 token endpoint for the authorization code grant with PKCE.",
    )
    app.include_router(api_router, prefix="/api")
    app.add_exception_handler(StorageContractError, _storage_contract_error_handler)
    return app


app = create_app()

__all__ = ["app", "create_app"]
