"""
FastAPI application entry point for the storage gateway.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from storage_gateway.config import get_settings
from storage_gateway.dependencies import get_document_store, get_storage_client
from storage_gateway.errors import (
    ApiError,
    handle_api_error,
    handle_http_exception,
    handle_unexpected_error,
    handle_validation_error,
)
from storage_gateway.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Build both backend clients before serving; any failure aborts startup.
    try:
        storage = get_storage_client()
        store = get_document_store()
    except Exception:
        logger.exception("Failed to initialize backend clients")
        raise
    logger.info(
        "Storage gateway ready (bucket=%s, collection=%s)",
        storage.bucket_name,
        store.collection,
    )
    yield
    logger.info("Storage gateway shutting down")


async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %d (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Storage Gateway", version="0.1.0", lifespan=lifespan)
    app.include_router(router, prefix=settings.api_prefix)

    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.middleware("http")(log_requests)
    return app


app = create_app()
