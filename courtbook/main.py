"""Main FastAPI application for Courtbook."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from courtbook import db
from courtbook.config import API_VERSION, DOCUMENTS_DIR
from courtbook.errors import CourtbookError
from courtbook.models import Error
from courtbook.rate_limit import limiter
from courtbook.routers import (
    auth,
    bookings,
    challenges,
    closings,
    courts,
    health,
    pages,
    payments,
    recurring,
    sites,
)
from courtbook.services import notifications
from courtbook.services.documents import DOCUMENTS_URL_PREFIX
from courtbook.services.registry import registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await db.init_db()
    await registry.load()
    logger.info("Courtbook %s ready", API_VERSION)
    yield
    await notifications.close_sink()
    await db.close_db()


app = FastAPI(
    title="Courtbook API",
    description="Court bookings, open challenges, payments and closings",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.limiter = limiter


# ── Error handling ────────────────────────────────────────────────────────


@app.exception_handler(CourtbookError)
async def courtbook_error_handler(request: Request, exc: CourtbookError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(
        status_code=exc.status_code,
        content=Error(error=exc.error, message=exc.message, details=exc.details).model_dump(),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content=Error(
            error="rate_limited", message=f"Rate limit exceeded: {exc.detail}"
        ).model_dump(),
    )


# ── Routes ────────────────────────────────────────────────────────────────

for module in (
    health, auth, courts, sites, bookings, recurring, payments, challenges, closings, pages
):
    app.include_router(module.router)

app.mount(
    DOCUMENTS_URL_PREFIX,
    StaticFiles(directory=DOCUMENTS_DIR, check_dir=False),
    name="documents",
)
