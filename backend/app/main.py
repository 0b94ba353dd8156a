"""
backend/app/main.py

Purpose:
    FastAPI application bootstrap: logging, middleware and router wiring,
    error handlers, and provider client shutdown.

Dependencies:
    - app.config
    - app.providers.api_football
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.middleware.logging import StructuredLoggingMiddleware, setup_logging
from app.providers import api_football
from app.routers.football import router as football_router
from app.routers.survivor import router as survivor_router

logger = logging.getLogger("survivor")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    if api_football.ApiFootballProvider.is_configured():
        logger.info("API-Football provider configured: %s", settings.FOOTBALL_API_URL)
    else:
        logger.warning("API-Football key missing; every round will read as 'no data yet'")

    yield

    await api_football.api_football_provider.aclose()


app = FastAPI(
    title="Survivor Pool",
    description="Survivor pool elimination tracking over live football results",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)
app.add_middleware(StructuredLoggingMiddleware)

app.include_router(survivor_router)
app.include_router(football_router)


@app.get("/health")
async def health():
    return {"status": "ok", "provider_configured": api_football.ApiFootballProvider.is_configured()}


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Return clean validation errors without leaking internal field paths."""
    errors = []
    for err in exc.errors():
        loc = err.get("loc", ())
        # Strip the "body" / "query" prefix for cleaner messages
        field = ".".join(str(part) for part in loc[1:]) if len(loc) > 1 else str(loc[-1]) if loc else "unknown"
        errors.append({"field": field, "message": err.get("msg", "Invalid value.")})
    return JSONResponse(status_code=422, content={"detail": "Validation error.", "errors": errors})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning("Rejected request %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})
