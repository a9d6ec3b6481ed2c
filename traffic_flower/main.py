"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from traffic_flower.api import (
    analytics,
    auth,
    comparison,
    export,
    intersections,
    reports,
    websocket,
)
from traffic_flower.config import get_settings
from traffic_flower.exceptions import AuthError, TrafficFlowerError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info(f"Traffic Flower API starting ({settings.environment})")
    yield


app = FastAPI(
    title="Traffic Flower API",
    description="Smart-city traffic monitoring: intersections, semaphores and public transport",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none'",
    "Strict-Transport-Security": "max-age=15768000; includeSubDomains; preload",
    "X-Frame-Options": "DENY",
}


@app.middleware("http")
async def account_security_headers(request: Request, call_next):
    """Harden every account endpoint response, error responses included."""
    response = await call_next(request)
    if request.url.path.startswith(auth.router.prefix):
        response.headers.update(SECURITY_HEADERS)
    return response


@app.exception_handler(TrafficFlowerError)
async def traffic_flower_error_handler(request: Request, exc: TrafficFlowerError):
    """Render typed service errors as ``{"detail": ...}``."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


# Register routers
app.include_router(auth.router)
app.include_router(intersections.router)
app.include_router(reports.router)
app.include_router(analytics.router)
app.include_router(comparison.router)
app.include_router(export.router)
app.include_router(websocket.router)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "message": "Traffic Flower API is running"}
