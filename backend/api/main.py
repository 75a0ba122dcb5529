"""
Business Calendar API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from calendar_engine.builder import BusinessCalendar
from core.config import BuildConfig, get_settings
from core.errors import InvalidInputError, OutOfRangeError
from integrations.holiday_feed import load_holidays

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Business Calendar API starting up", version=settings.app_version)
    # A missing holiday feed is fatal: trading days would silently be wrong
    feed = await load_holidays(settings)
    app.state.calendar = BusinessCalendar.build(BuildConfig.from_settings(settings), feed.holidays)
    yield
    logger.info("Business Calendar API shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Multi-calendar date dimension with Australian trading-day arithmetic",
    lifespan=lifespan,
)


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(OutOfRangeError)
async def out_of_range_handler(request: Request, exc: OutOfRangeError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from api.v1.routers import calendar

app.include_router(calendar.router)


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint for load balancers."""
    calendar_state = getattr(request.app.state, "calendar", None)
    return {
        "status": "healthy",
        "version": settings.app_version,
        "calendar_built": calendar_state is not None,
    }
