import asyncio
import contextlib
import logging
import os
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import PUBLISH_TRIP_EVENTS_TO_REDIS, get_log_level, get_static_position
from core.http.session import cleanup_session
from core.mapping.factory import get_geocoder, get_router
from core.mapping.models import Coordinate
from core.redis import close_shared_redis
from db import db_manager
from destinations.api import router as destinations_router
from tracking import router as tracking_router
from tracking.events import TripEventBus, forward_trip_updates_to_redis
from tracking.positions import ReportedPositionProvider, StaticPositionProvider
from tracking.services.trip_session import TripSession

# Basic logging configuration
logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _build_position_provider():
    static_position = get_static_position()
    if static_position is not None:
        latitude, longitude = static_position
        logger.info("Using static position %.4f, %.4f", latitude, longitude)
        return StaticPositionProvider(
            Coordinate(latitude=latitude, longitude=longitude)
        )
    return ReportedPositionProvider()


def build_trip_session() -> TripSession:
    return TripSession(
        geocoder=get_geocoder(),
        router=get_router(),
        position_provider=_build_position_provider(),
        bus=TripEventBus(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the trip session and storage; tear everything down on exit."""
    await db_manager.init_beanie()
    logger.info("Database initialized")

    session = build_trip_session()
    app.state.trip_session = session

    forwarder: asyncio.Task | None = None
    if PUBLISH_TRIP_EVENTS_TO_REDIS:
        forwarder = asyncio.create_task(
            forward_trip_updates_to_redis(session.bus),
            name="trip-updates-redis",
        )
        logger.info("Forwarding trip updates to Redis")

    logger.info("Application startup completed successfully.")
    try:
        yield
    finally:
        await session.aclose()
        if forwarder is not None:
            forwarder.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await forwarder
            await close_shared_redis()
        await db_manager.cleanup_connections()
        await cleanup_session()
        logger.info("Application shutdown completed successfully")


app = FastAPI(title="Drive Timer", lifespan=lifespan)

# CORS Middleware Configuration
cors_origins_str = os.getenv("CORS_ALLOWED_ORIGINS", "")
if cors_origins_str:
    origins = [
        origin.strip() for origin in cors_origins_str.split(",") if origin.strip()
    ]
    logger.info("CORS configured with specific origins: %s", origins)
else:
    origins = [
        "http://localhost:3000",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8080",
    ]
    logger.warning(
        "CORS_ALLOWED_ORIGINS not set. Using development defaults: %s",
        origins,
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(tracking_router)
app.include_router(destinations_router)


# --- Global Exception Handlers ---
@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    logger.warning("404 Not Found: %s. Detail: %s", request.url, exc.detail)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "Not found", "detail": exc.detail},
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    error_id = str(uuid.uuid4())
    logger.error(
        "Internal Server Error (ID: %s): Request %s %s failed. Exception: %s",
        error_id,
        request.method,
        request.url,
        str(exc),
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "error_id": error_id,
            "detail": str(exc),
        },
    )


# --- Main Execution Block ---
if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=port,
        log_level="info",
    )
