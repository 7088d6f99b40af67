from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from starlette.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from booking.api import catalog, checkout, quotes
from booking.core.config import settings
from booking.core.redis import init_redis, close_redis, get_redis
from booking.core.metrics import request_count, request_duration, redis_connected, get_metrics_text
from booking.services.cart import AncillaryFeeTable
from booking.services.session import BookingSession
import time
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        try:
            response = await call_next(request)
            duration = time.time() - start_time

            request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code
            ).inc()

            request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(duration)

            return response
        except Exception:
            duration = time.time() - start_time
            request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=500
            ).inc()
            request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(duration)
            raise


def create_booking_session() -> BookingSession:
    fee_table = AncillaryFeeTable(settings.ANCILLARY_FEE_UNITS)
    if not len(fee_table):
        logger.warning("No parking fee units configured, bookings will not include parking fees")
    return BookingSession(
        fee_table,
        airport_only=settings.ANCILLARY_FEE_AIRPORT_ONLY,
        currency_code=settings.CURRENCY_CODE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")

    logger.info("Initializing Redis connection...")
    try:
        if await init_redis() is not None:
            redis_connected.set(1)
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        redis_connected.set(0)

    yield

    logger.info("Application shutting down...")
    await close_redis()
    redis_connected.set(0)
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan
)

app.state.booking_session = create_booking_session()

app.add_middleware(MetricsMiddleware)

app.include_router(catalog.router)
app.include_router(quotes.router)
app.include_router(checkout.router)


@app.get("/metrics", tags=["monitoring"])
async def metrics():
    return Response(
        content=get_metrics_text(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@app.get("/health", tags=["monitoring"])
async def health_check():
    session: BookingSession = app.state.booking_session

    return {
        "status": "healthy",
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "dependencies": {
            "redis": "connected" if get_redis() is not None else "disconnected",
            "catalog": "loaded" if session.initialized else "not_loaded",
        },
        "catalog_vehicles": len(session.catalog),
        "catalog_error": session.last_error,
    }


@app.get("/", tags=["root"])
async def root():
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics"
    }
