"""Quote endpoint with Redis caching"""
import json
import logging
from fastapi import APIRouter, Depends, HTTPException

from booking.api.deps import get_booking_session
from booking.core.config import settings
from booking.core.exceptions import CatalogFetchError, TripValidationError
from booking.core.metrics import cache_hits, cache_misses
from booking.core.redis import get_redis
from booking.schemas.quote import QuoteRequest, QuoteResponse
from booking.services.session import BookingSession
from booking.utils.hashing import cache_key

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/quotes", tags=["quotes"])


def _generate_cache_key(req: QuoteRequest) -> str:
    return cache_key("quote", req.model_dump(mode="json"))


@router.post("/", response_model=QuoteResponse)
async def create_quote(
    req: QuoteRequest,
    session: BookingSession = Depends(get_booking_session),
):
    key = _generate_cache_key(req)
    redis = get_redis()

    if redis is not None:
        try:
            cached = await redis.get(key)
            if cached:
                cache_hits.labels(cache_key="quote").inc()
                return QuoteResponse.model_validate(json.loads(cached))
            cache_misses.labels(cache_key="quote").inc()
        except Exception as e:
            logger.warning(f"Cache retrieval failed: {e}")

    try:
        options = await session.search(req.trip, req.sort_by, req.featured_only)
    except TripValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except CatalogFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))

    result = QuoteResponse(options=options)

    if redis is not None:
        try:
            await redis.set(
                key,
                result.model_dump_json(),
                ex=settings.PRICE_CACHE_TTL
            )
        except Exception as e:
            logger.warning(f"Cache write failed: {e}")

    return result
