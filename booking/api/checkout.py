import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException

from booking.api.deps import get_booking_session
from booking.core.exceptions import CatalogFetchError, CheckoutError, TripValidationError
from booking.schemas.checkout import CheckoutCreate, CheckoutOut
from booking.services.session import BookingSession
from booking.services.webhook import send_booking_notification
from booking.utils.idempotency import get_idempotent, set_idempotent

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/", response_model=CheckoutOut)
async def create_checkout(
    payload: CheckoutCreate,
    background_tasks: BackgroundTasks,
    session: BookingSession = Depends(get_booking_session),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
):
    """
    Create a Shopify cart for the selected vehicle and return its checkout URL.

    Each call creates a new remote cart. Clients that may resend should pass
    an Idempotency-Key so the same URL is returned.
    """
    if idempotency_key:
        try:
            previous = await get_idempotent(idempotency_key)
        except Exception as e:
            logger.warning(f"Idempotency lookup failed: {e}")
            previous = None
        if previous:
            return CheckoutOut(**previous)

    try:
        confirmation = await session.checkout(payload.vehicle_id, payload.trip, payload.email)
    except TripValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (CatalogFetchError, CheckoutError) as e:
        raise HTTPException(status_code=502, detail=str(e))

    result = CheckoutOut(checkout_url=confirmation.checkout_url)

    if idempotency_key:
        try:
            await set_idempotent(idempotency_key, result.model_dump())
        except Exception as e:
            logger.warning(f"Idempotency write failed: {e}")

    background_tasks.add_task(send_booking_notification, confirmation.model_dump())

    return result
