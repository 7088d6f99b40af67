import httpx
import asyncio
import logging
from booking.core.config import settings
from booking.core.metrics import webhook_deliveries

logger = logging.getLogger(__name__)


async def send_booking_notification(payload: dict, retries: int | None = None) -> bool:
    """Post a booking summary to the enquiry endpoint. Never raises."""
    if not settings.WEBHOOK_URL:
        return False

    if retries is None:
        retries = settings.WEBHOOK_RETRIES

    backoff = 1.0

    for attempt in range(1, retries + 1):
        try:
            async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT) as client:
                response = await client.post(settings.WEBHOOK_URL, json=payload)

                if 200 <= response.status_code < 300:
                    logger.info(f"Booking notification delivered for vehicle {payload.get('vehicle_id')}")
                    webhook_deliveries.labels(status="success").inc()
                    return True
                else:
                    logger.warning(
                        f"Booking notification failed (attempt {attempt}/{retries}): "
                        f"Status {response.status_code} for vehicle {payload.get('vehicle_id')}"
                    )
        except httpx.TimeoutException:
            logger.warning(
                f"Booking notification timeout (attempt {attempt}/{retries}) "
                f"for vehicle {payload.get('vehicle_id')}"
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"Booking notification error (attempt {attempt}/{retries}): {e} "
                f"for vehicle {payload.get('vehicle_id')}"
            )

        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0

    webhook_deliveries.labels(status="failed").inc()
    logger.error(f"Booking notification failed after {retries} attempts for vehicle {payload.get('vehicle_id')}")
    return False
