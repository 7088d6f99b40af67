import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Tuple, Union

from booking.core.enums import RentalType, SortOption
from booking.schemas.catalog import VehicleOption
from booking.schemas.fare import FareResult
from booking.schemas.quote import QuoteOption
from booking.schemas.trip import DailyRentalRequest, TransferRequest
from booking.services.variant_resolver import format_tier_range, resolve_tier

logger = logging.getLogger(__name__)

COMPARE_AT_MARKUP = 1.2
HALF_DAY_MAX_HOURS = 5.0
HOURS_PER_DAY = 24.0


def round_half_up(value: float) -> float:
    # halves round away from zero, unlike round()
    return float(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compare_at_price(amount: float) -> float:
    """Strikethrough "was" price for display. Never billed."""
    return round_half_up(amount * COMPARE_AT_MARKUP)


def classify_rental(rental_hours: float) -> Tuple[RentalType, int]:
    if rental_hours <= HALF_DAY_MAX_HOURS:
        return RentalType.HALF_DAY, 1
    if rental_hours < HOURS_PER_DAY:
        return RentalType.FULL_DAY, 1
    return RentalType.MULTI_DAY, math.ceil(rental_hours / HOURS_PER_DAY)


def rental_type_label(rental_type: RentalType, number_of_days: int) -> str:
    if rental_type == RentalType.MULTI_DAY:
        return f"{number_of_days} Day{'s' if number_of_days > 1 else ''} Rental"
    return f"{rental_type.value} Rental"


def can_price_rental(vehicle: VehicleOption, rental_hours: float) -> bool:
    """Half days fall back to half the daily rate; anything longer needs a full-day unit."""
    if vehicle.full_day_tier is not None:
        return True
    rental_type, _ = classify_rental(rental_hours)
    return rental_type == RentalType.HALF_DAY and vehicle.half_day_tier is not None


def calculate_transfer_fare(vehicle: VehicleOption, trip: TransferRequest) -> FareResult:
    distance = trip.distance_km or 0.0
    tier = resolve_tier(vehicle.distance_tiers, distance)

    if tier is not None:
        unit_price = tier.unit_price
        basis = f"{format_tier_range(tier)} tier"
    else:
        unit_price = round_half_up(vehicle.base_fare + vehicle.per_distance_rate * distance)
        basis = (
            f"base fare {vehicle.base_fare:.2f} + {distance:.1f} km "
            f"x {vehicle.per_distance_rate:.2f}/km"
        )

    # round trips bill the same unit twice so the backend's own multiplication is authoritative
    quantity = 2 if trip.is_round_trip else 1
    amount = unit_price * quantity
    trips = "2 trips (round trip)" if quantity == 2 else "1 trip"

    return FareResult(
        amount=amount,
        unit_price=unit_price,
        quantity=quantity,
        description=f"{basis}: {unit_price:.2f} x {trips}",
        tier=tier,
        compare_at_amount=compare_at_price(amount),
    )


def calculate_rental_fare(vehicle: VehicleOption, trip: DailyRentalRequest) -> FareResult:
    hours = trip.rental_hours
    rental_type, days = classify_rental(hours)

    full_day = vehicle.full_day_tier
    half_day = vehicle.half_day_tier
    full_day_price = full_day.unit_price if full_day else 0.0

    if rental_type == RentalType.HALF_DAY:
        tier = half_day
        unit_price = half_day.unit_price if half_day else full_day_price / 2
    else:
        tier = full_day
        unit_price = full_day_price

    if full_day is None and rental_type != RentalType.HALF_DAY:
        logger.warning(f"Vehicle {vehicle.id} has no full day rental tier, pricing at 0")

    amount = unit_price * days
    label = rental_type_label(rental_type, days)
    if days > 1:
        description = f"{label}: {unit_price:.2f} per day x {days} days"
    else:
        description = f"{label}: {unit_price:.2f}"

    return FareResult(
        amount=amount,
        unit_price=unit_price,
        quantity=days,
        description=description,
        tier=tier,
        rental_type=rental_type,
        number_of_days=days,
        rental_hours=hours,
        compare_at_amount=compare_at_price(amount),
    )


def calculate_fare(
    vehicle: VehicleOption,
    trip: Union[TransferRequest, DailyRentalRequest],
) -> FareResult:
    if isinstance(trip, DailyRentalRequest):
        return calculate_rental_fare(vehicle, trip)
    return calculate_transfer_fare(vehicle, trip)


def filter_by_capacity(vehicles: List[VehicleOption], passenger_count: int) -> List[VehicleOption]:
    return [v for v in vehicles if v.capacity >= passenger_count]


def vehicle_disclaimer(category: str) -> str:
    return (
        f"Vehicle shown is an example of the {category} class. "
        f"A {category} or equivalent vehicle will be provided."
    )


def sort_quote_options(options: List[QuoteOption], sort_by: SortOption) -> List[QuoteOption]:
    if sort_by == SortOption.RATING:
        return sorted(options, key=lambda o: o.vehicle.rating_value, reverse=True)
    if sort_by == SortOption.PASSENGERS:
        return sorted(options, key=lambda o: o.vehicle.capacity, reverse=True)
    return sorted(options, key=lambda o: o.fare.amount)
