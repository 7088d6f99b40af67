"""Compose the Shopify cart for a priced booking.

Pricing intent travels through quantities: the backend multiplies the
variant price by the line quantity, so a round trip is two of the same tier
and a multi-day rental is one full-day tier per day. Attributes and the
order note are only for the operations team reviewing the order.
"""
import logging
from datetime import date, time
from typing import Callable, Dict, List, Optional, Union

from booking.core.metrics import ancillary_fee_missing
from booking.schemas.catalog import VehicleOption
from booking.schemas.checkout import Attribute, CheckoutLineItem, CheckoutRequest
from booking.schemas.fare import FareResult
from booking.schemas.trip import DailyRentalRequest, TransferRequest
from booking.services.pricing import rental_type_label

logger = logging.getLogger(__name__)

FeeLookup = Callable[[str], Optional[str]]

AIRPORT_KEYWORDS = [
    "airport",
    "international airport",
    "dxb",
    "dubai airport",
    "abu dhabi airport",
    "auh",
    "sharjah airport",
    "shj",
    "terminal",
    "dwc",
    "al maktoum",
]

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class AncillaryFeeTable:
    """Vehicle category -> parking fee variant, built once at startup."""

    def __init__(self, units: Dict[str, str]):
        self._units = {
            self.normalise(category): unit_ref
            for category, unit_ref in (units or {}).items()
            if unit_ref
        }

    @staticmethod
    def normalise(category: Optional[str]) -> str:
        return (category or "").strip().lower()

    def __call__(self, category: str) -> Optional[str]:
        return self._units.get(self.normalise(category))

    def __len__(self) -> int:
        return len(self._units)


def is_airport_location(label: Optional[str]) -> bool:
    normalised = (label or "").lower().strip()
    return any(keyword in normalised for keyword in AIRPORT_KEYWORDS)


def _ordinal(day: int) -> str:
    if 3 < day < 21:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_readable_date(value: Optional[date]) -> str:
    if value is None:
        return ""
    return f"{value.day}{_ordinal(value.day)} {MONTHS[value.month - 1]} {value.year}"


def format_time_12h(value: Optional[time]) -> str:
    if value is None:
        return ""
    return value.strftime("%I:%M %p")


def format_money(amount: float, currency_code: str) -> str:
    return f"{currency_code} {amount:.2f}"


def _distance_label(trip: TransferRequest) -> str:
    label = f"{round(trip.distance_km or 0)} km"
    if trip.is_round_trip:
        label += " (each way)"
    return label


def _transfer_attributes(
    vehicle: VehicleOption,
    trip: TransferRequest,
    fare: FareResult,
    currency_code: str,
) -> List[Attribute]:
    attrs = [
        Attribute(key="booking_type", value="Transport Booking"),
        Attribute(key="vehicle", value=vehicle.name),
        Attribute(key="trip_type", value="Round Trip" if trip.is_round_trip else "One-Way"),
        Attribute(key="from_location", value=trip.origin_label),
        Attribute(key="to_location", value=trip.destination_label),
        Attribute(key="distance", value=_distance_label(trip)),
        Attribute(key="duration", value=trip.eta_label or ""),
        Attribute(key="outbound_date", value=format_readable_date(trip.pickup_date)),
        Attribute(key="outbound_time", value=format_time_12h(trip.pickup_time)),
    ]
    if trip.is_round_trip:
        attrs.append(Attribute(key="return_date", value=format_readable_date(trip.return_date)))
        attrs.append(Attribute(key="return_time", value=format_time_12h(trip.return_time)))
    if trip.flight_number:
        attrs.append(Attribute(key="flight_number", value=trip.flight_number))
    attrs.append(Attribute(key="total_fare", value=format_money(fare.amount, currency_code)))
    return attrs


def _rental_attributes(
    vehicle: VehicleOption,
    trip: DailyRentalRequest,
    fare: FareResult,
    currency_code: str,
) -> List[Attribute]:
    days = fare.number_of_days
    attrs = [
        Attribute(key="booking_type", value="Daily Rental"),
        Attribute(key="vehicle", value=vehicle.name),
        Attribute(key="rental_type", value=rental_type_label(fare.rental_type, days)),
        Attribute(key="pickup_location", value=trip.pickup_location),
        Attribute(key="pickup_date", value=format_readable_date(trip.pickup_date)),
        Attribute(key="pickup_time", value=format_time_12h(trip.pickup_time)),
        Attribute(key="dropoff_date", value=format_readable_date(trip.dropoff_date)),
        Attribute(key="dropoff_time", value=format_time_12h(trip.dropoff_time)),
        Attribute(key="rental_hours", value=f"{trip.rental_hours:.1f}"),
        Attribute(key="number_of_days", value=str(days)),
        Attribute(key="passengers", value=str(trip.passenger_count)),
    ]
    if trip.flight_number:
        attrs.append(Attribute(key="flight_number", value=trip.flight_number))
    attrs.append(Attribute(key="total_fare", value=format_money(fare.amount, currency_code)))
    return attrs


def _fee_line(vehicle: VehicleOption, fee_included: bool) -> List[str]:
    if not fee_included:
        return []
    return [f"+ Airport Parking Fee - {vehicle.category} (see line items)"]


def _one_way_note(
    vehicle: VehicleOption,
    trip: TransferRequest,
    fare: FareResult,
    currency_code: str,
    airport: bool,
    fee_included: bool,
) -> str:
    distance = trip.distance_km or 0.0
    lines = [
        f"Transport Booking: {vehicle.name}",
        f"Vehicle Type: {vehicle.category}",
    ]
    if airport:
        lines.append("AIRPORT LOCATION")
    lines += [
        "",
        f"From: {trip.origin_label}",
        f"To: {trip.destination_label}",
        f"Distance: {_distance_label(trip)}",
        f"Pickup: {format_readable_date(trip.pickup_date)} at {format_time_12h(trip.pickup_time)}",
        f"Passengers: {trip.passenger_count}",
    ]
    if trip.flight_number:
        lines.append(f"Flight Number: {trip.flight_number}")
    lines += ["", "Fare Calculation:"]
    if fare.tier is not None:
        lines.append(
            f"Distance Tier: {fare.tier.label} = {format_money(fare.unit_price, currency_code)}"
        )
    else:
        distance_charge = distance * vehicle.per_distance_rate
        lines += [
            f"Base Fare: {format_money(vehicle.base_fare, currency_code)}",
            f"Distance Charge: {distance:.1f} km x {format_money(vehicle.per_distance_rate, currency_code)}/km"
            f" = {format_money(distance_charge, currency_code)}",
        ]
    lines.append("Quantity: 1 trip")
    lines.append(f"Total Fare: {format_money(fare.amount, currency_code)}")
    lines += _fee_line(vehicle, fee_included)
    return "\n".join(lines)


def _round_trip_note(
    vehicle: VehicleOption,
    trip: TransferRequest,
    fare: FareResult,
    currency_code: str,
    airport: bool,
    fee_included: bool,
) -> str:
    lines = [
        f"Round Trip Transport Booking: {vehicle.name}",
        f"Vehicle Type: {vehicle.category}",
    ]
    if airport:
        lines.append("AIRPORT LOCATION")
    lines += [
        "",
        f"From: {trip.origin_label}",
        f"To: {trip.destination_label}",
        f"Distance: {_distance_label(trip)}",
        f"Passengers: {trip.passenger_count}",
    ]
    if trip.flight_number:
        lines.append(f"Flight Number: {trip.flight_number}")
    lines += [
        "",
        "OUTBOUND TRIP:",
        f"Date: {format_readable_date(trip.pickup_date)}",
        f"Time: {format_time_12h(trip.pickup_time)}",
        "",
        "RETURN TRIP:",
        f"Date: {format_readable_date(trip.return_date) or 'N/A'}",
        f"Time: {format_time_12h(trip.return_time) or 'N/A'}",
        "",
        "Fare Calculation:",
    ]
    basis = fare.tier.label if fare.tier is not None else f"{round(trip.distance_km or 0)} km"
    lines += [
        f"Trip Fare ({basis}): {format_money(fare.unit_price, currency_code)}",
        f"Quantity: {fare.quantity} trips (Round Trip)",
        f"{format_money(fare.unit_price, currency_code)} x {fare.quantity}"
        f" = {format_money(fare.amount, currency_code)}",
        f"Total Fare: {format_money(fare.amount, currency_code)}",
    ]
    lines += _fee_line(vehicle, fee_included)
    return "\n".join(lines)


def _rental_note(
    vehicle: VehicleOption,
    trip: DailyRentalRequest,
    fare: FareResult,
    currency_code: str,
    airport: bool,
    fee_included: bool,
) -> str:
    days = fare.number_of_days
    day_word = f"day{'s' if days > 1 else ''}"
    lines = [
        f"Daily Rental Booking: {vehicle.name}",
        f"Vehicle Type: {vehicle.category}",
    ]
    if airport:
        lines.append("AIRPORT LOCATION")
    lines += [
        "",
        f"Rental Type: {rental_type_label(fare.rental_type, days)}",
        f"Pickup Location: {trip.pickup_location}",
        "",
        "PICKUP:",
        f"Date: {format_readable_date(trip.pickup_date)}",
        f"Time: {format_time_12h(trip.pickup_time)}",
        "",
        "DROPOFF:",
        f"Date: {format_readable_date(trip.dropoff_date)}",
        f"Time: {format_time_12h(trip.dropoff_time)}",
        "",
    ]
    if trip.flight_number:
        lines.append(f"Flight Number: {trip.flight_number}")
    lines += [
        f"Duration: {trip.rental_hours:.1f} hours ({days} {day_word})",
        f"Passengers: {trip.passenger_count}",
        "",
        "Fare Calculation:",
    ]
    if days > 1:
        lines += [
            f"Daily Rate: {format_money(fare.unit_price, currency_code)}",
            f"Quantity: {days} {day_word}",
            f"{format_money(fare.unit_price, currency_code)} x {days}"
            f" = {format_money(fare.amount, currency_code)}",
        ]
    else:
        lines.append(f"Rate: {format_money(fare.unit_price, currency_code)}")
    lines.append(f"Total Fare: {format_money(fare.amount, currency_code)}")
    lines += _fee_line(vehicle, fee_included)
    return "\n".join(lines)


def _warn_on_price_mismatch(vehicle: VehicleOption, unit_ref: str, fare: FareResult) -> None:
    billed = next((t for t in vehicle.price_tiers if t.tier_id == unit_ref), None)
    if billed is not None and billed.unit_price != fare.unit_price:
        logger.warning(
            f"Vehicle {vehicle.id} bills {unit_ref} at {billed.unit_price:.2f} "
            f"but was quoted {fare.unit_price:.2f} per unit"
        )


def compose_checkout(
    vehicle: VehicleOption,
    trip: Union[TransferRequest, DailyRentalRequest],
    fare: FareResult,
    fee_lookup: FeeLookup,
    *,
    airport_only: bool = False,
    currency_code: str = "AED",
) -> CheckoutRequest:
    is_rental = isinstance(trip, DailyRentalRequest)

    if is_rental:
        airport = is_airport_location(trip.pickup_location)
        line_attrs = _rental_attributes(vehicle, trip, fare, currency_code)
    else:
        airport = is_airport_location(trip.origin_label) or is_airport_location(trip.destination_label)
        line_attrs = _transfer_attributes(vehicle, trip, fare, currency_code)

    if fare.tier is not None:
        unit_ref = fare.tier.tier_id
    else:
        unit_ref = vehicle.catalog_product_ref
        _warn_on_price_mismatch(vehicle, unit_ref, fare)
    lines =[CheckoutLineItem(unit_ref=unit_ref, quantity=fare.quantity, attributes=line_attrs)]

    fee_unit = None
    if airport or not airport_only:
        fee_unit = fee_lookup(vehicle.category)
        if fee_unit:
            lines.append(
                CheckoutLineItem(
                    unit_ref=fee_unit,
                    quantity=1,
                    attributes=[Attribute(key="fee_type", value="Airport Parking Charge")],
                )
            )
        else:
            logger.warning(f"No parking fee configured for vehicle category {vehicle.category!r}")
            ancillary_fee_missing.labels(category=vehicle.category).inc()

    fee_included = bool(fee_unit)

    cart_attributes = list(line_attrs)
    cart_attributes.insert(2, Attribute(key="vehicle_category", value=vehicle.category))
    cart_attributes += [
        Attribute(key="airport_service", value="yes" if airport else "no"),
        Attribute(key="parking_fee_included", value="yes" if fee_included else "no"),
    ]

    if is_rental:
        note = _rental_note(vehicle, trip, fare, currency_code, airport, fee_included)
    elif trip.is_round_trip:
        note = _round_trip_note(vehicle, trip, fare, currency_code, airport, fee_included)
    else:
        note = _one_way_note(vehicle, trip, fare, currency_code, airport, fee_included)

    return CheckoutRequest(lines=lines, cart_attributes=cart_attributes, note=note)
