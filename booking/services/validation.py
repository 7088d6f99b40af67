from typing import List, Union

from booking.core.exceptions import TripValidationError
from booking.schemas.catalog import VehicleOption
from booking.schemas.trip import DailyRentalRequest, TransferRequest


def _require(value, message: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise TripValidationError(message)


def validate_transfer(trip: TransferRequest) -> None:
    _require(trip.origin_label, "Please enter a pickup location")
    _require(trip.destination_label, "Please enter a drop-off location")
    if trip.distance_km is not None and trip.distance_km < 0:
        raise TripValidationError("Trip distance cannot be negative")

    if trip.is_round_trip:
        _require(trip.return_date, "Please select a return date for your round trip")
        _require(trip.return_time, "Please select a return time for your round trip")
        if trip.return_datetime <= trip.pickup_datetime:
            raise TripValidationError("Return must be after the outbound pickup")


def validate_rental(trip: DailyRentalRequest) -> None:
    _require(trip.pickup_location, "Please enter a pickup location")
    if trip.rental_hours <= 0:
        raise TripValidationError("Drop-off must be after pickup")


def validate_trip(
    trip: Union[TransferRequest, DailyRentalRequest],
    catalog: List[VehicleOption],
) -> None:
    """Reject a trip before anything is priced or sent to the backend."""
    if isinstance(trip, DailyRentalRequest):
        validate_rental(trip)
    else:
        validate_transfer(trip)

    if catalog and trip.passenger_count > max(v.capacity for v in catalog):
        raise TripValidationError(
            f"No vehicle can accommodate {trip.passenger_count} passengers"
        )
