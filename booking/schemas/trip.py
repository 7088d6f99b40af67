from datetime import date, datetime, time
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from booking.core.enums import TripDirection, TripMode


class Coordinates(BaseModel):
    lat: float
    lng: float


class TransferRequest(BaseModel):
    mode: Literal[TripMode.TRANSFER] = TripMode.TRANSFER
    origin_label: str
    destination_label: str
    origin_coords: Optional[Coordinates] = None
    destination_coords: Optional[Coordinates] = None
    distance_km: Optional[float] = None
    eta_label: Optional[str] = None
    trip_direction: TripDirection = TripDirection.ONE_WAY
    pickup_date: date
    pickup_time: time
    return_date: Optional[date] = None
    return_time: Optional[time] = None
    passenger_count: int = Field(1, ge=1)
    flight_number: Optional[str] = None

    @property
    def is_round_trip(self) -> bool:
        return self.trip_direction == TripDirection.ROUND_TRIP

    @property
    def pickup_datetime(self) -> datetime:
        return datetime.combine(self.pickup_date, self.pickup_time)

    @property
    def return_datetime(self) -> Optional[datetime]:
        if self.return_date is None or self.return_time is None:
            return None
        return datetime.combine(self.return_date, self.return_time)


class DailyRentalRequest(BaseModel):
    mode: Literal[TripMode.DAILY_RENTAL] = TripMode.DAILY_RENTAL
    pickup_location: str
    pickup_coords: Optional[Coordinates] = None
    pickup_date: date
    pickup_time: time
    dropoff_date: date
    dropoff_time: time
    passenger_count: int = Field(1, ge=1)
    flight_number: Optional[str] = None

    @property
    def pickup_datetime(self) -> datetime:
        return datetime.combine(self.pickup_date, self.pickup_time)

    @property
    def dropoff_datetime(self) -> datetime:
        return datetime.combine(self.dropoff_date, self.dropoff_time)

    @property
    def rental_hours(self) -> float:
        delta = self.dropoff_datetime - self.pickup_datetime
        return max(0.0, delta.total_seconds() / 3600)


TripRequest = Annotated[
    Union[TransferRequest, DailyRentalRequest],
    Field(discriminator="mode"),
]
