from pydantic import BaseModel
from typing import List

from booking.core.enums import SortOption
from booking.schemas.catalog import VehicleOption
from booking.schemas.fare import FareResult
from booking.schemas.trip import TripRequest


class QuoteRequest(BaseModel):
    trip: TripRequest
    sort_by: SortOption = SortOption.PRICE
    featured_only: bool = False


class QuoteOption(BaseModel):
    vehicle: VehicleOption
    fare: FareResult
    disclaimer: str


class QuoteResponse(BaseModel):
    options: List[QuoteOption]
