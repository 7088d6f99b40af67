from pydantic import BaseModel
from typing import Optional
from booking.core.enums import RentalType
from booking.schemas.catalog import DistanceTier


class FareResult(BaseModel):
    amount: float
    unit_price: float
    quantity: int
    description: str
    tier: Optional[DistanceTier] = None
    rental_type: Optional[RentalType] = None
    number_of_days: int = 1
    rental_hours: Optional[float] = None
    compare_at_amount: Optional[float] = None
