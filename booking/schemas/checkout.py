from pydantic import BaseModel, Field
from typing import List, Optional

from booking.schemas.trip import TripRequest


class Attribute(BaseModel):
    key: str
    value: str


class CheckoutLineItem(BaseModel):
    unit_ref: str
    quantity: int = Field(1, ge=1)
    attributes: List[Attribute] = Field(default_factory=list)


class CheckoutRequest(BaseModel):
    lines: List[CheckoutLineItem]
    cart_attributes: List[Attribute]
    note: str

    def cart_attribute(self, key: str) -> Optional[str]:
        return next((a.value for a in self.cart_attributes if a.key == key), None)


class BuyerIdentity(BaseModel):
    email: str
    country_code: str


class CheckoutCreate(BaseModel):
    vehicle_id: int
    trip: TripRequest
    email: Optional[str] = None


class CheckoutOut(BaseModel):
    checkout_url: str


class BookingConfirmation(BaseModel):
    checkout_url: str
    vehicle_id: int
    vehicle_name: str
    booking_type: str
    total_fare: float
    parking_fee_included: bool
