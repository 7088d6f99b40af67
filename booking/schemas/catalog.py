from pydantic import BaseModel, Field
from typing import List, Optional
from booking.core.enums import TierKind

DEFAULT_AMENITIES = ["Air Conditioning", "GPS Navigation"]


class DistanceTier(BaseModel):
    tier_id: str
    label: str
    unit_price: float
    range_min: int = 0
    range_max: int = 50
    kind: TierKind = TierKind.DISTANCE


class VehicleOption(BaseModel):
    id: int
    catalog_ref: str
    catalog_product_ref: str
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    category: str = "Standard"
    capacity: int = 4
    luggage_capacity: int = 2
    rating_value: float = 4.5
    rating_count: int = 0
    base_fare: float = 25.0
    per_distance_rate: float = 2.0
    estimated_arrival: str = "5-7 mins"
    is_featured: bool = False
    amenities: List[str] = Field(default_factory=lambda: list(DEFAULT_AMENITIES))
    currency_code: str = "AED"
    price_tiers: List[DistanceTier] = Field(default_factory=list)

    @property
    def distance_tiers(self) -> List[DistanceTier]:
        return [t for t in self.price_tiers if t.kind == TierKind.DISTANCE]

    @property
    def half_day_tier(self) -> Optional[DistanceTier]:
        return next((t for t in self.price_tiers if t.kind == TierKind.HALF_DAY), None)

    @property
    def full_day_tier(self) -> Optional[DistanceTier]:
        return next((t for t in self.price_tiers if t.kind == TierKind.FULL_DAY), None)

    @property
    def supports_daily_rental(self) -> bool:
        return self.full_day_tier is not None or self.half_day_tier is not None
