import inspect
import pytest
from datetime import date, time

from booking.core.enums import TierKind, TripDirection
from booking.schemas.catalog import DistanceTier, VehicleOption
from booking.schemas.trip import DailyRentalRequest, TransferRequest
from booking.services.cart import AncillaryFeeTable

PARKING_FEE_SEDAN = "gid://shopify/ProductVariant/9001"
PARKING_FEE_MINIVAN = "gid://shopify/ProductVariant/9002"


def make_tier(tier_id, label, price, range_min=0, range_max=50, kind=TierKind.DISTANCE):
    return DistanceTier(
        tier_id=f"gid://shopify/ProductVariant/{tier_id}",
        label=label,
        unit_price=price,
        range_min=range_min,
        range_max=range_max,
        kind=kind,
    )


def make_vehicle(vehicle_id=101, name="Mercedes E-Class", category="Luxury Sedan", tiers=None, **kwargs):
    data = {
        "id": vehicle_id,
        "catalog_ref": f"gid://shopify/Product/{vehicle_id}",
        "catalog_product_ref": f"gid://shopify/ProductVariant/{vehicle_id}0",
        "name": name,
        "category": category,
        "price_tiers": tiers if tiers is not None else [],
    }
    data.update(kwargs)
    return VehicleOption(**data)


@pytest.fixture
def distance_tiers():
    return [
        make_tier(1, "0-50 km", 100.0, 0, 50),
        make_tier(2, "51-100 km", 180.0, 51, 100),
    ]


@pytest.fixture
def rental_tiers():
    return [
        make_tier(11, "Half Day - Daily Rental", 180.0, kind=TierKind.HALF_DAY),
        make_tier(12, "Full Day - Daily Rental", 300.0, kind=TierKind.FULL_DAY),
    ]


@pytest.fixture
def sedan(distance_tiers, rental_tiers):
    return make_vehicle(
        tiers=distance_tiers + rental_tiers,
        capacity=4,
        base_fare=50.0,
        per_distance_rate=2.5,
        rating_value=4.8,
    )


@pytest.fixture
def minivan():
    return make_vehicle(
        vehicle_id=202,
        name="Toyota Previa",
        category="Executive Minivan",
        tiers=[
            make_tier(21, "0-50 km", 150.0, 0, 50),
            make_tier(22, "51-200 km", 260.0, 51, 200),
        ],
        capacity=7,
        rating_value=4.6,
        is_featured=True,
    )


@pytest.fixture
def hatchback():
    return make_vehicle(
        vehicle_id=303,
        name="Nissan Micra",
        category="Economy Hatchback",
        tiers=[],
        capacity=3,
        base_fare=25.0,
        per_distance_rate=2.0,
        rating_value=4.1,
    )


@pytest.fixture
def catalog(sedan, minivan, hatchback):
    return [sedan, minivan, hatchback]


@pytest.fixture
def fee_table():
    return AncillaryFeeTable({
        "Luxury Sedan": PARKING_FEE_SEDAN,
        "  executive minivan ": PARKING_FEE_MINIVAN,
    })


@pytest.fixture
def one_way_trip():
    return TransferRequest(
        origin_label="Dubai Marina",
        destination_label="Abu Dhabi Corniche",
        distance_km=75.0,
        eta_label="1 hour 10 mins",
        trip_direction=TripDirection.ONE_WAY,
        pickup_date=date(2025, 3, 1),
        pickup_time=time(9, 30),
        passenger_count=2,
    )


@pytest.fixture
def round_trip():
    return TransferRequest(
        origin_label="Dubai International Airport",
        destination_label="Downtown Dubai",
        distance_km=30.0,
        eta_label="25 mins",
        trip_direction=TripDirection.ROUND_TRIP,
        pickup_date=date(2025, 3, 2),
        pickup_time=time(14, 0),
        return_date=date(2025, 3, 5),
        return_time=time(18, 15),
        passenger_count=3,
        flight_number="EK 202",
    )


@pytest.fixture
def rental_trip():
    return DailyRentalRequest(
        pickup_location="Jumeirah Beach Hotel",
        pickup_date=date(2025, 3, 1),
        pickup_time=time(9, 0),
        dropoff_date=date(2025, 3, 4),
        dropoff_time=time(9, 0),
        passenger_count=2,
    )


@pytest.fixture
def raw_product():
    """A Storefront product node as returned by the catalog query"""
    return {
        "id": "gid://shopify/Product/8812345",
        "title": "Mercedes E-Class",
        "description": "Executive sedan with leather interior",
        "productType": "Taxi",
        "tags": ["sedan"],
        "variants": {
            "edges": [
                {"node": {
                    "id": "gid://shopify/ProductVariant/1",
                    "title": "0-50 km",
                    "price": {"amount": "100.0", "currencyCode": "AED"},
                }},
                {"node": {
                    "id": "gid://shopify/ProductVariant/2",
                    "title": "51-100 km",
                    "price": {"amount": "180.0", "currencyCode": "AED"},
                }},
                {"node": {
                    "id": "gid://shopify/ProductVariant/3",
                    "title": "Full Day - Daily Rental",
                    "price": {"amount": "300.0", "currencyCode": "AED"},
                }},
            ]
        },
        "images": {"edges": [{"node": {"url": "https://cdn.example.com/e-class.jpg", "altText": None}}]},
        "metafields": [
            {"namespace": "taxi_details", "key": "vehicle_type", "value": "Luxury Sedan", "type": "single_line_text_field"},
            {"namespace": "taxi_details", "key": "passengers", "value": "4", "type": "number_integer"},
            {"namespace": "taxi_details", "key": "rating", "value": "4.9", "type": "number_decimal"},
            {"namespace": "taxi_details", "key": "popular", "value": "true", "type": "boolean"},
            {"namespace": "features", "key": "features_list", "value": "[\"Wi-Fi\", \"Water\"]", "type": "json"},
            None,
        ],
    }


@pytest.fixture
def products_payload(raw_product):
    return {"data": {"products": {"edges": [{"node": raw_product}]}}}


class FakeRedis:
    """In-memory stand-in for the handful of redis.asyncio calls the app makes"""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value.encode() if isinstance(value, str) else value
        self.expiry[key] = ex
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def ping(self):
        return True

    async def close(self):
        pass


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr("booking.core.redis.redis", fake)
    return fake


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "cart: marks tests related to cart composition"
    )
    config.addinivalue_line(
        "markers", "gateway: marks tests related to the commerce backend"
    )
    config.addinivalue_line(
        "markers", "idempotency: marks tests related to idempotency"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify test collection to handle asyncio tests
    """
    for item in items:
        if inspect.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)
