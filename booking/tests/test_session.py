import asyncio
import pytest
from datetime import date, datetime, time, timedelta

from conftest import PARKING_FEE_SEDAN, make_tier, make_vehicle
from booking.core.enums import SortOption, TierKind
from booking.core.exceptions import CatalogFetchError, CheckoutError, TripValidationError
from booking.schemas.trip import DailyRentalRequest, TransferRequest
from booking.services.session import BookingSession

CHECKOUT_URL = "https://example.myshopify.com/cart/c/abc123"


class FakeBackend:
    """Stands in for the Storefront gateway."""

    def __init__(self, catalog, checkout_url=CHECKOUT_URL):
        self.catalog = catalog
        self.checkout_url = checkout_url
        self.fetch_calls = 0
        self.fail_fetch = False
        self.fail_checkout = False
        self.submissions = []

    async def fetch(self):
        self.fetch_calls += 1
        if self.fail_fetch:
            raise CatalogFetchError("Booking backend returned status 503")
        return list(self.catalog)

    async def submit(self, lines, cart_attributes, note, buyer_email=None):
        self.submissions.append((lines, cart_attributes, note, buyer_email))
        if self.fail_checkout:
            raise CheckoutError("Variant is sold out")
        return self.checkout_url


@pytest.fixture
def backend(catalog):
    return FakeBackend(catalog)


@pytest.fixture
def session(backend, fee_table):
    return BookingSession(fee_table, fetcher=backend.fetch, submitter=backend.submit)


class TestCatalogCache:

    async def test_lazy_load(self, session, backend):
        assert not session.initialized
        await session.ensure_catalog()
        await session.ensure_catalog()

        assert session.initialized
        assert backend.fetch_calls == 1
        assert len(session.catalog) == 3

    async def test_refresh_refetches(self, session, backend):
        await session.ensure_catalog()
        await session.refresh()
        assert backend.fetch_calls == 2

    async def test_failed_first_load(self, session, backend):
        backend.fail_fetch = True
        with pytest.raises(CatalogFetchError):
            await session.ensure_catalog()

        assert not session.initialized
        assert session.catalog == []
        assert "503" in session.last_error

    async def test_failed_refresh_keeps_catalog(self, session, backend):
        await session.ensure_catalog()
        backend.fail_fetch = True

        with pytest.raises(CatalogFetchError):
            await session.refresh()

        assert session.initialized
        assert len(session.catalog) == 3
        assert session.last_error is not None

        backend.fail_fetch = False
        await session.refresh()
        assert session.last_error is None

    async def test_concurrent_first_load_fetches_once(self, backend, fee_table):
        async def slow_fetch():
            await asyncio.sleep(0)
            return await backend.fetch()

        session = BookingSession(fee_table, fetcher=slow_fetch, submitter=backend.submit)
        first, second = await asyncio.gather(session.ensure_catalog(), session.ensure_catalog())

        assert backend.fetch_calls == 1
        assert len(first) == len(second) == 3

    async def test_find_vehicle(self, session):
        await session.ensure_catalog()
        assert session.find_vehicle(202).name == "Toyota Previa"
        assert session.find_vehicle(999) is None


class TestSearch:

    async def test_sorted_by_price(self, session, one_way_trip):
        options = await session.search(one_way_trip)
        assert [o.fare.amount for o in options] == [175.0, 180.0, 260.0]
        assert "Economy Hatchback class" in options[0].disclaimer

    async def test_capacity_filter(self, session, one_way_trip):
        trip = one_way_trip.model_copy(update={"passenger_count": 4})
        options = await session.search(trip)
        assert all(o.vehicle.capacity >= 4 for o in options)
        assert "Nissan Micra" not in [o.vehicle.name for o in options]

    async def test_featured_only(self, session, one_way_trip):
        options = await session.search(one_way_trip, featured_only=True)
        assert [o.vehicle.name for o in options] == ["Toyota Previa"]

    async def test_sort_by_rating(self, session, one_way_trip):
        options = await session.search(one_way_trip, sort_by=SortOption.RATING)
        assert options[0].vehicle.name == "Mercedes E-Class"

    async def test_rental_excludes_vehicles_without_rental_units(self, session, rental_trip):
        options = await session.search(rental_trip)
        assert [o.vehicle.name for o in options] == ["Mercedes E-Class"]
        assert options[0].fare.amount == 900.0

    async def test_too_many_passengers(self, session, one_way_trip):
        trip = one_way_trip.model_copy(update={"passenger_count": 9})
        with pytest.raises(TripValidationError, match="9 passengers"):
            await session.search(trip)


class TestValidation:

    async def test_missing_origin(self, session, one_way_trip):
        trip = one_way_trip.model_copy(update={"origin_label": "  "})
        with pytest.raises(TripValidationError, match="pickup location"):
            await session.search(trip)

    async def test_round_trip_requires_return(self, session, round_trip):
        trip = round_trip.model_copy(update={"return_time": None})
        with pytest.raises(TripValidationError, match="return time"):
            await session.search(trip)

    async def test_return_before_outbound(self, session, round_trip):
        trip = round_trip.model_copy(update={"return_date": date(2025, 3, 1)})
        with pytest.raises(TripValidationError, match="after the outbound"):
            await session.search(trip)

    async def test_negative_distance(self, session, one_way_trip):
        trip = one_way_trip.model_copy(update={"distance_km": -1.0})
        with pytest.raises(TripValidationError):
            await session.search(trip)

    async def test_dropoff_before_pickup(self, session):
        trip = DailyRentalRequest(
            pickup_location="Jumeirah Beach Hotel",
            pickup_date=date(2025, 3, 2),
            pickup_time=time(9, 0),
            dropoff_date=date(2025, 3, 1),
            dropoff_time=time(9, 0),
        )
        with pytest.raises(TripValidationError, match="Drop-off"):
            await session.search(trip)


class TestCheckout:

    async def test_confirmation(self, session, backend, one_way_trip):
        confirmation = await session.checkout(101, one_way_trip, "guest@example.com")

        assert confirmation.checkout_url == CHECKOUT_URL
        assert confirmation.vehicle_id == 101
        assert confirmation.vehicle_name == "Mercedes E-Class"
        assert confirmation.booking_type == "transfer"
        assert confirmation.total_fare == 180.0
        assert confirmation.parking_fee_included is True

        lines, _, note, email = backend.submissions[0]
        assert [l.unit_ref for l in lines] == ["gid://shopify/ProductVariant/2", PARKING_FEE_SEDAN]
        assert note.startswith("Transport Booking:")
        assert email == "guest@example.com"

    async def test_rental_checkout(self, session, backend, rental_trip):
        confirmation = await session.checkout(101, rental_trip)

        assert confirmation.booking_type == "daily_rental"
        assert confirmation.total_fare == 900.0
        lines = backend.submissions[0][0]
        assert (lines[0].unit_ref, lines[0].quantity) == ("gid://shopify/ProductVariant/12", 3)

    async def test_unmapped_category(self, session, backend, one_way_trip):
        confirmation = await session.checkout(303, one_way_trip)

        assert confirmation.parking_fee_included is False
        assert len(backend.submissions[0][0]) == 1

    async def test_unknown_vehicle(self, session, backend, one_way_trip):
        with pytest.raises(TripValidationError, match="not available"):
            await session.checkout(999, one_way_trip)
        assert backend.submissions == []

    async def test_vehicle_too_small(self, session, backend, one_way_trip):
        trip = one_way_trip.model_copy(update={"passenger_count": 4})
        with pytest.raises(TripValidationError, match="seats 3"):
            await session.checkout(303, trip)
        assert backend.submissions == []

    async def test_vehicle_without_rental_units(self, session, rental_trip):
        with pytest.raises(TripValidationError, match="not available"):
            await session.checkout(202, rental_trip)

    async def test_backend_rejection_propagates(self, session, backend, one_way_trip):
        backend.fail_checkout = True
        with pytest.raises(CheckoutError, match="sold out"):
            await session.checkout(101, one_way_trip)

    async def test_airport_only_session(self, backend, fee_table, one_way_trip):
        session = BookingSession(
            fee_table,
            fetcher=backend.fetch,
            submitter=backend.submit,
            airport_only=True,
        )
        confirmation = await session.checkout(101, one_way_trip)
        assert confirmation.parking_fee_included is False


def test_transfer_request_defaults():
    trip = TransferRequest(
        origin_label="A",
        destination_label="B",
        pickup_date=date(2025, 3, 1),
        pickup_time=time(9, 0),
    )
    assert trip.mode == "transfer"
    assert trip.passenger_count == 1
    assert not trip.is_round_trip
    assert trip.return_datetime is None


def rental_hours_trip(hours):
    pickup = datetime(2025, 3, 1, 9, 0)
    dropoff = pickup + timedelta(hours=hours)
    return DailyRentalRequest(
        pickup_location="Jumeirah Beach Hotel",
        pickup_date=pickup.date(),
        pickup_time=pickup.time(),
        dropoff_date=dropoff.date(),
        dropoff_time=dropoff.time(),
    )


class TestHalfDayOnlyVehicle:

    @pytest.fixture
    def half_day_session(self, backend, fee_table):
        backend.catalog = [
            make_vehicle(
                vehicle_id=404,
                name="Lexus ES",
                tiers=[make_tier(41, "Half Day - Daily Rental", 180.0, kind=TierKind.HALF_DAY)],
            )
        ]
        return BookingSession(fee_table, fetcher=backend.fetch, submitter=backend.submit)

    async def test_half_day_rental_is_offered(self, half_day_session):
        options = await half_day_session.search(rental_hours_trip(4))
        assert [o.fare.amount for o in options] == [180.0]

    @pytest.mark.parametrize("hours", [10, 72])
    async def test_longer_rentals_are_not_offered(self, half_day_session, hours):
        assert await half_day_session.search(rental_hours_trip(hours)) == []

    @pytest.mark.parametrize("hours", [10, 72])
    async def test_longer_rentals_cannot_check_out(self, half_day_session, backend, hours):
        with pytest.raises(TripValidationError, match="not available"):
            await half_day_session.checkout(404, rental_hours_trip(hours))
        assert backend.submissions == []
