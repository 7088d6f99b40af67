"""Booking session: cached catalog plus the search and checkout entry points"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from booking.core.enums import SortOption
from booking.core.exceptions import CatalogFetchError, TripValidationError
from booking.core.metrics import catalog_size
from booking.schemas.catalog import VehicleOption
from booking.schemas.checkout import BookingConfirmation, CheckoutRequest
from booking.schemas.fare import FareResult
from booking.schemas.quote import QuoteOption
from booking.schemas.trip import DailyRentalRequest, TransferRequest
from booking.services.cart import FeeLookup, compose_checkout
from booking.services.pricing import (
    calculate_fare,
    can_price_rental,
    filter_by_capacity,
    sort_quote_options,
    vehicle_disclaimer,
)
from booking.services.shopify import fetch_catalog, submit_checkout
from booking.services.validation import validate_trip

logger = logging.getLogger(__name__)

Trip = Union[TransferRequest, DailyRentalRequest]
CatalogFetcher = Callable[[], Awaitable[List[VehicleOption]]]
CheckoutSubmitter = Callable[..., Awaitable[str]]


class BookingSession:
    """
    Holds the catalog for the lifetime of the service.

    The catalog is fetched on first use and kept until ``refresh()`` is
    called. A failed refresh keeps whatever catalog was already loaded.
    """

    def __init__(
        self,
        fee_lookup: FeeLookup,
        *,
        fetcher: CatalogFetcher = fetch_catalog,
        submitter: CheckoutSubmitter = submit_checkout,
        airport_only: bool = False,
        currency_code: str = "AED",
    ):
        self.fee_lookup = fee_lookup
        self.airport_only = airport_only
        self.currency_code = currency_code
        self.catalog: List[VehicleOption] = []
        self.initialized = False
        self.last_error: Optional[str] = None
        self._fetcher = fetcher
        self._submitter = submitter
        self._lock = asyncio.Lock()

    async def _load(self) -> List[VehicleOption]:
        # caller holds self._lock
        try:
            vehicles = await self._fetcher()
        except CatalogFetchError as e:
            self.last_error = str(e)
            logger.error(f"Catalog refresh failed, keeping {len(self.catalog)} cached vehicles: {e}")
            raise

        self.catalog = vehicles
        self.initialized = True
        self.last_error = None
        catalog_size.set(len(vehicles))
        return vehicles

    async def refresh(self) -> List[VehicleOption]:
        async with self._lock:
            return await self._load()

    async def ensure_catalog(self) -> List[VehicleOption]:
        if self.initialized:
            return self.catalog
        async with self._lock:
            # another request may have loaded it while we waited
            if not self.initialized:
                await self._load()
            return self.catalog

    def find_vehicle(self, vehicle_id: int) -> Optional[VehicleOption]:
        return next((v for v in self.catalog if v.id == vehicle_id), None)

    def quote(
        self,
        trip: Trip,
        sort_by: SortOption = SortOption.PRICE,
        featured_only: bool = False,
    ) -> List[QuoteOption]:
        validate_trip(trip, self.catalog)

        vehicles = filter_by_capacity(self.catalog, trip.passenger_count)
        if isinstance(trip, DailyRentalRequest):
            vehicles = [v for v in vehicles if can_price_rental(v, trip.rental_hours)]
        if featured_only:
            vehicles = [v for v in vehicles if v.is_featured]

        options = [
            QuoteOption(
                vehicle=vehicle,
                fare=calculate_fare(vehicle, trip),
                disclaimer=vehicle_disclaimer(vehicle.category),
            )
            for vehicle in vehicles
        ]
        return sort_quote_options(options, sort_by)

    async def search(
        self,
        trip: Trip,
        sort_by: SortOption = SortOption.PRICE,
        featured_only: bool = False,
    ) -> List[QuoteOption]:
        await self.ensure_catalog()
        return self.quote(trip, sort_by, featured_only)

    def prepare_checkout(
        self,
        vehicle_id: int,
        trip: Trip,
    ) -> Tuple[VehicleOption, FareResult, CheckoutRequest]:
        validate_trip(trip, self.catalog)

        vehicle = self.find_vehicle(vehicle_id)
        if vehicle is None:
            raise TripValidationError(f"Vehicle {vehicle_id} is not available")
        if vehicle.capacity < trip.passenger_count:
            raise TripValidationError(
                f"{vehicle.name} seats {vehicle.capacity} passengers, "
                f"{trip.passenger_count} requested"
            )
        if isinstance(trip, DailyRentalRequest) and not can_price_rental(vehicle, trip.rental_hours):
            raise TripValidationError(
                f"{vehicle.name} is not available for a {trip.rental_hours:.1f} hour rental"
            )

        fare = calculate_fare(vehicle, trip)
        request = compose_checkout(
            vehicle,
            trip,
            fare,
            self.fee_lookup,
            airport_only=self.airport_only,
            currency_code=vehicle.currency_code or self.currency_code,
        )
        return vehicle, fare, request

    async def checkout(
        self,
        vehicle_id: int,
        trip: Trip,
        buyer_email: Optional[str] = None,
    ) -> BookingConfirmation:
        await self.ensure_catalog()
        vehicle, fare, request = self.prepare_checkout(vehicle_id, trip)

        checkout_url = await self._submitter(
            request.lines,
            request.cart_attributes,
            request.note,
            buyer_email,
        )
        return BookingConfirmation(
            checkout_url=checkout_url,
            vehicle_id=vehicle.id,
            vehicle_name=vehicle.name,
            booking_type=str(trip.mode),
            total_fare=fare.amount,
            parking_fee_included=request.cart_attribute("parking_fee_included") == "yes",
        )
