from typing import List

from fastapi import APIRouter, Depends, HTTPException

from booking.api.deps import get_booking_session
from booking.core.exceptions import CatalogFetchError
from booking.schemas.catalog import VehicleOption
from booking.services.session import BookingSession

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/", response_model=List[VehicleOption])
async def list_vehicles(session: BookingSession = Depends(get_booking_session)):
    try:
        return await session.ensure_catalog()
    except CatalogFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/{vehicle_id}", response_model=VehicleOption)
async def get_vehicle(vehicle_id: int, session: BookingSession = Depends(get_booking_session)):
    try:
        await session.ensure_catalog()
    except CatalogFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))

    vehicle = session.find_vehicle(vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=404, detail=f"Vehicle with id {vehicle_id} not found")
    return vehicle


@router.post("/refresh", response_model=List[VehicleOption])
async def refresh_catalog(session: BookingSession = Depends(get_booking_session)):
    try:
        return await session.refresh()
    except CatalogFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))
