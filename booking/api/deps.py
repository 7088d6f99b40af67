from fastapi import Request

from booking.services.session import BookingSession


def get_booking_session(request: Request) -> BookingSession:
    return request.app.state.booking_session
