"""
Request-scoped access to objects built during application startup.
"""

from fastapi import Request

from booking_core.services.reservation_service import ReservationEngine


def get_reservation_engine(request: Request) -> ReservationEngine:
    return request.app.state.reservation_engine
