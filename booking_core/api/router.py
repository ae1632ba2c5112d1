"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from booking_core.api.routes import bookings

api_router = APIRouter(prefix="/api")
api_router.include_router(bookings.router)
