"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field, StrictInt, field_validator

USER_ID_MAX_LENGTH = 255


class ReserveRequest(BaseModel):
    event_id: StrictInt = Field(..., gt=0)
    user_id: str = Field(..., min_length=1, max_length=USER_ID_MAX_LENGTH)

    @field_validator("user_id")
    @classmethod
    def user_id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("user_id must not be blank")
        return value


class BookingRecord(BaseModel):
    booking_id: int
    event_id: int
    user_id: str
    created_at: datetime


class UserBooking(BaseModel):
    id: int
    event_id: int
    user_id: str
    created_at: datetime
    event_name: str

    model_config = {"from_attributes": True}


class ReserveResponse(BaseModel):
    success: bool = True
    message: str = "Booking created successfully"
    data: BookingRecord


class UserBookingsResponse(BaseModel):
    success: bool = True
    data: list[UserBooking]
