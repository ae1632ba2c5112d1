"""
Translate reservation errors into JSON responses.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booking_core.core.exceptions import ReservationError


async def reservation_error_handler(request: Request, exc: ReservationError) -> JSONResponse:
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "kind": exc.kind},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReservationError, reservation_error_handler)
