"""Exception handlers mapping domain errors to HTTP responses"""
import logging
from typing import List

from fastapi import Request
from fastapi.responses import JSONResponse

from api.schemas import ConflictResponse
from domain.exceptions import BookingConflictError, BookingRejectedError
from domain.value_objects import ExistingReservation

logger = logging.getLogger(__name__)


def conflicts_to_response(conflicts: List[ExistingReservation]) -> List[ConflictResponse]:
    return [
        ConflictResponse(
            reservation_id=c.reservation_id,
            check_in=c.date_range.check_in,
            check_out=c.date_range.check_out,
            status=c.status.value
        )
        for c in conflicts
    ]


async def booking_rejected_handler(_request: Request, exc: BookingRejectedError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Booking request rejected",
            "reasons": exc.reasons,
            "conflicts": [c.model_dump(mode="json") for c in conflicts_to_response(exc.conflicts)],
            "blocked_dates": [d.isoformat() for d in exc.blocked_dates],
        },
    )


async def booking_conflict_handler(_request: Request, exc: BookingConflictError) -> JSONResponse:
    logger.warning("Booking conflict on property %s", exc.property_id)
    return JSONResponse(
        status_code=409,
        content={"detail": exc.message},
    )
