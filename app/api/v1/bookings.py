"""Booking endpoints: create, look up and change status.

Engine errors are not caught here; the handlers registered in app.main map
them to 400/404/409/503.
"""

from fastapi import APIRouter, Query, status

from app.api.deps import ProfessionalId, Scheduling
from app.schemas.booking import BookingCancel, BookingCreate, BookingRead, ClientBookingCancel
from app.services.scheduling import ClientInfo

router = APIRouter()


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a confirmed booking",
)
async def create_booking(
    request: BookingCreate,
    professional_id: ProfessionalId,
    scheduling: Scheduling,
) -> BookingRead:
    """Book a slot. A taken slot is a 409; ask /availability/suggestion for another."""
    booking = await scheduling.create_booking(
        professional_id,
        request.service_id,
        request.booking_date,
        request.start_time,
        ClientInfo(
            name=request.client_name,
            phone=request.client_phone,
            email=request.client_email,
        ),
        source=request.source,
        service_location=request.service_location,
        customer_address=request.customer_address,
        notes=request.notes,
        idempotency_key=request.idempotency_key,
    )
    return BookingRead.model_validate(booking)


@router.get(
    "/active",
    response_model=list[BookingRead],
    summary="Upcoming confirmed bookings of a client",
)
async def list_active_bookings(
    professional_id: ProfessionalId,
    scheduling: Scheduling,
    client_phone: str | None = Query(None),
) -> list[BookingRead]:
    """The chat-bot's "my bookings" intent."""
    bookings = await scheduling.list_active_bookings(professional_id, client_phone)
    return [BookingRead.model_validate(b) for b in bookings]


@router.post(
    "/active/cancel",
    response_model=BookingRead,
    summary="Cancel a client's upcoming booking by phone",
)
async def cancel_client_booking(
    request: ClientBookingCancel,
    professional_id: ProfessionalId,
    scheduling: Scheduling,
) -> BookingRead:
    """The chat-bot's "cancel my booking" intent."""
    booking = await scheduling.cancel_client_booking(
        professional_id,
        request.client_phone,
        booking_id=request.booking_id,
        reason=request.reason,
    )
    return BookingRead.model_validate(booking)


@router.get(
    "/{booking_id}",
    response_model=BookingRead,
)
async def get_booking(
    booking_id: str,
    professional_id: ProfessionalId,
    scheduling: Scheduling,
) -> BookingRead:
    """Get a booking. Another professional's booking is a 404."""
    booking = await scheduling.get_booking(professional_id, booking_id)
    return BookingRead.model_validate(booking)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingRead,
)
async def cancel_booking(
    booking_id: str,
    professional_id: ProfessionalId,
    scheduling: Scheduling,
    request: BookingCancel | None = None,
) -> BookingRead:
    """Cancel a confirmed booking."""
    booking = await scheduling.cancel_booking(
        professional_id,
        booking_id,
        reason=request.reason if request else None,
    )
    return BookingRead.model_validate(booking)


@router.post(
    "/{booking_id}/complete",
    response_model=BookingRead,
)
async def complete_booking(
    booking_id: str,
    professional_id: ProfessionalId,
    scheduling: Scheduling,
) -> BookingRead:
    """Mark a confirmed booking as completed."""
    booking = await scheduling.complete_booking(professional_id, booking_id)
    return BookingRead.model_validate(booking)


@router.post(
    "/{booking_id}/no-show",
    response_model=BookingRead,
)
async def mark_no_show(
    booking_id: str,
    professional_id: ProfessionalId,
    scheduling: Scheduling,
) -> BookingRead:
    """Mark a confirmed booking as a no-show."""
    booking = await scheduling.mark_no_show(professional_id, booking_id)
    return BookingRead.model_validate(booking)
