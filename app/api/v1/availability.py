"""Availability endpoints: free slots and alternative suggestions."""

from fastapi import APIRouter, Query

from app.api.deps import ProfessionalId, Scheduling
from app.schemas.booking import AvailableSlotsRead, SlotSuggestionRead

router = APIRouter()


@router.get(
    "/slots",
    response_model=AvailableSlotsRead,
    summary="List free start times for a service on a day",
)
async def get_available_slots(
    professional_id: ProfessionalId,
    scheduling: Scheduling,
    service_id: str | None = Query(None),
    date: str | None = Query(None, description="YYYY-MM-DD, DD/MM/YYYY, today or tomorrow"),
) -> AvailableSlotsRead:
    """Free slots for a service. Closed or fully booked days return []."""
    availability = await scheduling.get_day_availability(professional_id, service_id, date)
    return AvailableSlotsRead(
        date=availability.date,
        service_id=service_id,
        slots=availability.slots,
    )


@router.get(
    "/suggestion",
    response_model=SlotSuggestionRead,
    summary="Suggest the first free slot on a day",
)
async def suggest_alternative(
    professional_id: ProfessionalId,
    scheduling: Scheduling,
    date: str = Query(..., description="Day to search"),
    duration_minutes: int = Query(..., description="Service length in minutes"),
    after_time: str | None = Query(None, description="Never suggest earlier than this"),
) -> SlotSuggestionRead:
    """Suggest an alternative slot, never earlier than after_time."""
    slot = await scheduling.suggest_alternative(
        professional_id, date, duration_minutes, after_time=after_time
    )
    day = await scheduling.resolve_date(professional_id, date)
    return SlotSuggestionRead(date=day, start_time=slot, available=slot is not None)


@router.get(
    "/next-opening",
    response_model=SlotSuggestionRead | None,
    summary="Search forward for the next free slot",
)
async def suggest_next_opening(
    professional_id: ProfessionalId,
    scheduling: Scheduling,
    duration_minutes: int = Query(...),
    from_date: str | None = Query(None),
    after_time: str | None = Query(None),
    look_ahead_days: int = Query(7, ge=0, le=60),
) -> SlotSuggestionRead | None:
    """Next free slot within look_ahead_days, or null."""
    suggestion = await scheduling.suggest_next_opening(
        professional_id,
        duration_minutes,
        from_date=from_date,
        after_time=after_time,
        look_ahead_days=look_ahead_days,
    )
    if suggestion is None:
        return None
    return SlotSuggestionRead(
        date=suggestion.date,
        start_time=suggestion.start_time,
        available=True,
    )
