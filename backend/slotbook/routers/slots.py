# backend/slotbook/routers/slots.py
"""
Owner availability endpoint.

GET /businesses/{business_id}/availability - slots of a service on a day
"""

from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Businesses
from ..schemas.slots import SlotRead, SlotsDayResponse
from ..services.clock import Clock, get_clock
from ..services.slots import get_available_slots, get_booking_config
from .deps import get_business_or_404


router = APIRouter(prefix="/businesses/{business_id}", tags=["slots"])


def slots_response(service_id: int, target_date: date, slots, horizon_days: int) -> SlotsDayResponse:
    return SlotsDayResponse(
        service_id=service_id,
        date=target_date,
        slots=[SlotRead(start_time=s.start_time, end_time=s.end_time) for s in slots],
        horizon_days=horizon_days,
    )


@router.get("/availability", response_model=SlotsDayResponse)
def get_availability(
    service_id: int,
    target_date: date = Query(..., alias="date"),
    business: Businesses = Depends(get_business_or_404),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Available slots for the owner's calendar (no horizon limit)."""
    config = get_booking_config()
    slots = get_available_slots(db, business.id, target_date, service_id, clock, config)
    return slots_response(service_id, target_date, slots, config.horizon_days)
