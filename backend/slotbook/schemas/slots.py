# backend/slotbook/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from pydantic import BaseModel, Field


class SlotRead(BaseModel):
    """A bookable slot, business-local wall clock."""
    start_time: str  # "HH:MM"
    end_time: str

    model_config = {"from_attributes": True}


class SlotsDayResponse(BaseModel):
    """Available slots of a service on one day."""
    service_id: int
    date: date
    slots: list[SlotRead]
    horizon_days: int = Field(description="How many days ahead can be booked")

    model_config = {"from_attributes": True}
