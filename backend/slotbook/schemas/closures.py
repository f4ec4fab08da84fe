# backend/slotbook/schemas/closures.py

from typing import Literal, Optional
from pydantic import BaseModel, field_validator, model_validator

from .bookings import check_date, check_time


class ClosureCreate(BaseModel):
    type: Literal["HOLIDAY", "BREAK"]
    date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    note: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return check_date(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return check_time(v) if v is not None else v

    @model_validator(mode="after")
    def check_times(self):
        if self.type == "HOLIDAY":
            if self.start_time or self.end_time:
                raise ValueError("HOLIDAY closures block the whole day, omit start_time/end_time")
            return self
        if not self.start_time or not self.end_time:
            raise ValueError("BREAK closures need start_time and end_time")
        if self.end_time != "00:00" and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ClosureRead(BaseModel):
    id: int
    type: str
    date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    note: Optional[str] = None

    model_config = {"from_attributes": True}
