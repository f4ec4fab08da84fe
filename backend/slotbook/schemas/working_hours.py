# backend/slotbook/schemas/working_hours.py

from pydantic import BaseModel, Field, field_validator, model_validator

from .bookings import check_time


class WorkingHoursEntry(BaseModel):
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return check_time(v)

    @model_validator(mode="after")
    def check_order(self):
        # "00:00" as end time means midnight
        if self.end_time != "00:00" and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class WorkingHoursReplace(BaseModel):
    hours: list[WorkingHoursEntry]

    @model_validator(mode="after")
    def check_disjoint(self):
        by_day: dict[int, list[WorkingHoursEntry]] = {}
        for entry in self.hours:
            by_day.setdefault(entry.day_of_week, []).append(entry)

        for day, entries in by_day.items():
            entries.sort(key=lambda e: e.start_time)
            for prev, cur in zip(entries, entries[1:]):
                prev_end = "24:00" if prev.end_time == "00:00" else prev.end_time
                if cur.start_time < prev_end:
                    raise ValueError(f"Overlapping working hours on day {day}")
        return self


class WorkingHoursRead(BaseModel):
    id: int
    day_of_week: int
    start_time: str
    end_time: str

    model_config = {"from_attributes": True}
