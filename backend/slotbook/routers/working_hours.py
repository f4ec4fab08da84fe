# backend/slotbook/routers/working_hours.py
# PUT replaces the whole weekly template, there is no per-row PATCH.

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import repositories
from ..database import get_db
from ..models import Businesses
from ..schemas.working_hours import WorkingHoursRead, WorkingHoursReplace
from .deps import get_business_or_404

router = APIRouter(prefix="/businesses/{business_id}/working-hours", tags=["working_hours"])


@router.get("/", response_model=list[WorkingHoursRead])
def list_working_hours(
    business: Businesses = Depends(get_business_or_404),
    db: Session = Depends(get_db),
):
    return repositories.list_working_hours(db, business.id)


@router.put("/", response_model=list[WorkingHoursRead])
def replace_working_hours(
    data: WorkingHoursReplace,
    business: Businesses = Depends(get_business_or_404),
    db: Session = Depends(get_db),
):
    rows = [(h.day_of_week, h.start_time, h.end_time) for h in data.hours]
    return repositories.replace_working_hours(db, business.id, rows)
