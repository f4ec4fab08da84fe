# backend/slotbook/routers/closures.py
# PATCH = 405, DELETE = hard delete

from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import repositories
from ..database import get_db
from ..models import Businesses, Closures
from ..schemas.closures import ClosureCreate, ClosureRead
from .deps import get_business_or_404

router = APIRouter(prefix="/businesses/{business_id}/closures", tags=["closures"])


def _own_closure(db: Session, business: Businesses, id: int) -> Closures:
    obj = db.get(Closures, id)
    if not obj or obj.business_id != business.id:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.get("/", response_model=list[ClosureRead])
def list_closures(
    target_date: date | None = Query(None, alias="date"),
    business: Businesses = Depends(get_business_or_404),
    db: Session = Depends(get_db),
):
    return repositories.list_closures(db, business.id, target_date)


@router.post("/", response_model=ClosureRead, status_code=status.HTTP_201_CREATED)
def create_closure(
    data: ClosureCreate,
    business: Businesses = Depends(get_business_or_404),
    db: Session = Depends(get_db),
):
    obj = Closures(business_id=business.id, **data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_closure(
    id: int,
    business: Businesses = Depends(get_business_or_404),
    db: Session = Depends(get_db),
):
    obj = _own_closure(db, business, id)
    db.delete(obj)
    db.commit()
