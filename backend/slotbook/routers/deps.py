# backend/slotbook/routers/deps.py
# Shared path dependencies for the owner routers.

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from .. import repositories
from ..database import get_db
from ..models import Businesses


def get_business_or_404(business_id: int, db: Session = Depends(get_db)) -> Businesses:
    business = repositories.get_business(db, business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return business
