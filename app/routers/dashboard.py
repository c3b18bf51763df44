"""
Dashboard endpoints: status counts and upcoming deadlines
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.services.deadlines import upcoming_deadlines
from app.services.record_store import UniversityStore

router = APIRouter()

@router.get("/stats")
async def get_stats(db: Session = Depends(get_db)):
    """Number of universities per status, plus the total"""
    return UniversityStore(db).stats()

@router.get("/deadlines/upcoming")
async def get_upcoming_deadlines(
    days: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db)
):
    """Future early/regular/transfer deadlines, soonest first"""
    deadlines = upcoming_deadlines(UniversityStore(db).list(), days=days)
    return [
        {
            "universityId": d["university_id"],
            "universityName": d["university_name"],
            "type": d["type"],
            "date": d["date"].isoformat(),
            "daysLeft": d["days_left"],
            "urgency": d["urgency"],
        }
        for d in deadlines
    ]
