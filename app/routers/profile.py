from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import Field
from typing import Optional, List
from datetime import datetime
from app.database import get_db
from app.models import TranscriptStatus, StatementStatus
from app.schemas.common import CamelModel
from app.services.readiness_scorer import ReadinessScorer
from app.services.record_store import ProfileStore, PROFILE_ATTR_FIELDS
from app.services.task_generator import TaskGenerator

router = APIRouter()

class ProfileUpdate(CamelModel):
    sat_target: Optional[int] = None
    sat_actual: Optional[int] = None
    ielts_score: Optional[float] = None
    toefl_score: Optional[float] = None
    # Non-nullable columns: an explicit null is rejected
    transcript_status: TranscriptStatus = None
    recommendations_count: int = Field(None, ge=0)
    statement_status: StatementStatus = None
    fee_budget: Optional[float] = None

class ProfileResponse(CamelModel):
    id: int
    sat_target: Optional[int] = None
    sat_actual: Optional[int] = None
    ielts_score: Optional[float] = None
    toefl_score: Optional[float] = None
    transcript_status: str
    recommendations_count: int
    statement_status: str
    fee_budget: Optional[float] = None
    updated_at: Optional[datetime] = None

class ReadinessItem(CamelModel):
    name: str
    complete: bool
    status: str

class ReadinessResponse(CamelModel):
    score: int
    total: int
    completed: int
    items: List[ReadinessItem]

@router.get("", response_model=ProfileResponse)
@router.get("/", response_model=ProfileResponse)
async def get_profile(db: Session = Depends(get_db)):
    """Get the profile, creating the default one on first read"""
    return ProfileStore(db).get_or_create()

@router.post("", response_model=ProfileResponse)
@router.post("/", response_model=ProfileResponse)
async def update_profile(profile_data: ProfileUpdate, db: Session = Depends(get_db)):
    """
    Partially update the profile, then regenerate suggestions for universities
    whose requirements read a changed field. The save succeeds even if generation fails.
    """
    updates = profile_data.model_dump(exclude_unset=True)
    profile = ProfileStore(db).update(updates)

    changed_fields = [PROFILE_ATTR_FIELDS[attr] for attr in updates]
    if changed_fields:
        TaskGenerator(db).generate_after_profile_update(changed_fields)

    db.refresh(profile)
    return profile

@router.get("/readiness", response_model=ReadinessResponse)
async def get_readiness(db: Session = Depends(get_db)):
    """Overall readiness across the six profile dimensions"""
    return ReadinessScorer(db).score()
