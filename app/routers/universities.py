from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from pydantic import field_validator
from typing import Optional, List, Dict, Any
from datetime import date, datetime
from app.database import get_db
from app.models import UniversityStatus, Priority
from app.schemas.common import CamelModel, blank_to_none
from app.schemas.requirements import Requirements, parse_requirements_strict
from app.services.errors import NotFound, MalformedRequirements
from app.services.record_store import UniversityStore, ProfileStore
from app.services.requirement_matcher import match_requirements
from app.services.task_generator import TaskGenerator
from app.routers.tasks import TaskResponse

router = APIRouter()

OPTIONAL_STRINGS = ('notes', 'application_portal', 'application_url', 'decision_result')
OPTIONAL_DATES = ('deadline_early', 'deadline_regular', 'deadline_transfer',
                  'application_submitted', 'decision_received')

class UniversityCreate(CamelModel):
    name: str
    country: str
    program: str
    major: str
    ranking: Optional[int] = None
    deadline_early: Optional[date] = None
    deadline_regular: Optional[date] = None
    deadline_transfer: Optional[date] = None
    sat_min: Optional[int] = None
    sat_avg: Optional[int] = None
    ielts_min: Optional[float] = None
    ielts_avg: Optional[float] = None
    toefl_min: Optional[int] = None
    gpa_min: Optional[float] = None
    essays_required: Optional[int] = None
    rec_letters_required: Optional[int] = None
    interview_required: Optional[bool] = None
    transcripts_required: Optional[bool] = None
    application_fee: Optional[float] = None
    fee_waiver_available: Optional[bool] = None
    application_portal: Optional[str] = None
    application_url: Optional[str] = None
    status: UniversityStatus = UniversityStatus.RESEARCHING
    priority: Priority = Priority.MEDIUM
    notes: Optional[str] = None
    application_submitted: Optional[date] = None
    decision_received: Optional[date] = None
    decision_result: Optional[str] = None

    @field_validator(*OPTIONAL_STRINGS, *OPTIONAL_DATES, mode='before')
    @classmethod
    def validate_optional(cls, v):
        return blank_to_none(v)

class UniversityUpdate(CamelModel):
    # Non-nullable columns: an explicit null is rejected
    name: str = None
    country: str = None
    program: str = None
    major: str = None
    ranking: Optional[int] = None
    deadline_early: Optional[date] = None
    deadline_regular: Optional[date] = None
    deadline_transfer: Optional[date] = None
    sat_min: Optional[int] = None
    sat_avg: Optional[int] = None
    ielts_min: Optional[float] = None
    ielts_avg: Optional[float] = None
    toefl_min: Optional[int] = None
    gpa_min: Optional[float] = None
    essays_required: Optional[int] = None
    rec_letters_required: Optional[int] = None
    interview_required: Optional[bool] = None
    transcripts_required: Optional[bool] = None
    application_fee: Optional[float] = None
    fee_waiver_available: Optional[bool] = None
    application_portal: Optional[str] = None
    application_url: Optional[str] = None
    # Any status may follow any other
    status: UniversityStatus = None
    priority: Priority = None
    notes: Optional[str] = None
    application_submitted: Optional[date] = None
    decision_received: Optional[date] = None
    decision_result: Optional[str] = None
    # Explicit replacement of the requirements mapping; flat fields never resync it
    requirements: Optional[Dict[str, Any]] = None

    @field_validator(*OPTIONAL_STRINGS, *OPTIONAL_DATES, mode='before')
    @classmethod
    def validate_optional(cls, v):
        return blank_to_none(v)

class UniversityResponse(CamelModel):
    id: int
    name: str
    country: str
    program: str
    major: str
    ranking: Optional[int] = None
    deadline_early: Optional[date] = None
    deadline_regular: Optional[date] = None
    deadline_transfer: Optional[date] = None
    sat_min: Optional[int] = None
    sat_avg: Optional[int] = None
    ielts_min: Optional[float] = None
    ielts_avg: Optional[float] = None
    toefl_min: Optional[int] = None
    gpa_min: Optional[float] = None
    essays_required: Optional[int] = None
    rec_letters_required: Optional[int] = None
    interview_required: Optional[bool] = None
    transcripts_required: Optional[bool] = None
    application_fee: Optional[float] = None
    fee_waiver_available: Optional[bool] = None
    application_portal: Optional[str] = None
    application_url: Optional[str] = None
    status: str
    priority: str
    notes: Optional[str] = None
    application_submitted: Optional[date] = None
    decision_received: Optional[date] = None
    decision_result: Optional[str] = None
    requirements: Dict[str, Any] = {}
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('requirements', mode='before')
    @classmethod
    def requirements_to_dict(cls, v):
        if v is None:
            return {}
        if isinstance(v, Requirements):
            return v.to_dict()
        return v

class GenerateTasksResponse(CamelModel):
    success: bool
    tasks_created: int
    tasks: List[TaskResponse]

@router.get("", response_model=List[UniversityResponse])
@router.get("/", response_model=List[UniversityResponse])
async def list_universities(
    status_filter: Optional[UniversityStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    """List universities, optionally filtered by status"""
    store = UniversityStore(db)
    if status_filter is not None:
        return store.list_by_status(status_filter.value)
    return store.list()

@router.get("/{university_id}", response_model=UniversityResponse)
async def get_university(university_id: int, db: Session = Depends(get_db)):
    """Get a specific university by ID"""
    university = UniversityStore(db).get(university_id)
    if not university:
        raise HTTPException(status_code=404, detail="University not found")
    return university

@router.post("", response_model=UniversityResponse, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=UniversityResponse, status_code=status.HTTP_201_CREATED)
async def create_university(
    university_data: UniversityCreate,
    db: Session = Depends(get_db)
):
    """Create a university and generate its suggested tasks. Creation succeeds even if generation fails."""
    university = UniversityStore(db).create(university_data.model_dump())
    TaskGenerator(db).generate_after_university_create(university.id)
    db.refresh(university)
    return university

@router.put("/{university_id}", response_model=UniversityResponse)
async def update_university(
    university_id: int,
    university_data: UniversityUpdate,
    db: Session = Depends(get_db)
):
    """Partially update a university"""
    update_data = university_data.model_dump(exclude_unset=True)
    if 'requirements' in update_data:
        try:
            update_data['requirements'] = parse_requirements_strict(update_data['requirements'])
        except MalformedRequirements as e:
            raise HTTPException(status_code=422, detail=str(e))

    university = UniversityStore(db).update(university_id, update_data)
    if not university:
        raise HTTPException(status_code=404, detail="University not found")
    return university

@router.delete("/{university_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_university(university_id: int, db: Session = Depends(get_db)):
    """Delete a university; its tasks stay with a null university reference"""
    if not UniversityStore(db).delete(university_id):
        raise HTTPException(status_code=404, detail="University not found")
    return None

@router.post("/{university_id}/generate-tasks", response_model=GenerateTasksResponse)
async def generate_tasks(university_id: int, db: Session = Depends(get_db)):
    """Generate a fresh batch of suggested tasks for one university"""
    try:
        tasks = TaskGenerator(db).generate_for_university(university_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "tasks_created": len(tasks), "tasks": tasks}

@router.get("/{university_id}/requirements-match")
async def get_requirements_match(university_id: int, db: Session = Depends(get_db)):
    """Compare each requirement dimension of the university with the profile"""
    university = UniversityStore(db).get(university_id)
    if not university:
        raise HTTPException(status_code=404, detail="University not found")
    profile = ProfileStore(db).get_or_create()
    results = match_requirements(university.requirements or Requirements(), profile)
    return {kind: result.to_dict() for kind, result in results.items()}
