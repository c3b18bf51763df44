from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from pydantic import field_validator
from typing import Optional, List
from datetime import date, datetime
from app.config import settings
from app.database import get_db
from app.models import TaskStatus, Priority
from app.schemas.common import CamelModel, blank_to_none
from app.services.record_store import TaskStore, UniversityStore

router = APIRouter()

class TaskCreate(CamelModel):
    university_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    profile_item_type: Optional[str] = None

    @field_validator('description', 'due_date', 'profile_item_type', mode='before')
    @classmethod
    def validate_optional(cls, v):
        return blank_to_none(v)

class TaskUpdate(CamelModel):
    university_id: Optional[int] = None
    # Non-nullable columns: an explicit null is rejected
    title: str = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    # suggested -> todo (accept), todo <-> done (toggle)
    status: TaskStatus = None
    priority: Priority = None
    profile_item_type: Optional[str] = None
    completed_at: Optional[datetime] = None

    @field_validator('description', 'due_date', 'profile_item_type', 'completed_at', mode='before')
    @classmethod
    def validate_optional(cls, v):
        return blank_to_none(v)

class TaskResponse(CamelModel):
    id: int
    university_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    status: str
    priority: str
    profile_item_type: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

def check_university_reference(db: Session, university_id: Optional[int]):
    """Reject a universityId that points at no university"""
    if university_id is not None and not UniversityStore(db).get(university_id):
        raise HTTPException(status_code=422, detail=f"University {university_id} not found")

@router.get("", response_model=List[TaskResponse])
@router.get("/", response_model=List[TaskResponse])
async def list_tasks(
    university_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """List tasks, open ones first; filter by university with ?university_id="""
    return TaskStore(db).list(university_id=university_id)

@router.get("/upcoming", response_model=List[TaskResponse])
async def list_upcoming_tasks(
    days: int = Query(settings.UPCOMING_WINDOW_DAYS, ge=0),
    db: Session = Depends(get_db)
):
    """Open tasks due within the next `days` days"""
    return TaskStore(db).list_upcoming(days)

@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int, db: Session = Depends(get_db)):
    task = TaskStore(db).get(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task

@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(task_data: TaskCreate, db: Session = Depends(get_db)):
    """Create a user-authored task"""
    check_university_reference(db, task_data.university_id)
    return TaskStore(db).create(task_data.model_dump())

@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(task_id: int, task_data: TaskUpdate, db: Session = Depends(get_db)):
    """Partially update a task. Moving to done stamps completedAt, moving away clears it."""
    store = TaskStore(db)
    if not store.get(task_id):
        raise HTTPException(status_code=404, detail="Task not found")

    update_data = task_data.model_dump(exclude_unset=True)
    check_university_reference(db, update_data.get("university_id"))
    return store.update(task_id, update_data)

@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, db: Session = Depends(get_db)):
    if not TaskStore(db).delete(task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    return None
