"""
Record Store - SQLAlchemy access to universities, tasks and the profile
"""
from sqlalchemy.orm import Session
from sqlalchemy import case, func
from typing import List, Optional, Dict, Any
from datetime import date, datetime, timedelta, timezone
from app.models import (
    University, Task, Profile,
    UniversityStatus, TaskStatus, TranscriptStatus, StatementStatus,
)
from app.schemas.requirements import derive_requirements

# API / task vocabulary (camelCase) -> Profile column
PROFILE_FIELD_ATTRS = {
    "satTarget": "sat_target",
    "satActual": "sat_actual",
    "ieltsScore": "ielts_score",
    "toeflScore": "toefl_score",
    "transcriptStatus": "transcript_status",
    "recommendationsCount": "recommendations_count",
    "statementStatus": "statement_status",
    "feeBudget": "fee_budget",
}
PROFILE_ATTR_FIELDS = {attr: name for name, attr in PROFILE_FIELD_ATTRS.items()}

_READONLY_COLUMNS = {"id", "created_at", "updated_at"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _column_names(model) -> set:
    return set(model.__table__.columns.keys())


class UniversityStore:
    """Universities: CRUD plus status counts"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, university_id: int) -> Optional[University]:
        return self.db.query(University).filter(University.id == university_id).first()

    def list(self) -> List[University]:
        # Ranked universities first, by ranking, then by name
        return self.db.query(University).order_by(
            University.ranking.is_(None),
            University.ranking,
            University.name,
        ).all()

    def list_by_status(self, status: str) -> List[University]:
        return self.db.query(University).filter(University.status == status).order_by(
            University.ranking.is_(None),
            University.ranking,
            University.name,
        ).all()

    def create(self, fields: Dict[str, Any]) -> University:
        """Insert a university; the requirements mapping is derived from the flat fields"""
        columns = _column_names(University) - _READONLY_COLUMNS
        data = {key: value for key, value in fields.items() if key in columns}
        data["requirements"] = derive_requirements(data)

        university = University(**data)
        self.db.add(university)
        self.db.commit()
        self.db.refresh(university)
        return university

    def update(self, university_id: int, partial: Dict[str, Any]) -> Optional[University]:
        """Partial update. Flat requirement fields are written as-is and do not resync requirements."""
        university = self.get(university_id)
        if not university:
            return None

        columns = _column_names(University) - _READONLY_COLUMNS
        for field, value in partial.items():
            if field in columns:
                setattr(university, field, value)

        self.db.commit()
        self.db.refresh(university)
        return university

    def delete(self, university_id: int) -> bool:
        """Delete a university. Referencing tasks are kept with their university_id nulled."""
        university = self.get(university_id)
        if not university:
            return False

        self.db.query(Task).filter(Task.university_id == university_id).update(
            {Task.university_id: None}, synchronize_session="fetch"
        )
        self.db.delete(university)
        self.db.commit()
        return True

    def stats(self) -> Dict[str, int]:
        rows = self.db.query(University.status, func.count(University.id)).group_by(University.status).all()
        counts = {status.value: 0 for status in UniversityStatus}
        for status, count in rows:
            counts[status] = count
        counts["total"] = sum(count for _, count in rows)
        return counts


class ProfileStore:
    """The single process-wide profile row"""

    def __init__(self, db: Session):
        self.db = db

    def get(self) -> Optional[Profile]:
        return self.db.query(Profile).order_by(Profile.id).first()

    def create_default(self) -> Profile:
        profile = Profile(
            transcript_status=TranscriptStatus.MISSING.value,
            recommendations_count=0,
            statement_status=StatementStatus.NOT_STARTED.value,
        )
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def get_or_create(self) -> Profile:
        return self.get() or self.create_default()

    def update(self, partial: Dict[str, Any]) -> Profile:
        """Partial update keyed by column name or camelCase field name; creates the row first if needed"""
        profile = self.get_or_create()

        columns = _column_names(Profile) - _READONLY_COLUMNS
        changed = False
        for field, value in partial.items():
            attr = PROFILE_FIELD_ATTRS.get(field, field)
            if attr in columns:
                setattr(profile, attr, value)
                changed = True

        if not changed:
            return profile

        self.db.commit()
        self.db.refresh(profile)
        return profile


class TaskStore:
    """Tasks, with completed_at kept in step with status toggles"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, task_id: int) -> Optional[Task]:
        return self.db.query(Task).filter(Task.id == task_id).first()

    def list(self, university_id: Optional[int] = None) -> List[Task]:
        """Open tasks first, undated tasks after dated ones, then by due date"""
        query = self.db.query(Task)
        if university_id is not None:
            query = query.filter(Task.university_id == university_id)
        return query.order_by(
            case((Task.status == TaskStatus.DONE.value, 1), else_=0),
            Task.due_date.is_(None),
            Task.due_date,
            Task.id,
        ).all()

    def list_by_university(self, university_id: int) -> List[Task]:
        return self.db.query(Task).filter(Task.university_id == university_id).order_by(
            Task.due_date, Task.id
        ).all()

    def list_upcoming(self, days: int, today: Optional[date] = None) -> List[Task]:
        """Not-done tasks due between today and today + days"""
        today = today or date.today()
        return self.db.query(Task).filter(
            Task.status != TaskStatus.DONE.value,
            Task.due_date.isnot(None),
            Task.due_date >= today,
            Task.due_date <= today + timedelta(days=days),
        ).order_by(Task.due_date, Task.id).all()

    def create(self, fields: Dict[str, Any]) -> Task:
        columns = _column_names(Task) - {"id", "created_at"}
        data = {key: value for key, value in fields.items() if key in columns}
        if data.get("status") == TaskStatus.DONE.value and not data.get("completed_at"):
            data["completed_at"] = _utcnow()

        task = Task(**data)
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def update(self, task_id: int, partial: Dict[str, Any]) -> Optional[Task]:
        task = self.get(task_id)
        if not task:
            return None

        columns = _column_names(Task) - {"id", "created_at"}
        new_status = partial.get("status")
        if new_status is not None and "completed_at" not in partial:
            if new_status == TaskStatus.DONE.value and task.status != TaskStatus.DONE.value:
                task.completed_at = _utcnow()
            elif new_status != TaskStatus.DONE.value:
                task.completed_at = None

        for field, value in partial.items():
            if field in columns:
                setattr(task, field, value)

        self.db.commit()
        self.db.refresh(task)
        return task

    def delete(self, task_id: int) -> bool:
        task = self.get(task_id)
        if not task:
            return False
        self.db.delete(task)
        self.db.commit()
        return True
