from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Boolean, ForeignKey, Float, TypeDecorator
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.schemas.requirements import Requirements, parse_requirements
import enum

class UniversityStatus(str, enum.Enum):
    RESEARCHING = "researching"
    PLANNING = "planning"
    APPLIED = "applied"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WAITLISTED = "waitlisted"

class Priority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class TaskStatus(str, enum.Enum):
    TODO = "todo"
    SUGGESTED = "suggested"  # Generator output awaiting triage
    DONE = "done"

class TranscriptStatus(str, enum.Enum):
    MISSING = "missing"
    REQUESTED = "requested"
    RECEIVED = "received"
    SUBMITTED = "submitted"

class StatementStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    DRAFTING = "drafting"
    REVIEWING = "reviewing"
    COMPLETE = "complete"

# Custom TypeDecorator storing the requirements mapping as JSON text
class RequirementsType(TypeDecorator):
    """Writes a Requirements model as JSON, reads it back through the tolerant parser"""
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, Requirements):
            return value.to_json()
        # Dicts and raw strings are normalised through the parser first
        return parse_requirements(value).to_json()

    def process_result_value(self, value, dialect):
        # Unparseable payloads come back as an empty mapping, never as an error
        return parse_requirements(value)

class University(Base):
    __tablename__ = "universities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    country = Column(String, nullable=False)
    program = Column(String, nullable=False)
    major = Column(String, nullable=False)
    ranking = Column(Integer, nullable=True)

    deadline_early = Column(Date, nullable=True)
    deadline_regular = Column(Date, nullable=True)
    deadline_transfer = Column(Date, nullable=True)

    # Flat requirement fields as entered by the user
    sat_min = Column(Integer, nullable=True)
    sat_avg = Column(Integer, nullable=True)
    ielts_min = Column(Float, nullable=True)
    ielts_avg = Column(Float, nullable=True)
    toefl_min = Column(Integer, nullable=True)
    gpa_min = Column(Float, nullable=True)
    essays_required = Column(Integer, nullable=True)
    rec_letters_required = Column(Integer, nullable=True)
    interview_required = Column(Boolean, nullable=True)
    transcripts_required = Column(Boolean, nullable=True)
    application_fee = Column(Float, nullable=True)
    fee_waiver_available = Column(Boolean, nullable=True)

    application_portal = Column(String, nullable=True)
    application_url = Column(String, nullable=True)

    status = Column(String, nullable=False, default=UniversityStatus.RESEARCHING.value, index=True)
    priority = Column(String, nullable=False, default=Priority.MEDIUM.value, index=True)
    notes = Column(Text, nullable=True)

    application_submitted = Column(Date, nullable=True)
    decision_received = Column(Date, nullable=True)
    decision_result = Column(String, nullable=True)

    # Derived once from the flat fields at creation time
    requirements = Column(RequirementsType, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    tasks = relationship("Task", back_populates="university")

class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    # Weak reference: deleting the university nulls this column
    university_id = Column(Integer, ForeignKey("universities.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.TODO.value, index=True)
    priority = Column(String, nullable=False, default=Priority.MEDIUM.value)
    profile_item_type = Column(String, nullable=True, index=True)  # Profile field this task is about, e.g. satActual
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    university = relationship("University", back_populates="tasks")

class Profile(Base):
    __tablename__ = "profile"

    id = Column(Integer, primary_key=True, index=True)
    sat_target = Column(Integer, nullable=True)
    sat_actual = Column(Integer, nullable=True)
    ielts_score = Column(Float, nullable=True)
    toefl_score = Column(Float, nullable=True)
    transcript_status = Column(String, nullable=False, default=TranscriptStatus.MISSING.value)
    recommendations_count = Column(Integer, nullable=False, default=0)
    statement_status = Column(String, nullable=False, default=StatementStatus.NOT_STARTED.value)
    fee_budget = Column(Float, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
