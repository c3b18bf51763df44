"""
Task Generator
Derives suggested tasks from a university's requirements and the current profile.

Two entry points:
- generate_for_university: creates a fresh batch for one university, no dedupe
- generate_for_profile_update: reacts to changed profile fields and skips any
  university that already has a suggestion waiting for triage

The check-then-create in generate_for_profile_update is not locked. Two
concurrent profile updates can both pass the check and duplicate a batch.
"""
import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.config import settings
from app.models import University, Profile, Task, TaskStatus, Priority, TranscriptStatus, StatementStatus
from app.schemas.requirements import Requirements, parse_requirements
from app.schemas.common import fmt_number
from app.services.errors import NotFound, GenerationFailure
from app.services.record_store import UniversityStore, ProfileStore, TaskStore, PROFILE_ATTR_FIELDS

logger = logging.getLogger(__name__)

# Profile field -> requirement kinds whose rules read that field
PROFILE_FIELD_KINDS: Dict[str, Tuple[str, ...]] = {
    "satActual": ("sat",),
    "ieltsScore": ("ielts", "toefl"),
    "toeflScore": ("ielts", "toefl"),
    "transcriptStatus": ("transcripts",),
    "recommendationsCount": ("recommendations",),
    "statementStatus": ("essays",),
}


def compute_due_date(university: University, lead_days: int) -> Optional[date]:
    """Earliest of the early/regular deadlines minus lead_days, or None"""
    deadlines = [d for d in (university.deadline_early, university.deadline_regular) if d]
    if not deadlines:
        return None
    return min(deadlines) - timedelta(days=lead_days)


def relevant_kinds(changed_fields: Iterable[str]) -> set:
    """Requirement kinds touched by a set of changed profile fields"""
    kinds = set()
    for field in changed_fields:
        field = PROFILE_ATTR_FIELDS.get(field, field)
        kinds.update(PROFILE_FIELD_KINDS.get(field, ()))
    return kinds


def plan_tasks(university: University, requirements: Requirements, profile: Profile) -> List[Dict]:
    """
    Evaluate the fixed rules and return the task fields that should be created.
    Rules are independent; several can fire for one university.
    """
    name = university.name
    planned = []

    sat = requirements.sat
    if sat and sat.required:
        if not profile.sat_actual:
            details = ""
            if sat.avg_score:
                details += f" (avg: {fmt_number(sat.avg_score)})"
            if sat.min_score:
                details += f" (min: {fmt_number(sat.min_score)})"
            planned.append({
                "title": f"Take SAT for {name}",
                "description": f"{name} requires SAT{details}. Schedule and take the test.",
                "priority": Priority.HIGH.value,
                "profile_item_type": "satActual",
            })
        elif sat.min_score and profile.sat_actual < sat.min_score:
            planned.append({
                "title": f"Retake SAT for {name}",
                "description": (
                    f"Your score ({profile.sat_actual}) is below the minimum required "
                    f"({fmt_number(sat.min_score)}) for {name}. Consider retaking."
                ),
                "priority": Priority.HIGH.value,
                "profile_item_type": "satActual",
            })

    ielts_required = requirements.is_required("ielts")
    toefl_required = requirements.is_required("toefl")
    if (ielts_required or toefl_required) and not (profile.ielts_score or profile.toefl_score):
        test = "IELTS" if ielts_required else "TOEFL"
        descriptor = requirements.ielts if ielts_required else requirements.toefl
        minimum = f" (min: {fmt_number(descriptor.min_score)})" if descriptor.min_score else ""
        planned.append({
            "title": f"Take English Proficiency Test for {name}",
            "description": f"{name} requires {test}{minimum}.",
            "priority": Priority.HIGH.value,
            "profile_item_type": "ieltsScore" if ielts_required else "toeflScore",
        })

    if requirements.is_required("transcripts") and profile.transcript_status == TranscriptStatus.MISSING.value:
        planned.append({
            "title": f"Request transcripts for {name}",
            "description": f"{name} requires transcripts. Contact your school to request official transcripts.",
            "priority": Priority.HIGH.value,
            "profile_item_type": "transcriptStatus",
        })

    if requirements.is_required("recommendations"):
        required_count = requirements.recommendations.count or 1
        current = profile.recommendations_count or 0
        if current < required_count:
            planned.append({
                "title": f"Request recommendation letters for {name}",
                "description": (
                    f"{name} requires {required_count} recommendation letter(s). "
                    f"You currently have {current}. Contact teachers or mentors."
                ),
                "priority": Priority.HIGH.value,
                "profile_item_type": "recommendationsCount",
            })

    if requirements.is_required("essays") and profile.statement_status == StatementStatus.NOT_STARTED.value:
        planned.append({
            "title": f"Write essays for {name}",
            "description": (
                f"{name} requires {requirements.essays.count or 1} essay(s). "
                "Start drafting your personal statement and supplemental essays."
            ),
            "priority": Priority.MEDIUM.value,
            "profile_item_type": "statementStatus",
        })

    if requirements.is_required("interview"):
        planned.append({
            "title": f"Prepare for interview at {name}",
            "description": f"{name} requires an interview. Research common questions and practice your responses.",
            "priority": Priority.MEDIUM.value,
            "profile_item_type": None,
        })

    return planned


class TaskGenerator:
    """Keeps suggested tasks in line with what is still outstanding per university"""

    def __init__(self, db: Session, lead_days: Optional[int] = None):
        self.db = db
        self.universities = UniversityStore(db)
        self.profiles = ProfileStore(db)
        self.tasks = TaskStore(db)
        self.lead_days = settings.TASK_LEAD_DAYS if lead_days is None else lead_days

    def generate_for_university(self, university_id: int) -> List[Task]:
        """Create a fresh batch of suggested tasks. Calling it twice duplicates the batch."""
        university = self.universities.get(university_id)
        if not university:
            raise NotFound("University", university_id)

        profile = self.profiles.get_or_create()
        requirements = parse_requirements(university.requirements)
        due_date = compute_due_date(university, self.lead_days)

        created = []
        for fields in plan_tasks(university, requirements, profile):
            task = self.tasks.create({
                **fields,
                "university_id": university.id,
                "due_date": due_date,
                "status": TaskStatus.SUGGESTED.value,
            })
            created.append(task)

        logger.info(f"Generated {len(created)} suggested task(s) for university {university.id} ({university.name})")
        return created

    def generate_for_profile_update(self, changed_fields: Iterable[str]) -> List[Task]:
        """
        Regenerate for universities whose required dimensions read one of the
        changed fields. A university with any outstanding suggestion is skipped.
        """
        profile = self.profiles.get()
        if profile is None:
            return []

        kinds = relevant_kinds(changed_fields)
        if not kinds:
            return []

        created = []
        for university in self.universities.list():
            requirements = parse_requirements(university.requirements)
            if not any(requirements.is_required(kind) for kind in kinds):
                continue

            existing = self.tasks.list_by_university(university.id)
            if any(task.status == TaskStatus.SUGGESTED.value for task in existing):
                logger.info(f"Skipping university {university.id}: suggestions already outstanding")
                continue

            created.extend(self.generate_for_university(university.id))

        return created

    def generate_after_university_create(self, university_id: int) -> List[Task]:
        """Side-effect generation for a new university; failures are logged, never raised"""
        return self._run_side_effect("university create", self.generate_for_university, university_id)

    def generate_after_profile_update(self, changed_fields: Iterable[str]) -> List[Task]:
        """Side-effect generation for a profile save; failures are logged, never raised"""
        return self._run_side_effect("profile update", self.generate_for_profile_update, list(changed_fields))

    def _run_side_effect(self, trigger: str, func, *args) -> List[Task]:
        try:
            return func(*args)
        except Exception as e:
            self.db.rollback()
            failure = GenerationFailure(trigger, e)
            logger.exception(str(failure))
            return []
