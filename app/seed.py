"""
Demo universities inserted into an empty store
"""
import logging
from datetime import date
from sqlalchemy.orm import Session
from app.models import University
from app.services.record_store import UniversityStore

logger = logging.getLogger(__name__)

SEED_UNIVERSITIES = [
    {
        "name": "University of London",
        "country": "UK",
        "program": "Undergraduate",
        "major": "Computer Science",
        "deadline_regular": date(2026, 3, 30),
        "status": "accepted",
        "priority": "high",
        "notes": "Online via Coursera. Starts April 2026. Must complete registration by March 30.",
    },
    {
        "name": "Stanford University",
        "country": "USA",
        "program": "Undergraduate",
        "major": "Computer Science",
        "deadline_early": date(2026, 11, 1),
        "deadline_regular": date(2027, 1, 5),
        "sat_avg": 1500,
        "ielts_avg": 7.5,
        "toefl_min": 100,
        "application_portal": "Common App",
        "essays_required": 2,
        "rec_letters_required": 2,
        "status": "planning",
        "priority": "high",
        "notes": "Freshman application only (Fall 2027).",
    },
    {
        "name": "Oxford University",
        "country": "UK",
        "program": "Undergraduate",
        "major": "Computer Science",
        "ielts_min": 7.0,
        "application_portal": "UCAS",
        "essays_required": 1,
        "interview_required": True,
        "status": "researching",
        "priority": "high",
        "notes": "Check deadlines for 2027 intake. Requires admissions test (MAT).",
    },
    {
        "name": "KAUST",
        "country": "Saudi Arabia",
        "program": "Undergraduate",
        "major": "Computer Science",
        "sat_avg": 1400,
        "ielts_min": 6.5,
        "status": "researching",
        "priority": "medium",
        "notes": "Research deadlines for 2026/2027 intake.",
    },
]


def seed_universities(db: Session) -> int:
    """Insert the demo universities if the table is empty. Returns the number inserted."""
    if db.query(University).count() > 0:
        return 0

    store = UniversityStore(db)
    for fields in SEED_UNIVERSITIES:
        store.create(fields)
    logger.info(f"Seeded {len(SEED_UNIVERSITIES)} universities")
    return len(SEED_UNIVERSITIES)
