"""
Readiness Scorer - profile completeness across six fixed dimensions
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from app.models import Profile, TranscriptStatus, StatementStatus
from app.schemas.common import fmt_number
from app.services.record_store import ProfileStore


def evaluate_profile(profile: Optional[Profile]) -> Dict[str, Any]:
    """
    Score a profile. A missing profile scores as all-missing.

    Returns {score, total, completed, items} where items keep the fixed order
    SAT, English test, Transcripts, Recommendations, Statement, Fee.
    """
    if profile is None:
        profile = Profile(
            transcript_status=TranscriptStatus.MISSING.value,
            recommendations_count=0,
            statement_status=StatementStatus.NOT_STARTED.value,
        )

    sat = profile.sat_actual
    ielts = profile.ielts_score
    toefl = profile.toefl_score
    transcripts = profile.transcript_status or TranscriptStatus.MISSING.value
    recommendations = profile.recommendations_count or 0
    statement = profile.statement_status or StatementStatus.NOT_STARTED.value
    fee_budget = profile.fee_budget

    if ielts:
        english_status = f"IELTS: {fmt_number(ielts)}"
    elif toefl:
        english_status = f"TOEFL: {fmt_number(toefl)}"
    else:
        english_status = "Missing"

    items: List[Dict[str, Any]] = [
        {
            "name": "SAT Score",
            "complete": bool(sat),
            "status": f"Score: {sat}" if sat else "Missing",
        },
        {
            "name": "IELTS/TOEFL",
            "complete": bool(ielts or toefl),
            "status": english_status,
        },
        {
            "name": "Transcripts",
            "complete": transcripts in (TranscriptStatus.RECEIVED.value, TranscriptStatus.SUBMITTED.value),
            "status": transcripts,
        },
        {
            "name": "Recommendations",
            "complete": recommendations > 0,
            "status": f"{recommendations} received",
        },
        {
            "name": "Personal Statement",
            "complete": statement == StatementStatus.COMPLETE.value,
            "status": statement,
        },
        {
            "name": "Application Fee",
            "complete": bool(fee_budget),
            "status": f"Budget: ${fmt_number(fee_budget)}" if fee_budget else "No budget set",
        },
    ]

    completed = sum(1 for item in items if item["complete"])
    total = len(items)
    return {
        "score": round(100 * completed / total),
        "total": total,
        "completed": completed,
        "items": items,
    }


class ReadinessScorer:
    """Reads the current profile from the store and scores it. Never creates the profile."""

    def __init__(self, db: Session):
        self.profiles = ProfileStore(db)

    def score(self) -> Dict[str, Any]:
        return evaluate_profile(self.profiles.get())
