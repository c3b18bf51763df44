"""
Upcoming university deadlines with days remaining and an urgency bucket
"""
from datetime import date
from typing import List, Dict, Any, Optional, Iterable
from app.models import University

DEADLINE_TYPES = (
    ("deadline_early", "Early Decision"),
    ("deadline_regular", "Regular Decision"),
    ("deadline_transfer", "Transfer"),
)

URGENT_DAYS = 7
SOON_DAYS = 30


def urgency(days_left: int) -> str:
    if days_left < 0:
        return "passed"
    if days_left <= URGENT_DAYS:
        return "urgent"
    if days_left <= SOON_DAYS:
        return "soon"
    return "normal"


def upcoming_deadlines(
    universities: Iterable[University],
    today: Optional[date] = None,
    days: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Future deadlines (strictly after today), soonest first, optionally limited to a window of days"""
    today = today or date.today()
    deadlines = []
    for uni in universities:
        for attr, label in DEADLINE_TYPES:
            deadline = getattr(uni, attr)
            if not deadline or deadline <= today:
                continue
            days_left = (deadline - today).days
            if days is not None and days_left > days:
                continue
            deadlines.append({
                "university_id": uni.id,
                "university_name": uni.name,
                "type": label,
                "date": deadline,
                "days_left": days_left,
                "urgency": urgency(days_left),
            })
    deadlines.sort(key=lambda d: (d["date"], d["university_name"]))
    return deadlines
