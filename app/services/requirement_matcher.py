"""
Requirement Matcher
Classifies one requirement dimension as complete / partial / missing / not-required.
Results carry no presentation; callers pick colours and wording.
"""
import enum
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Union

from app.models import TranscriptStatus, StatementStatus
from app.schemas.requirements import Requirements, ScoreRequirement

Number = Union[int, float]


class MatchStatus(str, enum.Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    MISSING = "missing"
    NOT_REQUIRED = "not-required"


@dataclass
class MatchResult:
    status: MatchStatus
    label: str
    # user value / required value; None when not applicable
    ratio: Optional[float] = None
    # False when compared against an admitted average rather than a minimum
    gating: bool = True

    @property
    def percentage(self) -> Optional[int]:
        if self.ratio is None:
            return None
        return round(self.ratio * 100)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["percentage"] = self.percentage
        return data


def match(
    requirement_value: Optional[Number],
    user_value: Optional[Number],
    required_count: Optional[int] = None,
) -> MatchResult:
    """
    Compare a user value against a requirement.

    Score-based dimensions pass the threshold as requirement_value. Count-based
    dimensions (recommendations, essays) pass required_count and the user's
    current count as user_value.
    """
    if not requirement_value and not required_count:
        return MatchResult(MatchStatus.NOT_REQUIRED, "Not Required")

    if required_count:
        user_count = user_value or 0
        if user_count >= required_count:
            return MatchResult(MatchStatus.COMPLETE, "Complete", ratio=1.0)
        if user_count > 0:
            return MatchResult(MatchStatus.PARTIAL, "Partial", ratio=user_count / required_count)
        return MatchResult(MatchStatus.MISSING, "Missing", ratio=0.0)

    if not user_value:
        return MatchResult(MatchStatus.MISSING, "Missing", ratio=0.0)
    if user_value >= requirement_value:
        return MatchResult(MatchStatus.COMPLETE, "Meets Requirement", ratio=1.0)
    return MatchResult(MatchStatus.PARTIAL, "Below Target", ratio=user_value / requirement_value)


def match_score(requirement: Optional[ScoreRequirement], user_value: Optional[Number]) -> MatchResult:
    """
    Score match against a descriptor. Average-only requirements are informational:
    gating is False and the ratio is uncapped, so scores above the average exceed 1.
    """
    if requirement is None or not requirement.required:
        return match(None, user_value)
    result = match(requirement.threshold, user_value)
    if not requirement.min_score and requirement.avg_score:
        result.gating = False
        if user_value:
            result.ratio = user_value / requirement.avg_score
    return result


def match_requirements(requirements: Requirements, profile) -> Dict[str, MatchResult]:
    """Run the matcher for every dimension a university can require, against the profile"""
    def count_of(kind: str) -> Optional[int]:
        descriptor = requirements.get(kind)
        if descriptor is None or not descriptor.required:
            return None
        return getattr(descriptor, "count", None) or 1

    transcripts_in = profile.transcript_status in (
        TranscriptStatus.RECEIVED.value, TranscriptStatus.SUBMITTED.value
    )
    statement_done = profile.statement_status == StatementStatus.COMPLETE.value

    return {
        "sat": match_score(requirements.sat, profile.sat_actual),
        "ielts": match_score(requirements.ielts, profile.ielts_score),
        "toefl": match_score(requirements.toefl, profile.toefl_score),
        "transcripts": match(None, 1 if transcripts_in else 0, count_of("transcripts")),
        "recommendations": match(None, profile.recommendations_count, count_of("recommendations")),
        "essays": match(None, 1 if statement_done else 0, count_of("essays")),
        # The profile does not track interviews, so a required interview stays missing
        "interview": match(None, 0, count_of("interview")),
    }
