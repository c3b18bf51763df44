"""
Structured admission requirements of a university.

Stored as JSON with the camelCase keys the frontend reads
(``minScore``, ``avgScore``, ``applicationFee`` ...). A kind is present only
when the matching flat field on the university was filled in at creation time.
"""
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from app.services.errors import MalformedRequirements

logger = logging.getLogger(__name__)

REQUIREMENT_KINDS = (
    "sat",
    "ielts",
    "toefl",
    "transcripts",
    "recommendations",
    "essays",
    "interview",
    "applicationFee",
)

Number = Union[int, float]


class ScoreRequirement(BaseModel):
    """Test-score requirement (SAT, IELTS, TOEFL)"""
    required: bool = True
    min_score: Optional[Number] = Field(None, alias="minScore")
    avg_score: Optional[Number] = Field(None, alias="avgScore")

    class Config:
        populate_by_name = True

    @property
    def threshold(self) -> Optional[Number]:
        """Minimum if one is published, otherwise the admitted average"""
        return self.min_score or self.avg_score


class CountRequirement(BaseModel):
    """Requirement measured in documents (recommendations, essays, transcripts)"""
    required: bool = True
    count: Optional[int] = None


class InterviewRequirement(BaseModel):
    required: bool = True


class ApplicationFeeRequirement(BaseModel):
    required: bool = True
    amount: Optional[float] = None
    waiver_available: Optional[bool] = Field(None, alias="waiverAvailable")

    class Config:
        populate_by_name = True


class Requirements(BaseModel):
    """Mapping of requirement kind to descriptor; absent kinds are None"""
    sat: Optional[ScoreRequirement] = None
    ielts: Optional[ScoreRequirement] = None
    toefl: Optional[ScoreRequirement] = None
    transcripts: Optional[CountRequirement] = None
    recommendations: Optional[CountRequirement] = None
    essays: Optional[CountRequirement] = None
    interview: Optional[InterviewRequirement] = None
    application_fee: Optional[ApplicationFeeRequirement] = Field(None, alias="applicationFee")

    class Config:
        populate_by_name = True

    def get(self, kind: str):
        if kind == "applicationFee":
            return self.application_fee
        if kind not in REQUIREMENT_KINDS:
            raise KeyError(kind)
        return getattr(self, kind)

    def is_required(self, kind: str) -> bool:
        descriptor = self.get(kind)
        return bool(descriptor and descriptor.required)

    def kinds(self) -> List[str]:
        """Kinds present in the mapping, in canonical order"""
        return [kind for kind in REQUIREMENT_KINDS if self.get(kind) is not None]

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def parse_requirements_strict(raw: Any) -> Requirements:
    """Parse a stored requirements payload, raising MalformedRequirements on bad input"""
    if raw is None or raw == "":
        return Requirements()
    if isinstance(raw, Requirements):
        return raw
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise MalformedRequirements(f"Requirements are not valid JSON: {e}") from e
    if not isinstance(raw, Mapping):
        raise MalformedRequirements(f"Requirements must be an object, got {type(raw).__name__}")
    try:
        return Requirements.model_validate(dict(raw))
    except ValidationError as e:
        raise MalformedRequirements(str(e)) from e


def parse_requirements(raw: Any) -> Requirements:
    """Tolerant read path: anything unparseable counts as "no requirements known" """
    try:
        return parse_requirements_strict(raw)
    except MalformedRequirements as e:
        logger.warning(f"Ignoring malformed requirements payload: {e}")
        return Requirements()


def derive_requirements(fields: Mapping[str, Any]) -> Requirements:
    """
    Build the requirements mapping from the flat university fields.

    This runs once when the university is created. Later edits to the flat
    fields do not touch the stored mapping.
    """
    requirements = Requirements()

    sat_min, sat_avg = fields.get("sat_min"), fields.get("sat_avg")
    if sat_min or sat_avg:
        requirements.sat = ScoreRequirement(min_score=sat_min or None, avg_score=sat_avg or None)

    ielts_min, ielts_avg = fields.get("ielts_min"), fields.get("ielts_avg")
    if ielts_min or ielts_avg:
        requirements.ielts = ScoreRequirement(min_score=ielts_min or ielts_avg)

    if fields.get("toefl_min"):
        requirements.toefl = ScoreRequirement(min_score=fields["toefl_min"])

    if fields.get("transcripts_required"):
        requirements.transcripts = CountRequirement()

    if fields.get("rec_letters_required"):
        requirements.recommendations = CountRequirement(count=fields["rec_letters_required"])

    if fields.get("essays_required"):
        requirements.essays = CountRequirement(count=fields["essays_required"])

    if fields.get("interview_required"):
        requirements.interview = InterviewRequirement()

    if fields.get("application_fee"):
        requirements.application_fee = ApplicationFeeRequirement(
            amount=fields["application_fee"],
            waiver_available=fields.get("fee_waiver_available"),
        )

    return requirements
