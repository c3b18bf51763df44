"""
Error taxonomy for the tracker core
"""
from typing import Any, Optional


class TrackerError(Exception):
    """Base class for errors raised by the tracker services"""


class NotFound(TrackerError):
    """A referenced record does not exist"""

    def __init__(self, kind: str, record_id: Any):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class MalformedRequirements(TrackerError):
    """A stored requirements payload could not be parsed"""


class GenerationFailure(TrackerError):
    """Task generation failed while running as a side effect of another operation"""

    def __init__(self, trigger: str, cause: Optional[BaseException] = None):
        self.trigger = trigger
        self.cause = cause
        super().__init__(f"Task generation failed after {trigger}: {cause}")
