# aidetect/schemas/event.py
from enum import Enum

from pydantic import BaseModel


class SubmissionState(str, Enum):
    ANALYZED = "analyzed"
    FAILED = "failed"
    # identical content already stored, no call made
    CACHED = "cached"


class EventKind(str, Enum):
    # file or text saved, possibly still a draft
    UPLOADED = "uploaded"
    # learner pressed "submit for grading"
    SUBMITTED = "submitted"


class SubmissionEvent(BaseModel):
    """Upload / online text event delivered by the host platform."""
    context_id: int  # course module id
    user_id: int
    component: str  # e.g. assignsubmission_file, assignsubmission_onlinetext, mod_forum
    kind: EventKind = EventKind.UPLOADED
    content: str | None = None
    file_hashes: list[str] = []


class ItemOutcome(BaseModel):
    user_id: int
    identifier: str | None = None
    filename: str | None = None
    state: SubmissionState
    error: str | None = None


class EventResult(BaseModel):
    cm_id: int
    skipped: bool = False
    reason: str | None = None
    items: list[ItemOutcome] = []


class GradingViewEvent(BaseModel):
    viewer_id: int
    course_id: int


class NoticeList(BaseModel):
    notices: list[str] = []
