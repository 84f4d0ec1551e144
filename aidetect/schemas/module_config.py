# aidetect/schemas/module_config.py
from pydantic import BaseModel, Field
from datetime import datetime

from aidetect.models.module_config import DRAFT_SUBMIT_FINAL, DRAFT_SUBMIT_IMMEDIATE


class ModuleConfigUpdate(BaseModel):
    editor_id: int
    use_detection: bool
    show_student_results: bool = False
    # 0: analyze when uploaded, 1: analyze when sent for marking
    draft_submit: int = Field(
        default=DRAFT_SUBMIT_IMMEDIATE, ge=DRAFT_SUBMIT_IMMEDIATE, le=DRAFT_SUBMIT_FINAL
    )


class ModuleConfigPublic(BaseModel):
    cm_id: int
    use_detection: bool
    show_student_results: bool
    draft_submit: int
    external_assignment_id: str | None = None
    creator_email: str | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class DisclosurePublic(BaseModel):
    cm_id: int
    disclosure: str | None = None
