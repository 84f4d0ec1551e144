# aidetect/schemas/result.py
from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal


class DisplayFragment(BaseModel):
    """Inline snippet rendered next to a submission."""
    html: str = ""
    status: str = "empty"  # empty / pending / analyzed
    label: str | None = None
    percentage: int | None = None
    scan_url: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.html


class DetectionRecordPublic(BaseModel):
    id: int
    cm_id: int
    user_id: int
    identifier: str
    filename: str | None = None
    submitted_at: datetime | None = None

    predicted_class: str | None = None
    class_probability: Decimal | None = None
    confidence_category: str | None = None
    scan_id: str | None = None
    scan_url: str | None = None

    model_config = {"from_attributes": True}
