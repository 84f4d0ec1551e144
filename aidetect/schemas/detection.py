# aidetect/schemas/detection.py
from pydantic import BaseModel, Field


class DetectionResponse(BaseModel):
    """Parsed answer of the detection service for one submission (not persisted verbatim)."""
    success: bool = False
    predicted_class: str | None = None
    class_probability: float | None = Field(default=None, ge=0.0, le=1.0)
    confidence_category: str | None = None
    scan_id: str | None = None
    scan_url: str | None = None
    error: str | None = None

    # the service sends scanId as a number or a string
    model_config = {"coerce_numbers_to_str": True}

    @property
    def has_classification(self) -> bool:
        return self.success and bool(self.predicted_class)
