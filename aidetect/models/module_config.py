# aidetect/models/module_config.py
from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from aidetect.db.base import Base

DRAFT_SUBMIT_IMMEDIATE = 0
DRAFT_SUBMIT_FINAL = 1


class ModuleConfig(Base):
    __tablename__ = "detection_module_configs"

    id = Column(Integer, primary_key=True, index=True)
    cm_id = Column(
        Integer, ForeignKey("course_modules.id"), unique=True, nullable=False, index=True
    )

    use_detection = Column(Boolean, nullable=False, default=False)
    show_student_results = Column(Boolean, nullable=False, default=False)
    draft_submit = Column(Integer, nullable=False, default=DRAFT_SUBMIT_IMMEDIATE)

    # assignment created on the detection service when detection was first enabled
    external_assignment_id = Column(String(100), nullable=True)
    creator_email = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
