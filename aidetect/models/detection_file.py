# aidetect/models/detection_file.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Numeric,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from aidetect.db.base import Base

class DetectionFile(Base):
    """One submitted piece of content (file or online text) and its verdict."""

    __tablename__ = "detection_files"
    __table_args__ = (
        UniqueConstraint(
            "cm_id", "user_id", "identifier", name="uq_detection_files_cm_user_identifier"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    cm_id = Column(Integer, ForeignKey("course_modules.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_email = Column(String(255), nullable=True)

    # sha1 content hash for files, md5 of trimmed text for online text
    identifier = Column(String(64), nullable=False)
    filename = Column(String(255), nullable=True)
    content = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    # Detection result, empty until the service answered
    predicted_class = Column(String(20), nullable=True)
    class_probability = Column(Numeric(5, 4), nullable=True)
    confidence_category = Column(String(50), nullable=True)
    scan_id = Column(String(100), nullable=True)
    scan_url = Column(String(1024), nullable=True)

    # reserved for retries, never incremented
    attempt = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def is_analyzed(self) -> bool:
        return bool(self.predicted_class)
