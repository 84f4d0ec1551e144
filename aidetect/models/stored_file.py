# aidetect/models/stored_file.py
from sqlalchemy import Column, Integer, String, LargeBinary, DateTime, ForeignKey
from sqlalchemy.sql import func
from aidetect.db.base import Base

class StoredFile(Base):
    __tablename__ = "stored_files"

    id = Column(Integer, primary_key=True, index=True)

    # host file storage addresses files by a hash of their path
    pathname_hash = Column(String(40), unique=True, nullable=False, index=True)
    # sha1 of the bytes
    content_hash = Column(String(40), nullable=False, index=True)

    filename = Column(String(255), nullable=False)
    filepath = Column(String(255), nullable=False, default="/")
    mimetype = Column(String(100), nullable=True)
    content = Column(LargeBinary, nullable=False, default=b"")

    cm_id = Column(Integer, ForeignKey("course_modules.id"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
