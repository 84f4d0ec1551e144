# aidetect/models/course.py
from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    ForeignKey,
    UniqueConstraint,
)
from aidetect.db.base import Base


class CourseModule(Base):
    """An activity instance inside a course (assignment, forum, workshop)."""

    __tablename__ = "course_modules"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, nullable=False, index=True)

    # assign / forum / workshop
    module_type = Column(String(50), nullable=False, default="assign")
    name = Column(String(255), nullable=False)

    team_submission = Column(Boolean, nullable=False, default=False)


class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, nullable=False, index=True)
    course_id = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
