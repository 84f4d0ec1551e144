# aidetect/services/host_directory.py
"""
Read access to the host platform data the pipeline needs:
users, course modules, group memberships and stored files.
"""
import hashlib
from typing import List, Optional

from sqlalchemy.orm import Session

from aidetect.core.errors import NotFound
from aidetect.models.course import CourseModule, GroupMember
from aidetect.models.stored_file import StoredFile
from aidetect.models.user import User


def find_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user(db: Session, user_id: int) -> User:
    user = find_user(db, user_id)
    if user is None:
        raise NotFound(f"user {user_id} not found")
    return user


def find_course_module(db: Session, cm_id: int) -> Optional[CourseModule]:
    return db.get(CourseModule, cm_id)


def get_course_module(db: Session, cm_id: int) -> CourseModule:
    module = find_course_module(db, cm_id)
    if module is None:
        raise NotFound(f"course module {cm_id} not found")
    return module


def get_user_group_ids(db: Session, *, course_id: int, user_id: int) -> List[int]:
    """Groups the user belongs to inside one course."""
    rows = (
        db.query(GroupMember.group_id)
        .filter(GroupMember.course_id == course_id, GroupMember.user_id == user_id)
        .order_by(GroupMember.group_id.asc())
        .all()
    )
    return [row.group_id for row in rows]


def get_group_member_ids(db: Session, group_id: int) -> List[int]:
    rows = (
        db.query(GroupMember.user_id)
        .filter(GroupMember.group_id == group_id)
        .order_by(GroupMember.user_id.asc())
        .all()
    )
    return [row.user_id for row in rows]


def get_file_by_hash(db: Session, pathname_hash: str) -> Optional[StoredFile]:
    return (
        db.query(StoredFile)
        .filter(StoredFile.pathname_hash == pathname_hash)
        .first()
    )


def store_file(
    db: Session,
    *,
    filename: str,
    content: bytes,
    mimetype: str | None = None,
    filepath: str = "/",
    cm_id: int | None = None,
    user_id: int | None = None,
) -> StoredFile:
    """
    Put a file into host storage.
    pathname_hash covers module, user and path so the same bytes may be
    stored by several users.
    """
    pathname = f"/{cm_id}/{user_id}{filepath}{filename}"
    db_obj = StoredFile(
        pathname_hash=hashlib.sha1(pathname.encode("utf-8")).hexdigest(),
        content_hash=hashlib.sha1(content).hexdigest(),
        filename=filename,
        filepath=filepath,
        mimetype=mimetype,
        content=content,
        cm_id=cm_id,
        user_id=user_id,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj
