# aidetect/core/permissions.py
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.orm import Session

from aidetect.services import host_directory

# roles that may see detection reports and grade
REPORT_ROLES = {"teacher", "editingteacher", "manager"}
# roles that may switch detection on for a module
ENABLE_ROLES = {"editingteacher", "manager"}


class PermissionService(ABC):
    """Capability checks answered by the host platform."""

    @abstractmethod
    def can_view_report(self, cm_id: int, viewer_id: Optional[int]) -> bool:
        ...

    @abstractmethod
    def can_grade(self, course_id: int, viewer_id: Optional[int]) -> bool:
        ...

    @abstractmethod
    def can_enable(self, course_id: int, viewer_id: Optional[int]) -> bool:
        ...


class RolePermissionService(PermissionService):
    """Answers capability checks from the role stored on the host user."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _role(self, viewer_id: Optional[int]) -> Optional[str]:
        if viewer_id is None:
            return None
        user = host_directory.find_user(self.db, viewer_id)
        return user.role if user else None

    def can_view_report(self, cm_id: int, viewer_id: Optional[int]) -> bool:
        return self._role(viewer_id) in REPORT_ROLES

    def can_grade(self, course_id: int, viewer_id: Optional[int]) -> bool:
        return self._role(viewer_id) in REPORT_ROLES

    def can_enable(self, course_id: int, viewer_id: Optional[int]) -> bool:
        return self._role(viewer_id) in ENABLE_ROLES
