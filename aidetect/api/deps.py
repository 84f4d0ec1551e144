# aidetect/api/deps.py
from fastapi import Depends
from sqlalchemy.orm import Session

from aidetect.core.permissions import PermissionService, RolePermissionService
from aidetect.db.session import get_db
from aidetect.services.detection_client import DetectionClient


def get_detection_client() -> DetectionClient:
    return DetectionClient()


def get_permissions(db: Session = Depends(get_db)) -> PermissionService:
    return RolePermissionService(db)
