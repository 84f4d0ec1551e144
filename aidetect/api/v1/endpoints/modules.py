# aidetect/api/v1/endpoints/modules.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from aidetect.api.deps import get_detection_client, get_permissions
from aidetect.core.errors import NotConfigured
from aidetect.core.permissions import PermissionService
from aidetect.db.session import get_db
from aidetect.schemas.module_config import (
    DisclosurePublic,
    ModuleConfigPublic,
    ModuleConfigUpdate,
)
from aidetect.services import host_directory, module_settings_service, record_store
from aidetect.services.detection_client import DetectionClient

router = APIRouter(prefix="/modules", tags=["modules"])


@router.get("/{cm_id}/config", response_model=ModuleConfigPublic)
def get_module_config(cm_id: int, db: Session = Depends(get_db)):
    config = record_store.get_module_config(db, cm_id)
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Detection is not configured for this module",
        )
    return config


@router.put("/{cm_id}/config", response_model=ModuleConfigPublic)
def update_module_config(
    cm_id: int,
    obj_in: ModuleConfigUpdate,
    db: Session = Depends(get_db),
    client: DetectionClient = Depends(get_detection_client),
    permissions: PermissionService = Depends(get_permissions),
):
    """
    Settings form of a course module was saved.
    Enabling detection the first time creates the assignment on the
    detection service.
    """
    module = host_directory.find_course_module(db, cm_id)
    if module is None:
        raise HTTPException(status_code=404, detail="Course module not found")

    editor = host_directory.find_user(db, obj_in.editor_id)
    if editor is None:
        raise HTTPException(status_code=404, detail="Editor not found")

    if not permissions.can_enable(module.course_id, editor.id):
        raise HTTPException(status_code=403, detail="Not allowed to change detection settings")

    try:
        config = module_settings_service.save_module_settings(
            db, cm_id=cm_id, obj_in=obj_in, editor=editor, client=client
        )
    except NotConfigured as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if config is None:
        if obj_in.use_detection:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Could not create the assignment on the detection service",
            )
        raise HTTPException(status_code=404, detail="Detection is not configured for this module")
    return config


@router.get("/{cm_id}/disclosure", response_model=DisclosurePublic)
def get_disclosure(cm_id: int, db: Session = Depends(get_db)):
    return DisclosurePublic(
        cm_id=cm_id,
        disclosure=module_settings_service.get_disclosure(db, cm_id),
    )
