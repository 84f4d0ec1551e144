# aidetect/api/v1/endpoints/results.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aidetect.api.deps import get_detection_client, get_permissions
from aidetect.core.context import RequestContext
from aidetect.core.permissions import PermissionService
from aidetect.db.session import get_db
from aidetect.schemas.result import DetectionRecordPublic, DisplayFragment
from aidetect.services import host_directory, record_store
from aidetect.services.account_notice import AccountNotice
from aidetect.services.detection_client import DetectionClient
from aidetect.services.result_presenter import ResultPresenter

router = APIRouter(prefix="/results", tags=["results"])


@router.get("/{cm_id}/{user_id}/{identifier}", response_model=DisplayFragment)
def render_result(
    cm_id: int,
    user_id: int,
    identifier: str,
    viewer_id: int | None = None,
    db: Session = Depends(get_db),
    client: DetectionClient = Depends(get_detection_client),
    permissions: PermissionService = Depends(get_permissions),
):
    """Inline fragment shown beside a submission."""
    module = host_directory.find_course_module(db, cm_id)
    context = RequestContext(
        viewer_id=viewer_id,
        course_id=module.course_id if module else None,
    )
    presenter = ResultPresenter(db, AccountNotice(db, client, permissions))
    return presenter.render(
        cm_id,
        user_id,
        identifier,
        viewer_can_see_report=permissions.can_view_report(cm_id, viewer_id),
        context=context,
    )


@router.get("/{cm_id}/{user_id}/{identifier}/record", response_model=DetectionRecordPublic)
def get_result_record(
    cm_id: int,
    user_id: int,
    identifier: str,
    viewer_id: int | None = None,
    db: Session = Depends(get_db),
    permissions: PermissionService = Depends(get_permissions),
):
    if not permissions.can_view_report(cm_id, viewer_id):
        raise HTTPException(status_code=403, detail="Not allowed to view this report")

    record = record_store.find_record(
        db, cm_id=cm_id, user_id=user_id, identifier=identifier
    )
    if record is None:
        raise HTTPException(status_code=404, detail="Submission not found")
    return record
