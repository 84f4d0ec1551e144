# aidetect/api/v1/endpoints/events.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aidetect.api.deps import get_detection_client, get_permissions
from aidetect.core.context import RequestContext
from aidetect.core.permissions import PermissionService
from aidetect.db.session import get_db
from aidetect.schemas.event import (
    EventResult,
    GradingViewEvent,
    NoticeList,
    SubmissionEvent,
)
from aidetect.services.account_notice import AccountNotice
from aidetect.services.detection_client import DetectionClient
from aidetect.services.submission_pipeline import SubmissionPipeline

router = APIRouter(prefix="/events", tags=["events"])


@router.post("/submission", response_model=EventResult)
def receive_submission_event(
    event: SubmissionEvent,
    db: Session = Depends(get_db),
    client: DetectionClient = Depends(get_detection_client),
):
    """
    Host platform reports an upload, online text or final submission.
    Always answers 200: detection problems show up as failed items only.
    """
    pipeline = SubmissionPipeline(db, client)
    return pipeline.handle_event(event)


@router.post("/grading-viewed", response_model=NoticeList)
def grading_page_viewed(
    payload: GradingViewEvent,
    db: Session = Depends(get_db),
    client: DetectionClient = Depends(get_detection_client),
    permissions: PermissionService = Depends(get_permissions),
):
    context = RequestContext(viewer_id=payload.viewer_id, course_id=payload.course_id)
    AccountNotice(db, client, permissions).handle_grading_page_view(context)
    return NoticeList(notices=context.notices)
