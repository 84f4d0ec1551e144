# aidetect/services/account_notice.py
import logging

from sqlalchemy.orm import Session

from aidetect.core.context import RequestContext
from aidetect.core.errors import DetectionError
from aidetect.core.permissions import PermissionService, RolePermissionService
from aidetect.services import host_directory
from aidetect.services.detection_client import DetectionClient
from aidetect.services.module_settings_service import plugin_enabled

logger = logging.getLogger(__name__)

NO_ACCOUNT_NOTICE = (
    "It looks like you have not yet created an account on the AI detection service. "
    "An account is required to see in-depth results in the detection dashboard. "
    "An invitation was sent to {email} during assignment creation."
)


class AccountNotice:
    """Tells graders once per request that they still need a detection account."""

    def __init__(
        self,
        db: Session,
        client: DetectionClient | None = None,
        permissions: PermissionService | None = None,
    ) -> None:
        self.db = db
        self.client = client or DetectionClient()
        self.permissions = permissions or RolePermissionService(db)

    def handle_grading_page_view(self, context: RequestContext) -> None:
        if context.notification_displayed:
            return
        if not plugin_enabled():
            return
        if context.course_id is None or not self.permissions.can_grade(
            context.course_id, context.viewer_id
        ):
            return

        viewer = (
            host_directory.find_user(self.db, context.viewer_id)
            if context.viewer_id is not None
            else None
        )
        if viewer is None or not viewer.email:
            logger.debug(f"No email found for user with ID: {context.viewer_id}")
            return

        try:
            has_account = self.client.has_account(viewer.email)
        except DetectionError as e:
            logger.warning(f"Account check for user {viewer.id} failed: {e}")
            return

        if not has_account:
            context.add_notice(NO_ACCOUNT_NOTICE.format(email=viewer.email))
            context.notification_displayed = True
            logger.debug(f"User {viewer.id} has no detection account yet")
