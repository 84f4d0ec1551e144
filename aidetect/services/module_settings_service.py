# aidetect/services/module_settings_service.py
import logging
from typing import Optional

from sqlalchemy.orm import Session

from aidetect.core.config import settings
from aidetect.core.errors import DetectionError, NotConfigured
from aidetect.models.module_config import ModuleConfig
from aidetect.models.user import User
from aidetect.schemas.module_config import ModuleConfigUpdate
from aidetect.services import host_directory, record_store
from aidetect.services.detection_client import DetectionClient

logger = logging.getLogger(__name__)


def plugin_enabled() -> bool:
    """Site-wide switch."""
    return bool(settings.DETECTION_ENABLED)


def is_plugin_configured(module_name: str) -> bool:
    """
    API key present and detection allowed for this module type,
    module_name like 'mod_assign'.
    """
    if not settings.DETECTION_API_KEY:
        return False
    return module_name in settings.DETECTION_ENABLED_MODULES


def is_detection_used(db: Session, cm_id: int) -> bool:
    """Detection switched on for the module, and the module still exists."""
    config = record_store.get_module_config(db, cm_id)
    if config is None or not config.use_detection:
        return False
    return host_directory.find_course_module(db, cm_id) is not None


def get_disclosure(db: Session, cm_id: int) -> Optional[str]:
    """Text shown to students on upload pages of modules under detection."""
    if not plugin_enabled():
        return None
    config = record_store.get_module_config(db, cm_id)
    if config is None or not config.use_detection:
        return None
    return settings.DETECTION_STUDENT_DISCLOSURE


def save_module_settings(
    db: Session,
    *,
    cm_id: int,
    obj_in: ModuleConfigUpdate,
    editor: User,
    client: DetectionClient | None = None,
) -> Optional[ModuleConfig]:
    """
    Persist the detection settings of a course module.

    The first time detection is enabled an assignment is created on the
    detection service on behalf of the editor; when that fails nothing is
    stored and None is returned. Later saves only update the flags.
    """
    module = host_directory.get_course_module(db, cm_id)
    if not plugin_enabled() or not is_plugin_configured(f"mod_{module.module_type}"):
        raise NotConfigured(f"detection is not available for mod_{module.module_type}")

    saved = record_store.get_module_config(db, cm_id)
    if saved is not None:
        return record_store.upsert_module_config(
            db,
            cm_id=cm_id,
            use_detection=obj_in.use_detection,
            show_student_results=obj_in.show_student_results,
            draft_submit=obj_in.draft_submit,
        )

    if not obj_in.use_detection:
        # nothing to remember until detection gets switched on
        return None

    client = client or DetectionClient()
    try:
        assignment_id = client.create_assignment(editor.username, editor.email, editor.id)
    except DetectionError as e:
        logger.error(f"Detection assignment creation failed for cm {cm_id}: {e}")
        return None

    return record_store.upsert_module_config(
        db,
        cm_id=cm_id,
        use_detection=True,
        show_student_results=obj_in.show_student_results,
        draft_submit=obj_in.draft_submit,
        external_assignment_id=assignment_id,
        creator_email=editor.email,
    )
