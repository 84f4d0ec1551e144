# aidetect/services/record_store.py
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aidetect.models.detection_file import DetectionFile
from aidetect.models.module_config import ModuleConfig
from aidetect.schemas.detection import DetectionResponse

logger = logging.getLogger(__name__)


def find_record(
    db: Session,
    *,
    cm_id: int,
    user_id: int,
    identifier: str,
) -> Optional[DetectionFile]:
    return (
        db.query(DetectionFile)
        .filter(
            DetectionFile.cm_id == cm_id,
            DetectionFile.user_id == user_id,
            DetectionFile.identifier == identifier,
        )
        .first()
    )


def upsert_record(db: Session, record: DetectionFile) -> DetectionFile:
    """
    Insert the record unless one with the same (cm, user, identifier) exists.
    The stored record always wins; the returned object is the persisted one.
    """
    existing = find_record(
        db, cm_id=record.cm_id, user_id=record.user_id, identifier=record.identifier
    )
    if existing is not None:
        return existing

    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent request inserted the same key first
        db.rollback()
        existing = find_record(
            db, cm_id=record.cm_id, user_id=record.user_id, identifier=record.identifier
        )
        if existing is None:
            raise
        logger.info(
            f"Record for cm={record.cm_id} user={record.user_id} "
            f"identifier={record.identifier} was stored concurrently, keeping it"
        )
        return existing

    db.refresh(record)
    return record


def apply_detection_result(record: DetectionFile, response: DetectionResponse) -> bool:
    """
    Copy classification fields onto the record (no commit).
    Returns False and leaves the record untouched when it already holds a
    verdict or the response carries none.
    """
    if record.is_analyzed or not response.has_classification:
        return False

    record.predicted_class = response.predicted_class
    record.class_probability = (
        Decimal(str(response.class_probability))
        if response.class_probability is not None
        else None
    )
    record.confidence_category = response.confidence_category
    record.scan_id = response.scan_id
    record.scan_url = response.scan_url
    return True


def update_with_detection_result(
    db: Session,
    *,
    record: DetectionFile,
    response: DetectionResponse,
) -> DetectionFile:
    if not apply_detection_result(record, response):
        return record

    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def list_records_for_users(
    db: Session,
    *,
    cm_id: int,
    user_ids: Iterable[int],
) -> List[DetectionFile]:
    """All records of a module by any of the given users, oldest first."""
    user_ids = list(user_ids)
    if not user_ids:
        return []
    return (
        db.query(DetectionFile)
        .filter(DetectionFile.cm_id == cm_id, DetectionFile.user_id.in_(user_ids))
        .order_by(DetectionFile.id.asc())
        .all()
    )


def get_module_config(db: Session, cm_id: int) -> Optional[ModuleConfig]:
    return db.query(ModuleConfig).filter(ModuleConfig.cm_id == cm_id).first()


def upsert_module_config(db: Session, *, cm_id: int, **fields) -> ModuleConfig:
    db_obj = get_module_config(db, cm_id)
    if db_obj is None:
        db_obj = ModuleConfig(cm_id=cm_id)

    for field, value in fields.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj
