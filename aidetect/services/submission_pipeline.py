# aidetect/services/submission_pipeline.py
"""
Submission pipeline

Turns host submission events into detection records:
event -> content identifier -> metadata -> detection call -> stored record.

Each piece of content ends ANALYZED or FAILED, or CACHED when it was
already stored. A failed call still stores the record, just without a
verdict; it is not submitted again for the same content.

Modules in draft mode (draft_submit == DRAFT_SUBMIT_FINAL) ignore plain
uploads and analyze the content once the learner submits it for grading.
"""
from __future__ import annotations

import hashlib
import html
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable

import bleach
from sqlalchemy.orm import Session

from aidetect.core.errors import DetectionError
from aidetect.models.detection_file import DetectionFile
from aidetect.models.module_config import DRAFT_SUBMIT_FINAL
from aidetect.models.stored_file import StoredFile
from aidetect.models.user import User
from aidetect.schemas.detection import DetectionResponse
from aidetect.schemas.event import (
    EventKind,
    EventResult,
    ItemOutcome,
    SubmissionEvent,
    SubmissionState,
)
from aidetect.services import host_directory, module_settings_service, record_store
from aidetect.services.detection_client import DetectionClient

logger = logging.getLogger(__name__)

TEAM_COMPONENTS = ("assignsubmission_file", "assignsubmission_onlinetext")
ONLINETEXT_COMPONENT = "assignsubmission_onlinetext"

# previous group submissions inspected before giving up
GROUP_LOOKAHEAD = 10


def text_identifier(content: str) -> str:
    return hashlib.md5(content.strip().encode("utf-8")).hexdigest()


def strip_tags(content: str) -> str:
    return html.unescape(bleach.clean(content, tags=set(), strip=True))


class SubmissionIntegration(ABC):
    """What a host platform needs from a detection integration."""

    @abstractmethod
    def handle_event(self, event: SubmissionEvent) -> EventResult:
        ...

    @abstractmethod
    def handle_file(self, cm_id: int, user_id: int, file: StoredFile) -> ItemOutcome:
        ...

    @abstractmethod
    def handle_text(
        self, cm_id: int, user_id: int, content: str, overflow_enabled: bool = False
    ) -> ItemOutcome:
        ...

    @abstractmethod
    def is_detection_used(self, cm_id: int) -> bool:
        ...


class SubmissionPipeline(SubmissionIntegration):
    def __init__(self, db: Session, client: DetectionClient | None = None) -> None:
        self.db = db
        self.client = client or DetectionClient()

    def is_detection_used(self, cm_id: int) -> bool:
        return module_settings_service.is_detection_used(self.db, cm_id)

    def waits_for_final_submission(self, cm_id: int, kind: EventKind) -> bool:
        if kind != EventKind.UPLOADED:
            return False
        config = record_store.get_module_config(self.db, cm_id)
        return config is not None and config.draft_submit == DRAFT_SUBMIT_FINAL

    def handle_event(self, event: SubmissionEvent) -> EventResult:
        """
        Entry point for upload and online text events.

        Files are processed before text. Never raises for detection
        problems: they are logged and reported as failed items so the
        learner's submission itself is unaffected.
        """
        cm_id = event.context_id
        if not module_settings_service.plugin_enabled():
            return EventResult(cm_id=cm_id, skipped=True, reason="detection disabled")
        if not self.is_detection_used(cm_id):
            return EventResult(
                cm_id=cm_id, skipped=True, reason="detection not used for module"
            )
        if self.waits_for_final_submission(cm_id, event.kind):
            logger.debug(f"Upload for cm {cm_id} deferred until final submission")
            return EventResult(
                cm_id=cm_id, skipped=True, reason="waiting for final submission"
            )

        user_id = self._guarded_resolve(cm_id, event.user_id, event.component)
        items: list[ItemOutcome] = []

        for pathname_hash in event.file_hashes:
            stored = host_directory.get_file_by_hash(self.db, pathname_hash)
            if stored is None:
                logger.warning(f"No stored file for hash {pathname_hash} (cm {cm_id})")
                continue
            if stored.filename == ".":
                # directory entry
                continue
            items.append(self._guarded(self.handle_file, cm_id, user_id, stored))

        if event.content:
            overflow_enabled = event.component == ONLINETEXT_COMPONENT
            items.append(
                self._guarded(
                    self.handle_text, cm_id, user_id, event.content, overflow_enabled
                )
            )

        return EventResult(cm_id=cm_id, items=items)

    def handle_file(self, cm_id: int, user_id: int, file: StoredFile) -> ItemOutcome:
        identifier = file.content_hash
        existing = record_store.find_record(
            self.db, cm_id=cm_id, user_id=user_id, identifier=identifier
        )
        if existing is not None:
            logger.debug(f"File {identifier} already stored for cm {cm_id}, user {user_id}")
            return ItemOutcome(
                user_id=user_id,
                identifier=identifier,
                filename=existing.filename,
                state=SubmissionState.CACHED,
            )

        user = host_directory.get_user(self.db, user_id)
        params = self._build_params(cm_id, user)
        record = self._new_record(cm_id, user, identifier)
        record.filename = file.filename

        state, error = self._submit(
            record, lambda: self.client.submit_file(file, params)
        )
        record_store.upsert_record(self.db, record)
        return ItemOutcome(
            user_id=user_id,
            identifier=identifier,
            filename=file.filename,
            state=state,
            error=error,
        )

    def handle_text(
        self, cm_id: int, user_id: int, content: str, overflow_enabled: bool = False
    ) -> ItemOutcome:
        identifier = text_identifier(content)
        existing = record_store.find_record(
            self.db, cm_id=cm_id, user_id=user_id, identifier=identifier
        )
        if existing is not None:
            logger.debug(f"Text {identifier} already stored for cm {cm_id}, user {user_id}")
            return ItemOutcome(
                user_id=user_id,
                identifier=identifier,
                filename=existing.filename,
                state=SubmissionState.CACHED,
            )

        user = host_directory.get_user(self.db, user_id)
        params = self._build_params(cm_id, user)
        record = self._new_record(cm_id, user, identifier)
        record.filename = f"content_{identifier}"
        record.content = (
            f'<div class="no-overflow">{content}</div>' if overflow_enabled else content
        )

        raw_text = strip_tags(content)
        state, error = self._submit(
            record, lambda: self.client.submit_text(raw_text, params)
        )
        record_store.upsert_record(self.db, record)
        return ItemOutcome(
            user_id=user_id,
            identifier=identifier,
            filename=record.filename,
            state=state,
            error=error,
        )

    def resolve_submitter_id(self, cm_id: int, user_id: int, component: str) -> int:
        """
        For team assignments attribute the submission to the group member
        who submitted first, so one team submission is analyzed once.

        Only users in exactly one group take part. At most GROUP_LOOKAHEAD
        earlier records are inspected; otherwise the submitter's own id is used.
        """
        if component not in TEAM_COMPONENTS:
            return user_id

        module = host_directory.find_course_module(self.db, cm_id)
        if module is None or not module.team_submission:
            return user_id

        group_ids = host_directory.get_user_group_ids(
            self.db, course_id=module.course_id, user_id=user_id
        )
        if len(group_ids) != 1:
            return user_id

        member_ids = host_directory.get_group_member_ids(self.db, group_ids[0])
        previous = record_store.list_records_for_users(
            self.db, cm_id=cm_id, user_ids=member_ids
        )
        for checked, record in enumerate(previous):
            if checked >= GROUP_LOOKAHEAD:
                logger.debug(
                    f"Group lookahead exhausted for cm {cm_id}, keeping user {user_id}"
                )
                break
            if record.user_id == user_id:
                break
            candidate_groups = host_directory.get_user_group_ids(
                self.db, course_id=module.course_id, user_id=record.user_id
            )
            if len(candidate_groups) == 1:
                return record.user_id

        return user_id

    def _guarded_resolve(self, cm_id: int, user_id: int, component: str) -> int:
        try:
            return self.resolve_submitter_id(cm_id, user_id, component)
        except DetectionError as e:
            logger.warning(f"Group resolution failed for cm {cm_id}, user {user_id}: {e}")
            return user_id

    def _guarded(self, handler: Callable[..., ItemOutcome], cm_id: int, user_id: int, *args) -> ItemOutcome:
        try:
            return handler(cm_id, user_id, *args)
        except DetectionError as e:
            logger.warning(f"Detection skipped for cm {cm_id}, user {user_id}: {e}")
            return ItemOutcome(user_id=user_id, state=SubmissionState.FAILED, error=str(e))

    def _build_params(self, cm_id: int, user: User) -> dict:
        module = host_directory.get_course_module(self.db, cm_id)
        config = record_store.get_module_config(self.db, cm_id)
        return {
            "assignmentName": module.name,
            "assignmentId": config.external_assignment_id if config else None,
            "userId": user.id,
            "userName": user.username,
            "userEmail": user.email,
        }

    @staticmethod
    def _new_record(cm_id: int, user: User, identifier: str) -> DetectionFile:
        return DetectionFile(
            cm_id=cm_id,
            user_id=user.id,
            user_email=user.email,
            identifier=identifier,
            attempt=0,
            submitted_at=datetime.now(timezone.utc),
        )

    @staticmethod
    def _submit(
        record: DetectionFile,
        call: Callable[[], DetectionResponse],
    ) -> tuple[SubmissionState, str | None]:
        logger.info(
            f"Submitting {record.identifier} for cm {record.cm_id}, user {record.user_id}"
        )
        try:
            response = call()
        except DetectionError as e:
            logger.warning(f"Detection failed for {record.identifier}: {e}")
            return SubmissionState.FAILED, str(e)

        record_store.apply_detection_result(record, response)
        logger.info(
            f"Analyzed {record.identifier}: class={record.predicted_class}, "
            f"probability={record.class_probability}"
        )
        return SubmissionState.ANALYZED, None
