"""
Submission pipeline: event handling, idempotence, group attribution and
failure isolation.
"""

import hashlib

from aidetect.core.errors import RemoteError
from aidetect.models.detection_file import DetectionFile
from aidetect.models.module_config import DRAFT_SUBMIT_FINAL, DRAFT_SUBMIT_IMMEDIATE
from aidetect.schemas.event import EventKind, SubmissionEvent, SubmissionState
from aidetect.services.submission_pipeline import (
    GROUP_LOOKAHEAD,
    SubmissionIntegration,
    SubmissionPipeline,
    strip_tags,
    text_identifier,
)


def _file_event(module, user, *files, component="assignsubmission_file"):
    return SubmissionEvent(
        context_id=module.id,
        user_id=user.id,
        component=component,
        file_hashes=[f.pathname_hash for f in files],
    )


def _text_event(module, user, content, component="assignsubmission_onlinetext"):
    return SubmissionEvent(
        context_id=module.id, user_id=user.id, component=component, content=content
    )


def _seed_record(db, module, user, identifier):
    record = DetectionFile(cm_id=module.id, user_id=user.id, identifier=identifier, attempt=0)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


class TestIdentifiers:
    def test_text_identifier_ignores_surrounding_whitespace(self):
        assert text_identifier("  My answer \n") == text_identifier("My answer")
        assert text_identifier("My answer") == hashlib.md5(b"My answer").hexdigest()

    def test_strip_tags(self):
        assert strip_tags("<p>Tom &amp; <b>Jerry</b></p>") == "Tom & Jerry"

    def test_pipeline_is_a_submission_integration(self, db_session, fake_client):
        assert isinstance(SubmissionPipeline(db_session, fake_client), SubmissionIntegration)


class TestFileSubmissions:
    def test_file_upload_is_analyzed_and_stored(
        self, db_session, fake_client, course_module, test_student, enable_detection, store_file
    ):
        enable_detection(course_module)
        stored = store_file(course_module, test_student)

        result = SubmissionPipeline(db_session, fake_client).handle_event(
            _file_event(course_module, test_student, stored)
        )

        assert result.skipped is False
        assert [item.state for item in result.items] == [SubmissionState.ANALYZED]

        kind, filename, params = fake_client.calls[0]
        assert (kind, filename) == ("file", "essay.txt")
        assert params == {
            "assignmentName": "Essay 1",
            "assignmentId": "ext-42",
            "userId": test_student.id,
            "userName": "student",
            "userEmail": "student@school.test",
        }

        record = db_session.query(DetectionFile).one()
        assert record.identifier == hashlib.sha1(b"my essay").hexdigest()
        assert record.user_email == "student@school.test"
        assert record.predicted_class == "ai"
        assert record.scan_url == "https://detector.test/scans/scan-1"
        assert record.attempt == 0
        assert record.submitted_at is not None

    def test_identical_content_is_submitted_once(
        self, db_session, fake_client, course_module, test_student, enable_detection, store_file
    ):
        enable_detection(course_module)
        first = store_file(course_module, test_student, filename="draft1.txt", content=b"same")
        second = store_file(course_module, test_student, filename="draft2.txt", content=b"same")
        pipeline = SubmissionPipeline(db_session, fake_client)

        pipeline.handle_event(_file_event(course_module, test_student, first))
        result = pipeline.handle_event(_file_event(course_module, test_student, second))

        assert len(fake_client.calls) == 1
        assert db_session.query(DetectionFile).count() == 1
        assert result.items[0].state == SubmissionState.CACHED

    def test_missing_files_and_directories_are_skipped(
        self, db_session, fake_client, course_module, test_student, enable_detection, store_file
    ):
        enable_detection(course_module)
        directory = store_file(course_module, test_student, filename=".", content=b"")
        event = _file_event(course_module, test_student, directory)
        event.file_hashes.append("0" * 40)

        result = SubmissionPipeline(db_session, fake_client).handle_event(event)

        assert result.items == []
        assert fake_client.calls == []

    def test_timeout_keeps_upload_without_verdict(
        self, db_session, failing_client, course_module, test_student, enable_detection, store_file
    ):
        enable_detection(course_module)
        stored = store_file(course_module, test_student)

        result = SubmissionPipeline(db_session, failing_client).handle_event(
            _file_event(course_module, test_student, stored)
        )

        assert result.items[0].state == SubmissionState.FAILED
        assert "timed out" in result.items[0].error
        record = db_session.query(DetectionFile).one()
        assert record.predicted_class is None
        assert record.class_probability is None

    def test_remote_error_keeps_upload_without_verdict(
        self, db_session, make_client, course_module, test_student, enable_detection, store_file
    ):
        enable_detection(course_module)
        stored = store_file(course_module, test_student)
        client = make_client(error=RemoteError("invalid file type"))

        result = SubmissionPipeline(db_session, client).handle_event(
            _file_event(course_module, test_student, stored)
        )

        assert result.items[0].state == SubmissionState.FAILED
        assert db_session.query(DetectionFile).one().is_analyzed is False

    def test_unknown_user_is_reported_not_raised(
        self, db_session, fake_client, course_module, test_student, enable_detection, store_file
    ):
        enable_detection(course_module)
        stored = store_file(course_module, test_student)
        event = _file_event(course_module, test_student, stored)
        event.user_id = 9999

        result = SubmissionPipeline(db_session, fake_client).handle_event(event)

        assert result.items[0].state == SubmissionState.FAILED
        assert fake_client.calls == []


class TestTextSubmissions:
    def test_online_text_is_stripped_and_wrapped(
        self, db_session, fake_client, course_module, test_student, enable_detection
    ):
        enable_detection(course_module)
        content = "<p>The water evaporated.</p>"

        result = SubmissionPipeline(db_session, fake_client).handle_event(
            _text_event(course_module, test_student, content)
        )

        assert result.items[0].state == SubmissionState.ANALYZED
        assert fake_client.calls[0][:2] == ("text", "The water evaporated.")
        record = db_session.query(DetectionFile).one()
        assert record.identifier == text_identifier(content)
        assert record.filename == f"content_{text_identifier(content)}"
        assert record.content == f'<div class="no-overflow">{content}</div>'

    def test_forum_text_is_not_wrapped(
        self, db_session, fake_client, course_module, test_student, enable_detection
    ):
        enable_detection(course_module)

        SubmissionPipeline(db_session, fake_client).handle_event(
            _text_event(course_module, test_student, "forum post", component="mod_forum")
        )

        assert db_session.query(DetectionFile).one().content == "forum post"

    def test_resubmitted_text_is_cached(
        self, db_session, fake_client, course_module, test_student, enable_detection
    ):
        enable_detection(course_module)
        pipeline = SubmissionPipeline(db_session, fake_client)

        pipeline.handle_event(_text_event(course_module, test_student, "My answer"))
        result = pipeline.handle_event(_text_event(course_module, test_student, "  My answer  "))

        assert result.items[0].state == SubmissionState.CACHED
        assert len(fake_client.calls) == 1

    def test_files_are_processed_before_text(
        self, db_session, fake_client, course_module, test_student, enable_detection, store_file
    ):
        enable_detection(course_module)
        stored = store_file(course_module, test_student)
        event = _file_event(course_module, test_student, stored)
        event.content = "Some text"

        result = SubmissionPipeline(db_session, fake_client).handle_event(event)

        assert [call[0] for call in fake_client.calls] == ["file", "text"]
        assert len(result.items) == 2


class TestGating:
    def test_disabled_plugin_skips(
        self, db_session, fake_client, course_module, test_student, enable_detection,
        detection_settings, monkeypatch,
    ):
        enable_detection(course_module)
        monkeypatch.setattr(detection_settings, "DETECTION_ENABLED", False)

        result = SubmissionPipeline(db_session, fake_client).handle_event(
            _text_event(course_module, test_student, "text")
        )

        assert result.skipped is True
        assert fake_client.calls == []

    def test_module_without_detection_skips(
        self, db_session, fake_client, course_module, test_student, enable_detection
    ):
        enable_detection(course_module, use_detection=False)

        result = SubmissionPipeline(db_session, fake_client).handle_event(
            _text_event(course_module, test_student, "text")
        )

        assert result.skipped is True
        assert db_session.query(DetectionFile).count() == 0

    def test_unconfigured_module_skips(self, db_session, fake_client, course_module, test_student):
        result = SubmissionPipeline(db_session, fake_client).handle_event(
            _text_event(course_module, test_student, "text")
        )
        assert result.skipped is True


class TestDraftSubmit:
    def test_final_mode_ignores_uploads(
        self, db_session, fake_client, course_module, test_student, enable_detection, store_file
    ):
        enable_detection(course_module, draft_submit=DRAFT_SUBMIT_FINAL)
        stored = store_file(course_module, test_student)

        result = SubmissionPipeline(db_session, fake_client).handle_event(
            _file_event(course_module, test_student, stored)
        )

        assert result.skipped is True
        assert fake_client.calls == []
        assert db_session.query(DetectionFile).count() == 0

    def test_final_mode_analyzes_on_submit(
        self, db_session, fake_client, course_module, test_student, enable_detection, store_file
    ):
        enable_detection(course_module, draft_submit=DRAFT_SUBMIT_FINAL)
        stored = store_file(course_module, test_student)
        pipeline = SubmissionPipeline(db_session, fake_client)

        pipeline.handle_event(_file_event(course_module, test_student, stored))
        event = _file_event(course_module, test_student, stored)
        event.kind = EventKind.SUBMITTED
        result = pipeline.handle_event(event)

        assert result.skipped is False
        assert [item.state for item in result.items] == [SubmissionState.ANALYZED]
        assert len(fake_client.calls) == 1

    def test_immediate_mode_analyzes_upload_and_caches_submit(
        self, db_session, fake_client, course_module, test_student, enable_detection
    ):
        enable_detection(course_module, draft_submit=DRAFT_SUBMIT_IMMEDIATE)
        pipeline = SubmissionPipeline(db_session, fake_client)

        uploaded = pipeline.handle_event(_text_event(course_module, test_student, "<p>answer</p>"))
        event = _text_event(course_module, test_student, "<p>answer</p>")
        event.kind = EventKind.SUBMITTED
        submitted = pipeline.handle_event(event)

        assert uploaded.items[0].state == SubmissionState.ANALYZED
        assert submitted.items[0].state == SubmissionState.CACHED
        assert len(fake_client.calls) == 1


class TestGroupAttribution:
    def test_earliest_single_group_member_wins(
        self, db_session, fake_client, team_module, make_user, add_to_group,
        enable_detection, store_file,
    ):
        enable_detection(team_module)
        alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
        for user in (alice, bob, carol):
            add_to_group(1, user)
        # alice is also in a second group, so her record does not count
        add_to_group(2, alice)

        _seed_record(db_session, team_module, alice, "older")
        _seed_record(db_session, team_module, bob, "old")

        stored = store_file(team_module, carol)
        pipeline = SubmissionPipeline(db_session, fake_client)

        assert (
            pipeline.resolve_submitter_id(team_module.id, carol.id, "assignsubmission_file")
            == bob.id
        )

        result = pipeline.handle_event(_file_event(team_module, carol, stored))
        assert result.items[0].user_id == bob.id
        assert fake_client.calls[0][2]["userId"] == bob.id

    def test_own_earlier_record_keeps_submitter(
        self, db_session, fake_client, team_module, make_user, add_to_group, enable_detection
    ):
        enable_detection(team_module)
        alice, bob = make_user("alice"), make_user("bob")
        add_to_group(1, alice)
        add_to_group(1, bob)
        _seed_record(db_session, team_module, bob, "mine")
        _seed_record(db_session, team_module, alice, "hers")

        pipeline = SubmissionPipeline(db_session, fake_client)
        assert (
            pipeline.resolve_submitter_id(team_module.id, bob.id, "assignsubmission_onlinetext")
            == bob.id
        )

    def test_lookahead_exhausted_falls_back_to_submitter(
        self, db_session, fake_client, team_module, make_user, add_to_group, enable_detection
    ):
        enable_detection(team_module)
        roamer = make_user("roamer")
        add_to_group(1, roamer)
        add_to_group(2, roamer)
        for i in range(GROUP_LOOKAHEAD):
            _seed_record(db_session, team_module, roamer, f"roam-{i}")

        late = make_user("late")
        add_to_group(1, late)
        _seed_record(db_session, team_module, late, "late-1")

        carol = make_user("carol")
        add_to_group(1, carol)

        pipeline = SubmissionPipeline(db_session, fake_client)
        assert (
            pipeline.resolve_submitter_id(team_module.id, carol.id, "assignsubmission_file")
            == carol.id
        )

    def test_multi_group_submitter_is_not_remapped(
        self, db_session, fake_client, team_module, make_user, add_to_group, enable_detection
    ):
        enable_detection(team_module)
        alice, bob = make_user("alice"), make_user("bob")
        add_to_group(1, alice)
        add_to_group(1, bob)
        add_to_group(2, bob)
        _seed_record(db_session, team_module, alice, "a")

        pipeline = SubmissionPipeline(db_session, fake_client)
        assert (
            pipeline.resolve_submitter_id(team_module.id, bob.id, "assignsubmission_file")
            == bob.id
        )

    def test_non_team_module_is_not_remapped(
        self, db_session, fake_client, course_module, make_user, add_to_group, enable_detection
    ):
        enable_detection(course_module)
        alice, bob = make_user("alice"), make_user("bob")
        add_to_group(1, alice)
        add_to_group(1, bob)
        _seed_record(db_session, course_module, alice, "a")

        pipeline = SubmissionPipeline(db_session, fake_client)
        assert (
            pipeline.resolve_submitter_id(course_module.id, bob.id, "assignsubmission_file")
            == bob.id
        )

    def test_forum_component_is_not_remapped(
        self, db_session, fake_client, team_module, make_user, add_to_group, enable_detection
    ):
        enable_detection(team_module)
        alice, bob = make_user("alice"), make_user("bob")
        add_to_group(1, alice)
        add_to_group(1, bob)
        _seed_record(db_session, team_module, alice, "a")

        pipeline = SubmissionPipeline(db_session, fake_client)
        assert pipeline.resolve_submitter_id(team_module.id, bob.id, "mod_forum") == bob.id
