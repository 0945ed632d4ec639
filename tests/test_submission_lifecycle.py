# tests/test_submission_lifecycle.py

import copy

import pytest

from conftest import ALICE, BOB, CAROL, NOW, TEACHER, accepting, declining

from core.ownership import Role
from core.response import ErrorCode
from core.scheduling import TimerScheduler
from core.submission_lifecycle import SubmissionLifecycleManager, SubmissionPayload
from core.task_gateway import TaskGateway
from core.task_status import TaskStatus, can_submit, derive_status
from models.task_board import SnapshotPhase

SUBMIT_PATH = "/classrooms/c001/tasks/{}/submit"
CLASSROOM_PATH = "/classrooms/c001"


class RecordingConfirm:

    def __init__(self, answer):
        self.answer = answer
        self.prompts = []

    def __call__(self, title, text):
        self.prompts.append((title, text))
        return self.answer


@pytest.fixture
def student_gateway(fake_backend):
    return TaskGateway(fake_backend.client(), actor_email=ALICE)


@pytest.fixture
def make_manager(sample_board, student_gateway, manual_scheduler):
    def factory(confirm=accepting):
        return SubmissionLifecycleManager(
            sample_board,
            student_gateway,
            confirm=confirm,
            scheduler=manual_scheduler,
            resync_delay=1.0,
            clock=lambda: NOW,
        )

    return factory


def _with_submission(record, task_index, submission):
    record = copy.deepcopy(record)
    record["tasks"]["assignments"][task_index]["submissions"].append(submission)
    return {"classroom": record}


# === first submission ===


def test_first_submission_is_provisional_then_confirmed(
    make_manager, sample_board, fake_backend, manual_scheduler, classroom_record
):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={"submissionId": "sub200"})
    manager = make_manager()

    response = manager.submit("t001", CAROL, SubmissionPayload(text="My take"))

    assert response.success
    assert response.detail == "Assignment submitted successfully."
    assert not response.data["is_resubmission"]
    assert response.data["submission"].id == "sub200"
    assert sample_board.current.phase == SnapshotPhase.PROVISIONAL
    assert sample_board.find_task("t001").find_submission_for(CAROL).text == "My take"
    assert manager.is_in_flight("t001", CAROL)
    assert manual_scheduler.calls[0][0] == 1.0

    fake_backend.route(
        "GET",
        CLASSROOM_PATH,
        body=_with_submission(
            classroom_record,
            0,
            {"_id": "sub200", "studentEmail": CAROL, "text": "My take (server)"},
        ),
    )
    manual_scheduler.run_pending()

    assert sample_board.current.phase == SnapshotPhase.CONFIRMED
    assert sample_board.find_task("t001").find_submission_for(CAROL).text == "My take (server)"
    assert not manager.is_in_flight("t001", CAROL)


def test_submission_payload_sent_to_backend(make_manager, fake_backend):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={})

    make_manager().submit(
        "t001",
        BOB,
        {
            "fileUrl": "https://files.example.com/bob.pdf",
            "fileName": "bob.pdf",
            "fileType": "application/pdf",
            "fileSize": 1024,
        },
    )

    sent = fake_backend.sent_json()
    assert sent["studentEmail"] == BOB
    assert sent["studentName"] == "Bob"
    assert sent["isResubmission"] is False
    assert sent["submissionType"] == "file"
    assert sent["fileName"] == "bob.pdf"
    assert sent["submittedAt"] == "2025-03-01T12:00:00Z"
    assert fake_backend.requests[0].headers["user-email"] == ALICE


def test_local_id_kept_when_backend_returns_none(make_manager, sample_board, fake_backend):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={"success": True})

    response = make_manager().submit("t001", BOB, {"text": "hello"})

    assert response.data["submission"].id.startswith("local-")


# === resubmission ===


def test_explicit_resubmission_skips_confirmation(make_manager, sample_board, fake_backend):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={"submissionId": "sub201"})
    confirm = RecordingConfirm(False)

    response = make_manager(confirm).resubmit("t001", ALICE, {"text": "Revised"})

    assert response.success
    assert response.detail == "Assignment resubmitted successfully."
    assert confirm.prompts == []
    assert fake_backend.sent_json()["isResubmission"] is True


def test_resubmission_replaces_instead_of_duplicating(
    make_manager, sample_board, fake_backend, manual_scheduler
):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={})
    fake_backend.route("GET", CLASSROOM_PATH, status=503, body={})
    manager = make_manager()

    manager.resubmit("t001", ALICE, {"text": "v2"})
    manual_scheduler.run_pending()
    manager.resubmit("t001", ALICE, {"text": "v3"})

    task = sample_board.find_task("t001")
    assert task.submission_count == 1
    assert task.find_submission_for(ALICE).text == "v3"
    assert task.find_submission_for(ALICE).is_resubmission


def test_existing_submission_asks_for_confirmation(make_manager, fake_backend):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={})
    confirm = RecordingConfirm(True)

    response = make_manager(confirm).submit("t001", ALICE, {"text": "again"})

    assert response.success
    assert response.data["is_resubmission"]
    assert confirm.prompts == [
        (
            "Already Submitted!",
            "Do you want to resubmit and replace your previous submission?",
        )
    ]


def test_declined_confirmation_cancels(make_manager, sample_board, fake_backend):
    response = make_manager(declining).submit("t001", ALICE, {"text": "again"})

    assert response.cancelled
    assert not response.success
    assert not response.is_validation_error
    assert fake_backend.requests == []
    assert sample_board.current.version == 0


def test_resubmission_not_allowed(make_manager, sample_board, fake_backend):
    response = make_manager().resubmit("t003", BOB, {"text": "v2"})

    assert response.error == ErrorCode.RESUBMISSION_NOT_ALLOWED
    assert response.is_validation_error
    assert fake_backend.requests == []


# === rejected before the network ===


@pytest.mark.parametrize("payload", [{}, {"text": "   "}, SubmissionPayload()])
def test_empty_payload_is_rejected(make_manager, fake_backend, payload):
    response = make_manager().submit("t001", BOB, payload)

    assert response.error == ErrorCode.VALIDATION_FAILED
    assert fake_backend.requests == []


def test_owner_cannot_submit(make_manager, fake_backend):
    response = make_manager().submit("t001", TEACHER, {"text": "answer key"})

    assert response.is_access_denied
    assert fake_backend.requests == []


def test_stranger_cannot_submit(make_manager, fake_backend):
    response = make_manager().submit("t001", "stranger@school.edu", {"text": "hi"})
    assert response.is_access_denied


def test_unknown_task(make_manager):
    response = make_manager().submit("t999", BOB, {"text": "hi"})
    assert response.error == ErrorCode.NOT_FOUND


def test_second_submit_while_in_flight_is_refused(make_manager, fake_backend, manual_scheduler):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={})
    manager = make_manager()

    first = manager.submit("t001", BOB, {"text": "first"})
    second = manager.resubmit("t001", BOB, {"text": "second"})

    assert first.success
    assert second.error == ErrorCode.SUBMISSION_IN_FLIGHT
    assert second.status_code == 409
    assert second.is_validation_error
    assert len(fake_backend.requests) == 1
    assert manual_scheduler.pending_count == 1


def test_in_flight_is_per_student(make_manager, fake_backend):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={})
    manager = make_manager()

    assert manager.submit("t001", BOB, {"text": "bob"}).success
    assert manager.submit("t001", CAROL, {"text": "carol"}).success


# === failures ===


def test_backend_failure_leaves_board_untouched(
    make_manager, sample_board, fake_backend, manual_scheduler
):
    fake_backend.route(
        "POST", SUBMIT_PATH.format("t001"), status=500, body={"message": "Storage is full"}
    )
    manager = make_manager()

    response = manager.submit("t001", BOB, {"text": "hello"})

    assert response.is_backend_error
    assert response.detail == "Storage is full"
    assert sample_board.current.version == 0
    assert manual_scheduler.pending_count == 0
    assert not manager.is_in_flight("t001", BOB)


def test_failed_resync_keeps_provisional_state(
    make_manager, sample_board, fake_backend, manual_scheduler
):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={})
    fake_backend.route("GET", CLASSROOM_PATH, status=500, body={})
    manager = make_manager()

    manager.submit("t001", BOB, {"text": "hello"})
    manual_scheduler.run_pending()

    assert sample_board.is_provisional
    assert sample_board.find_task("t001").has_submitted(BOB)
    assert not manager.is_in_flight("t001", BOB)


def test_resync_discards_what_the_backend_does_not_have(
    make_manager, sample_board, fake_backend, manual_scheduler, classroom_record
):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={})
    fake_backend.route("GET", CLASSROOM_PATH, body={"classroom": classroom_record})
    manager = make_manager()

    manager.submit("t001", BOB, {"text": "hello"})
    manual_scheduler.run_pending()

    assert not sample_board.find_task("t001").has_submitted(BOB)
    assert not sample_board.is_provisional


def test_late_submission_turns_overdue_into_completed(make_manager, sample_board, fake_backend):
    fake_backend.route("POST", SUBMIT_PATH.format("t002"), body={})
    task = sample_board.find_task("t002")
    assert derive_status(task, BOB, Role.MEMBER, NOW) == TaskStatus.OVERDUE
    assert can_submit(task, BOB, NOW, allow_late=True)

    response = make_manager().submit("t002", BOB, {"text": "Sorry, late"})

    assert response.success
    task = sample_board.find_task("t002")
    assert derive_status(task, BOB, Role.MEMBER, NOW) == TaskStatus.COMPLETED


# === cancellation ===


def test_cancel_pending_releases_in_flight_markers(sample_board, student_gateway, fake_backend):
    fake_backend.route("POST", SUBMIT_PATH.format("t001"), body={})
    scheduler = TimerScheduler()
    manager = SubmissionLifecycleManager(
        sample_board,
        student_gateway,
        confirm=accepting,
        scheduler=scheduler,
        resync_delay=30.0,
        clock=lambda: NOW,
    )

    assert manager.submit("t001", BOB, {"text": "first"}).success
    assert manager.is_in_flight("t001", BOB)

    assert manager.cancel_pending() == 1

    assert scheduler.pending_count == 0
    assert not manager.is_in_flight("t001", BOB)
    assert manager.resubmit("t001", BOB, {"text": "second"}).success

    manager.cancel_pending()


def test_cancel_pending_with_nothing_scheduled(make_manager, manual_scheduler):
    assert make_manager().cancel_pending() == 0
    assert manual_scheduler.pending_count == 0
