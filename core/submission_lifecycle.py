# core/submission_lifecycle.py

"""
Runs a student's submit / resubmit from button press to reconciled board.

A submit touches the board twice:
    1. Right after the backend accepts the write, the submission is recorded as a
       PROVISIONAL snapshot (replace-by-student-email, or append).
    2. After a short delay the classroom is fetched again and the board is overwritten
       with a CONFIRMED snapshot. The backend's copy always wins.

While a (task, student) pair is between those two points it is "in flight", and a second
submit for the same pair is refused locally. The marker is released when reconciliation
finishes, whether or not the refetch succeeded.
"""

from __future__ import annotations

import datetime
import logging
import threading
from collections.abc import Callable

from core.config import DEFAULT_RESYNC_DELAY
from core.formatters import format_timestamp
from core.ownership import normalize_email, require_member
from core.prompts import Confirm, console_confirm
from core.response import ErrorCode, Response
from core.scheduling import TimerScheduler
from core.task_gateway import TaskGateway
from core.utils import generate_uuid, utc_now
from models.submission import Attachment, Submission
from models.task_board import TaskBoard

logger = logging.getLogger(__name__)


class SubmissionPayload:
    """What the student typed and attached. The attachment is already uploaded."""

    def __init__(self, text: str | None = None, attachment: Attachment | None = None):
        self._text = (text or "").strip()
        self._attachment = attachment

    @property
    def text(self) -> str:
        return self._text

    @property
    def attachment(self) -> Attachment | None:
        return self._attachment

    @property
    def is_empty(self) -> bool:
        return not self._text and self._attachment is None

    @classmethod
    def from_dict(cls, data: dict) -> SubmissionPayload:
        file_url = data.get("fileUrl")
        return cls(
            text=data.get("text"),
            attachment=(
                Attachment(
                    url=file_url,
                    name=data.get("fileName"),
                    content_type=data.get("fileType"),
                    size=data.get("fileSize"),
                )
                if file_url
                else None
            ),
        )

    def __repr__(self) -> str:
        return f"SubmissionPayload({self._text[:20]!r}, {self._attachment!r})"


class SubmissionLifecycleManager:

    def __init__(
        self,
        board: TaskBoard,
        gateway: TaskGateway,
        confirm: Confirm = console_confirm,
        scheduler=None,
        resync_delay: float = DEFAULT_RESYNC_DELAY,
        clock: Callable[[], datetime.datetime] = utc_now,
    ):
        self._board = board
        self._gateway = gateway
        self._confirm = confirm
        self._scheduler = scheduler or TimerScheduler()
        self._resync_delay = resync_delay
        self._clock = clock
        self._in_flight: set[tuple[str, str]] = set()
        self._lock = threading.Lock()

    # === properties ===

    @property
    def board(self) -> TaskBoard:
        return self._board

    @property
    def resync_delay(self) -> float:
        return self._resync_delay

    def is_in_flight(self, task_id: str, actor_email: str) -> bool:
        with self._lock:
            return (task_id, normalize_email(actor_email)) in self._in_flight

    # === public methods ===

    def submit(
        self,
        task_id: str,
        actor_email: str,
        payload: SubmissionPayload | dict,
        is_resubmission: bool = False,
        actor_name: str | None = None,
    ) -> Response:
        """
        Submits (or resubmits) the actor's work for a task.

        Args:
            task_id (str): Task on the board.
            actor_email (str): The submitting student.
            payload (SubmissionPayload | dict): Text and/or an uploaded file reference.
            is_resubmission (bool): Explicit resubmission intent; skips the confirmation prompt.
            actor_name (str | None): Display name; falls back to the roster name, then the email.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if the backend accepted the submission.
                - cancelled (bool): True if the student declined to replace an earlier submission.
                - error (ErrorCode | None):
                    - `ErrorCode.NOT_FOUND` if the task is not on the board.
                    - `ErrorCode.ACCESS_DENIED` if the actor is not an enrolled student.
                    - `ErrorCode.RESUBMISSION_NOT_ALLOWED` if the task forbids replacing a submission.
                    - `ErrorCode.VALIDATION_FAILED` if there is neither text nor a file.
                    - `ErrorCode.SUBMISSION_IN_FLIGHT` if an earlier submit is still reconciling.
                    - `ErrorCode.BACKEND_ERROR` if the backend refused or could not be reached.
                - data (dict): On success, "submission" (Submission, provisional) and
                  "is_resubmission" (bool).

        Notes:
            - Nothing but the backend error is surfaced on failure; the board is untouched.
            - Duplicate requests are not de-duplicated at the network layer.
        """
        actor = normalize_email(actor_email)
        task = self._board.find_task(task_id)

        if task is None:
            return Response.fail(
                detail=f"No task found with id {task_id}.",
                error=ErrorCode.NOT_FOUND,
                status_code=404,
            )

        denied = require_member(self._board.classroom, actor, "submit tasks")
        if denied:
            return denied

        already_submitted = task.has_submitted(actor)

        if already_submitted and not is_resubmission:
            if not self._confirm(
                "Already Submitted!",
                "Do you want to resubmit and replace your previous submission?",
            ):
                return Response.cancel("Resubmission cancelled.")

        if already_submitted and not task.allow_resubmission:
            return Response.fail(
                detail="This task does not accept resubmissions.",
                error=ErrorCode.RESUBMISSION_NOT_ALLOWED,
            )

        if isinstance(payload, dict):
            payload = SubmissionPayload.from_dict(payload)

        if payload is None or payload.is_empty:
            return Response.fail(
                detail="Please provide either text or a file for your submission.",
                error=ErrorCode.VALIDATION_FAILED,
            )

        key = (task.id, actor)
        with self._lock:
            if key in self._in_flight:
                return Response.fail(
                    detail="Your previous submission is still being processed.",
                    error=ErrorCode.SUBMISSION_IN_FLIGHT,
                    status_code=409,
                )
            self._in_flight.add(key)

        resubmitting = already_submitted or is_resubmission
        submission = self._build_submission(task.id, actor, actor_name, payload, resubmitting)

        try:
            response = self._send(task.id, submission)
        except Exception:
            self._release(key)
            raise

        if not response.success:
            self._release(key)
            return response

        if response.data.get("submission_id"):
            submission.id = response.data["submission_id"]

        try:
            self._board.record_submission(task.id, submission)
            logger.info(
                "Provisional %s recorded for %s on task %s",
                "resubmission" if resubmitting else "submission",
                actor,
                task.id,
            )
            self._scheduler.schedule(self._resync_delay, self._reconcile, key)
        except Exception:
            self._release(key)
            raise

        return Response.succeed(
            detail=response.detail,
            status_code=response.status_code,
            data={"submission": submission, "is_resubmission": resubmitting},
        )

    def resubmit(
        self,
        task_id: str,
        actor_email: str,
        payload: SubmissionPayload | dict,
        actor_name: str | None = None,
    ) -> Response:
        return self.submit(
            task_id, actor_email, payload, is_resubmission=True, actor_name=actor_name
        )

    def reconcile_now(self) -> Response:
        """Fetches the classroom and overwrites the board. Does not touch in-flight markers."""
        response = self._gateway.fetch_classroom(self._board.classroom.id)

        if response.success:
            self._board.resync(response.data["classroom"])
            logger.info("Board for classroom %s confirmed", self._board.classroom.id)
        else:
            logger.error(
                "Error refreshing tasks for classroom %s: %s",
                self._board.classroom.id,
                response.detail,
            )

        return response

    def cancel_pending(self) -> int:
        """
        Cancels every scheduled resync and releases the in-flight markers they held.

        The board keeps its provisional snapshot until the next `reconcile_now()` or load.

        Returns:
            int: The number of (task, student) markers released.
        """
        self._scheduler.cancel_all()

        with self._lock:
            released = len(self._in_flight)
            self._in_flight.clear()

        if released:
            logger.info("Cancelled %s pending resync(s)", released)

        return released

    # === helper methods ===

    def _reconcile(self, key: tuple[str, str]) -> None:
        try:
            self.reconcile_now()
        finally:
            self._release(key)

    def _release(self, key: tuple[str, str]) -> None:
        with self._lock:
            self._in_flight.discard(key)

    def _send(self, task_id: str, submission: Submission) -> Response:
        outbound = {
            "studentEmail": submission.student_email,
            "studentName": submission.student_name,
            "isResubmission": submission.is_resubmission,
            "text": submission.text,
            "fileUrl": submission.file_url,
            "submissionType": submission.submission_type,
            "submittedAt": format_timestamp(submission.submitted_at),
        }
        if submission.attachment:
            outbound.update(submission.attachment.metadata())

        classroom_id = self._board.classroom.id

        if submission.is_resubmission:
            return self._gateway.resubmit_task(classroom_id, task_id, outbound)

        return self._gateway.submit_task(classroom_id, task_id, outbound)

    def _build_submission(
        self,
        task_id: str,
        actor: str,
        actor_name: str | None,
        payload: SubmissionPayload,
        is_resubmission: bool,
    ) -> Submission:
        if not actor_name:
            student = self._board.classroom.find_student(actor)
            actor_name = student.name if student else actor

        return Submission(
            # placeholder until the backend's id arrives with the reply or the resync
            id=f"local-{generate_uuid()}",
            task_id=task_id,
            student_email=actor,
            student_name=actor_name,
            submitted_at=self._clock(),
            text=payload.text,
            attachment=payload.attachment,
            is_resubmission=is_resubmission,
        )
