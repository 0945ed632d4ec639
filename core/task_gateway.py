# core/task_gateway.py

"""
Typed operations against the classroom backend.

`TaskGateway` wraps an `httpx.Client` and turns every outcome into a `Response`:
identifiers are checked before anything is sent, non-success replies are reduced to a
human-readable message, and transport exceptions never escape. Callers only ever branch
on `response.success` / `response.cancelled`.

`TaskCommands` is the owner-side command surface (create, update, delete, list
submissions). It checks ownership locally, calls the gateway, and applies the confirmed
result to the `TaskBoard`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from core.formatters import format_due_date_from_datetime
from core.ownership import require_access, require_owner
from core.prompts import Confirm, console_confirm
from core.response import ErrorCode, Response
from models.classroom import Classroom
from models.submission import Submission
from models.task import Task
from models.task_board import BoardCommand, TaskBoard

logger = logging.getLogger(__name__)

STATUS_FALLBACK_MESSAGES = {
    401: "Authentication required. Please log in.",
    403: "Access denied. You do not have permission to perform this action.",
    404: "The requested task or submission was not found.",
}

RESYNC_NOTE = "The task list will refresh on the next sync."


def extract_error_message(body: Any, status_code: int | None, fallback: str) -> str:
    """
    Picks the most useful message for a failed backend call.

    Order: body "message", body "error", a status-specific fallback, then `fallback`.
    """
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()

    if status_code in STATUS_FALLBACK_MESSAGES:
        return STATUS_FALLBACK_MESSAGES[status_code]

    return fallback


class TaskGateway:

    def __init__(
        self,
        client: httpx.Client,
        confirm: Confirm = console_confirm,
        actor_email: str | None = None,
    ):
        self._client = client
        self._confirm = confirm
        self._actor_email = actor_email

    @property
    def actor_email(self) -> str | None:
        return self._actor_email

    # === classroom ===

    def fetch_classroom(self, classroom_id: str | None) -> Response:
        """
        Fetches the authoritative classroom record, tasks and submissions included.

        Returns:
            Response: On success, data["classroom"] holds the parsed `Classroom`.
        """
        missing = _require(classroom_id=classroom_id)
        if missing:
            return missing

        response = self._send(
            "GET", f"/classrooms/{classroom_id}", "Failed to load classroom data."
        )
        if not response.success:
            return response

        try:
            classroom = Classroom.from_response_body(response.data["body"])

        except (TypeError, ValueError, AttributeError) as e:
            logger.error("Could not parse classroom %s: %s", classroom_id, e)
            return Response.fail(
                detail=f"Classroom data could not be read: {e}",
                error=ErrorCode.BACKEND_ERROR,
                status_code=response.status_code,
            )

        return Response.succeed(
            status_code=response.status_code, data={"classroom": classroom}
        )

    # === task commands ===

    def create_task(
        self, classroom_id: str | None, fields: dict, creator_email: str | None
    ) -> Response:
        """
        Creates a task in a classroom.

        Args:
            classroom_id (str | None): Target classroom.
            fields (dict): Task fields in backend naming (title, description, type, dueDate, points, ...).
            creator_email (str | None): The owner creating the task; sent as "createdBy".

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if the backend created the task.
                - error (ErrorCode | None):
                    - `ErrorCode.MISSING_REQUIRED_FIELD` if an identifier or the title is missing.
                    - `ErrorCode.INVALID_FIELD_VALUE` if points are not a finite, non-negative number.
                    - `ErrorCode.BACKEND_ERROR` for non-success replies or transport failures.
                - data (dict): On success, "task" (Task) as returned by the backend.
        """
        missing = _require(
            classroom_id=classroom_id,
            creator_email=creator_email,
            title=(fields or {}).get("title"),
        )
        if missing:
            return missing

        if "points" in fields:
            try:
                Task.validate_points_input(fields["points"])
            except (TypeError, ValueError) as e:
                return Response.fail(
                    detail=f"Invalid field value: {e}",
                    error=ErrorCode.INVALID_FIELD_VALUE,
                )

        payload = {**fields, "createdBy": creator_email}
        response = self._send(
            "POST",
            f"/classrooms/{classroom_id}/tasks",
            "Failed to create task.",
            json=payload,
        )
        if not response.success:
            return response

        body = response.data["body"]
        task_data = body.get("task")

        if not isinstance(task_data, dict):
            task_id = body.get("taskId") or body.get("id") or body.get("_id")
            if not task_id:
                return Response.fail(
                    detail="Task was created but the response did not include it.",
                    error=ErrorCode.BACKEND_ERROR,
                    status_code=response.status_code,
                )
            task_data = {**payload, "id": task_id}

        try:
            task = Task.from_dict(task_data)

        except (TypeError, ValueError) as e:
            return Response.fail(
                detail=f"Task data could not be read: {e}",
                error=ErrorCode.BACKEND_ERROR,
                status_code=response.status_code,
            )

        return Response.succeed(
            detail="Task created successfully.",
            status_code=response.status_code,
            data={"task": task},
        )

    def update_task(
        self, classroom_id: str | None, task_id: str | None, fields: dict
    ) -> Response:
        missing = _require(classroom_id=classroom_id, task_id=task_id)
        if missing:
            return missing

        if not fields:
            return Response.fail(
                detail="No task fields were provided to update.",
                error=ErrorCode.MISSING_REQUIRED_FIELD,
            )

        response = self._send(
            "PUT",
            f"/classrooms/{classroom_id}/tasks/{task_id}",
            "Failed to update task.",
            json=fields,
        )
        if not response.success:
            return response

        task_data = response.data["body"].get("task")
        task = None

        if isinstance(task_data, dict):
            try:
                task = Task.from_dict(task_data)
            except (TypeError, ValueError) as e:
                logger.warning("Ignoring unreadable task in update reply: %s", e)

        return Response.succeed(
            detail="Task updated successfully.",
            status_code=response.status_code,
            data={
                "task": task,
                "record": task_data if isinstance(task_data, dict) else None,
            },
        )

    def delete_task(
        self, classroom_id: str | None, task_id: str | None, confirm: bool = True
    ) -> Response:
        """
        Deletes a task and, with it, all of its submissions.

        Returns:
            Response:
                - cancelled=True (and success=False) if the confirmation was declined;
                  nothing is sent in that case.
                - Otherwise the usual success / failure contract.
        """
        missing = _require(classroom_id=classroom_id, task_id=task_id)
        if missing:
            return missing

        if confirm and not self._confirm(
            "Delete Task?", "This will remove the task and all submissions."
        ):
            logger.info("Deletion of task %s cancelled", task_id)
            return Response.cancel("Task deletion cancelled.")

        response = self._send(
            "DELETE",
            f"/classrooms/{classroom_id}/tasks/{task_id}",
            "Failed to delete task.",
        )
        if not response.success:
            return response

        return Response.succeed(
            detail="Task has been deleted.", status_code=response.status_code
        )

    # === submission commands ===

    def submit_task(
        self, classroom_id: str | None, task_id: str | None, payload: dict
    ) -> Response:
        """
        Sends a submission (or resubmission) for a task.

        Returns:
            Response: On success, data["submission_id"] holds the server-assigned id when
            the backend returned one, else None.
        """
        missing = _require(
            classroom_id=classroom_id,
            task_id=task_id,
            student_email=(payload or {}).get("studentEmail"),
        )
        if missing:
            return missing

        is_resubmission = bool(payload.get("isResubmission"))
        response = self._send(
            "POST",
            f"/classrooms/{classroom_id}/tasks/{task_id}/submit",
            "Failed to submit assignment. Please try again.",
            json={**payload, "taskId": task_id},
        )
        if not response.success:
            return response

        body = response.data["body"]
        submission_id = body.get("submissionId")
        if not submission_id and isinstance(body.get("submission"), dict):
            submission_id = body["submission"].get("id") or body["submission"].get("_id")

        return Response.succeed(
            detail=(
                "Assignment resubmitted successfully."
                if is_resubmission
                else "Assignment submitted successfully."
            ),
            status_code=response.status_code,
            data={"submission_id": str(submission_id) if submission_id else None},
        )

    def resubmit_task(
        self, classroom_id: str | None, task_id: str | None, payload: dict
    ) -> Response:
        return self.submit_task(
            classroom_id, task_id, {**(payload or {}), "isResubmission": True}
        )

    def grade_submission(
        self,
        classroom_id: str | None,
        task_id: str | None,
        submission_id: str | None,
        grade: float,
        feedback: str = "",
    ) -> Response:
        missing = _require(
            classroom_id=classroom_id, task_id=task_id, submission_id=submission_id
        )
        if missing:
            return missing

        if grade is None:
            return Response.fail(
                detail="A grade is required.",
                error=ErrorCode.MISSING_REQUIRED_FIELD,
            )

        response = self._send(
            "POST",
            f"/classrooms/{classroom_id}/tasks/{task_id}/submissions/{submission_id}/grade",
            "Failed to grade submission.",
            json={"grade": grade, "feedback": feedback or ""},
        )
        if not response.success:
            return response

        submission_data = response.data["body"].get("submission")
        submission = None

        if isinstance(submission_data, dict):
            try:
                submission = Submission.from_dict(submission_data, task_id=task_id)
            except (TypeError, ValueError) as e:
                logger.warning("Ignoring unreadable submission in grade reply: %s", e)

        return Response.succeed(
            detail="Grade submitted successfully.",
            status_code=response.status_code,
            data={"submission": submission},
        )

    def list_submissions(self, classroom_id: str | None, task_id: str | None) -> Response:
        """
        Lists a task's submissions and the caller's role as resolved by the backend.

        Returns:
            Response: On success, data holds "submissions" (list[Submission]), "count" (int)
            and "role" (str | None).
        """
        missing = _require(classroom_id=classroom_id, task_id=task_id)
        if missing:
            return missing

        response = self._send(
            "GET",
            f"/classrooms/{classroom_id}/tasks/{task_id}/submissions",
            "Failed to load submissions.",
        )
        if not response.success:
            return response

        body = response.data["body"]

        try:
            submissions = [
                Submission.from_dict(entry, task_id=task_id)
                for entry in body.get("submissions") or []
            ]
        except (TypeError, ValueError, AttributeError) as e:
            return Response.fail(
                detail=f"Submission data could not be read: {e}",
                error=ErrorCode.BACKEND_ERROR,
                status_code=response.status_code,
            )

        return Response.succeed(
            status_code=response.status_code,
            data={
                "submissions": submissions,
                "count": body.get("count", len(submissions)),
                "role": body.get("userRole") or body.get("role"),
            },
        )

    def get_my_submission(
        self, classroom_id: str | None, task_id: str | None, actor_email: str | None
    ) -> Response:
        missing = _require(
            classroom_id=classroom_id, task_id=task_id, actor_email=actor_email
        )
        if missing:
            return missing

        response = self.list_submissions(classroom_id, task_id)
        if not response.success:
            return response

        actor = actor_email.strip().lower()
        submission = next(
            (s for s in response.data["submissions"] if s.student_email == actor), None
        )

        return Response.succeed(
            detail=None if submission else "You have not submitted this task yet.",
            status_code=response.status_code,
            data={"submission": submission},
        )

    # === helper methods ===

    def _send(
        self,
        method: str,
        path: str,
        generic_message: str,
        json: dict | None = None,
    ) -> Response:
        """
        Issues one request and normalizes the outcome.

        Returns:
            Response: On success, data["body"] is the decoded JSON object (an empty dict for
            an empty body). On failure, error is `ErrorCode.BACKEND_ERROR`.
        """
        headers = {"user-email": self._actor_email} if self._actor_email else None
        logger.debug("%s %s", method, path)

        try:
            http_response = self._client.request(method, path, json=json, headers=headers)

        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            return Response.fail(
                detail=generic_message,
                error=ErrorCode.BACKEND_ERROR,
                status_code=None,
            )

        status_code = http_response.status_code

        if not http_response.content:
            body: Any = {}
        else:
            try:
                body = http_response.json()
            except ValueError:
                body = None

        if not isinstance(body, dict):
            logger.error("%s %s returned a non-JSON body (%s)", method, path, status_code)
            return Response.fail(
                detail=(
                    extract_error_message(None, status_code, generic_message)
                    if not http_response.is_success
                    else "The server returned an unexpected response. Is the API running?"
                ),
                error=ErrorCode.BACKEND_ERROR,
                status_code=status_code,
            )

        if not http_response.is_success or body.get("success") is False:
            message = extract_error_message(body, status_code, generic_message)
            logger.warning("%s %s -> %s: %s", method, path, status_code, message)
            return Response.fail(
                detail=message,
                error=ErrorCode.BACKEND_ERROR,
                status_code=status_code,
                data={"body": body},
            )

        return Response.succeed(status_code=status_code, data={"body": body})


class TaskCommands:
    """
    Owner-side task commands bound to one board and one actor.

    Every command checks ownership before touching the network and only changes the board
    after the backend confirms.
    """

    def __init__(self, board: TaskBoard, gateway: TaskGateway, actor_email: str):
        self._board = board
        self._gateway = gateway
        self._actor_email = actor_email

    @property
    def classroom_id(self) -> str:
        return self._board.classroom.id

    def create_task(self, fields: dict) -> Response:
        denied = require_owner(self._board.classroom, self._actor_email, "create tasks")
        if denied:
            return denied

        response = self._gateway.create_task(self.classroom_id, fields, self._actor_email)
        if not response.success:
            return response

        task = response.data["task"]
        self._board.apply(BoardCommand.TASK_CREATED, task=task)
        logger.info("Task %s created in classroom %s", task.id, self.classroom_id)
        return response

    def update_task(self, task_id: str, fields: dict) -> Response:
        denied = require_owner(self._board.classroom, self._actor_email, "edit tasks")
        if denied:
            return denied

        current = self._board.find_task(task_id)
        if current is None:
            return _task_not_found(task_id)

        updated = current.copy()
        try:
            updated.apply_updates(fields or {})
        except (TypeError, ValueError) as e:
            return Response.fail(
                detail=f"Invalid field value: {e}",
                error=ErrorCode.INVALID_FIELD_VALUE,
            )

        response = self._gateway.update_task(self.classroom_id, task_id, fields)
        if not response.success:
            return response

        confirmed = self._confirmed_task(updated, response.data)
        detail = f"{response.detail} Due: {format_due_date_from_datetime(confirmed.due_date_dt)}."

        try:
            self._board.apply(BoardCommand.TASK_UPDATED, task=confirmed)
        except KeyError as e:
            logger.warning("Updated task %s is no longer on the board: %s", task_id, e)
            detail = f"{detail} {RESYNC_NOTE}"

        return Response.succeed(
            detail=detail,
            status_code=response.status_code,
            data={"task": confirmed},
        )

    def delete_task(self, task_id: str) -> Response:
        denied = require_owner(self._board.classroom, self._actor_email, "delete tasks")
        if denied:
            return denied

        if self._board.find_task(task_id) is None:
            return _task_not_found(task_id)

        response = self._gateway.delete_task(self.classroom_id, task_id)
        if not response.success:
            return response

        try:
            self._board.apply(BoardCommand.TASK_DELETED, task_id=task_id)
        except KeyError as e:
            logger.warning("Deleted task %s was already off the board: %s", task_id, e)
            return Response.succeed(
                detail=f"{response.detail} {RESYNC_NOTE}",
                status_code=response.status_code,
            )

        logger.info("Task %s deleted from classroom %s", task_id, self.classroom_id)
        return response

    def list_submissions(self, task_id: str) -> Response:
        denied = require_owner(
            self._board.classroom, self._actor_email, "view all submissions"
        )
        if denied:
            return denied

        return self._gateway.list_submissions(self.classroom_id, task_id)

    def my_submission(self, task_id: str) -> Response:
        denied = require_access(self._board.classroom, self._actor_email)
        if denied:
            return denied

        return self._gateway.get_my_submission(
            self.classroom_id, task_id, self._actor_email
        )

    # --- helper methods ---

    def _confirmed_task(self, updated: Task, data: dict) -> Task:
        """
        Chooses the task to publish after a successful update.

        A reply task that carries its own submissions replaces the local copy outright.
        A partial reply (fields only) is merged onto the local copy so the submissions
        already on the board survive.
        """
        task = data.get("task")
        record = data.get("record")

        if task is not None and "submissions" in record:
            return task

        if record:
            try:
                updated.apply_updates(record)
            except (TypeError, ValueError) as e:
                logger.warning("Ignoring unreadable fields in update reply: %s", e)

        return updated


# === helper methods ===


def _require(**identifiers: Any) -> Response | None:
    for name, value in identifiers.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            label = name.replace("_", " ").capitalize()
            return Response.fail(
                detail=f"{label} is required.",
                error=ErrorCode.MISSING_REQUIRED_FIELD,
            )

    return None


def _task_not_found(task_id: str) -> Response:
    return Response.fail(
        detail=f"No task found with id {task_id}.",
        error=ErrorCode.NOT_FOUND,
        status_code=404,
    )
