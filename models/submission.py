# models/submission.py

"""
Represents one student's response to a task.

Each `Submission` records the student's email and display name, when it was submitted,
an optional text body, an optional attachment reference produced by the upload service,
whether it replaced an earlier submission, and the grading outcome.

Includes functionality for:
- Validating grades against the owning task's point value
- Applying and clearing grades
- Serializing to and from the backend's JSON representation

Notes:
- There is at most one submission per (task, student email). Replacement is the
  task's job; a submission never knows about its siblings.
- A grade of None means "not yet graded". Zero is a real grade.
"""

from __future__ import annotations

import datetime
import math
from typing import Any

from core.formatters import format_timestamp, parse_timestamp


class Attachment:
    """Opaque reference to an uploaded file. The client never reads the file itself."""

    def __init__(
        self,
        url: str,
        name: str | None = None,
        content_type: str | None = None,
        size: int | None = None,
    ):
        self._url = url
        self._name = name
        self._content_type = content_type
        self._size = size

    @property
    def url(self) -> str:
        return self._url

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def content_type(self) -> str | None:
        return self._content_type

    @property
    def size(self) -> int | None:
        return self._size

    def metadata(self) -> dict:
        return {
            key: value
            for key, value in (
                ("fileName", self._name),
                ("fileType", self._content_type),
                ("fileSize", self._size),
            )
            if value is not None
        }

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Attachment) and (
            self._url,
            self._name,
            self._content_type,
            self._size,
        ) == (other._url, other._name, other._content_type, other._size)

    def __repr__(self) -> str:
        return f"Attachment({self._url}, {self._name}, {self._content_type}, {self._size})"


class Submission:

    def __init__(
        self,
        id: str | None,
        task_id: str,
        student_email: str,
        student_name: str | None = None,
        submitted_at: datetime.datetime | None = None,
        text: str | None = None,
        attachment: Attachment | None = None,
        is_resubmission: bool = False,
        grade: float | None = None,
        feedback: str | None = None,
        graded_by: str | None = None,
        graded_at: datetime.datetime | None = None,
    ):
        self.id = id
        self._task_id = task_id
        self._student_email = student_email.strip().lower()
        self._student_name = student_name or self._student_email
        self._submitted_at = submitted_at
        self._text = text or ""
        self._attachment = attachment
        self._is_resubmission = is_resubmission
        self._grade = None if grade is None else float(grade)
        self._feedback = feedback or ""
        self._graded_by = graded_by
        self._graded_at = graded_at

    # === properties ===

    @property
    def task_id(self) -> str:
        return self._task_id

    @property
    def student_email(self) -> str:
        return self._student_email

    @property
    def student_name(self) -> str:
        return self._student_name

    @property
    def submitted_at(self) -> datetime.datetime | None:
        return self._submitted_at

    @property
    def text(self) -> str:
        return self._text

    @property
    def attachment(self) -> Attachment | None:
        return self._attachment

    @property
    def file_url(self) -> str | None:
        return self._attachment.url if self._attachment else None

    @property
    def submission_type(self) -> str:
        return "file" if self._attachment else "text"

    @property
    def is_resubmission(self) -> bool:
        return self._is_resubmission

    @property
    def grade(self) -> float | None:
        return self._grade

    @property
    def is_graded(self) -> bool:
        return self._grade is not None

    @property
    def feedback(self) -> str:
        return self._feedback

    @property
    def graded_by(self) -> str | None:
        return self._graded_by

    @property
    def graded_at(self) -> datetime.datetime | None:
        return self._graded_at

    @property
    def grade_status(self) -> str:
        return "GRADED" if self.is_graded else "UNGRADED"

    # === data manipulators ===

    def apply_grade(
        self,
        grade: float,
        max_points: float,
        feedback: str | None = None,
        graded_by: str | None = None,
        graded_at: datetime.datetime | None = None,
    ) -> None:
        self._grade = Submission.validate_grade_input(grade, max_points)
        self._feedback = feedback or ""
        self._graded_by = graded_by
        self._graded_at = graded_at

    def clear_grade(self) -> None:
        self._grade = None
        self._graded_by = None
        self._graded_at = None

    def copy(self) -> Submission:
        return Submission.from_dict(self.to_dict(), task_id=self._task_id)

    # === persistence and import ===

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "taskId": self._task_id,
            "studentEmail": self._student_email,
            "studentName": self._student_name,
            "submittedAt": format_timestamp(self._submitted_at),
            "text": self._text,
            "fileUrl": self.file_url,
            "submissionType": self.submission_type,
            "isResubmission": self._is_resubmission,
            "grade": self._grade,
            "feedback": self._feedback,
            "gradedBy": self._graded_by,
            "gradedAt": format_timestamp(self._graded_at),
        }

        if self._attachment:
            data.update(self._attachment.metadata())

        return data

    @classmethod
    def from_dict(cls, data: dict, task_id: str | None = None) -> Submission:
        """
        Builds a `Submission` from a backend record.

        Args:
            data (dict): The backend record. Accepts either "id" or "_id".
            task_id (str | None): Owning task id, used when the record does not carry one.

        Raises:
            ValueError: If the record has no student email.
        """
        student_email = data.get("studentEmail") or data.get("email")

        if not student_email:
            raise ValueError("Submission record is missing a student email.")

        file_url = data.get("fileUrl")
        attachment = (
            Attachment(
                url=file_url,
                name=data.get("fileName"),
                content_type=data.get("fileType"),
                size=data.get("fileSize"),
            )
            if file_url
            else None
        )

        grade = data.get("grade")

        return cls(
            id=_optional_str(data.get("id") or data.get("_id")),
            task_id=str(data.get("taskId") or task_id or ""),
            student_email=student_email,
            student_name=data.get("studentName"),
            submitted_at=parse_timestamp(data.get("submittedAt")),
            text=data.get("text"),
            attachment=attachment,
            is_resubmission=bool(data.get("isResubmission", False)),
            grade=_lenient_grade(grade),
            feedback=data.get("feedback"),
            graded_by=data.get("gradedBy"),
            graded_at=parse_timestamp(data.get("gradedAt")),
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"Submission({self.id}, {self._task_id}, {self._student_email}, {self._grade}, {self._is_resubmission})"

    def __str__(self) -> str:
        return f"SUBMISSION: id: {self.id}, student: {self._student_email}, task id: {self._task_id}"

    # === data validators ===

    @staticmethod
    def validate_grade_input(grade: Any, max_points: float) -> float:
        """
        Validates and normalizes a grade for a task worth `max_points`.

        Accepts any input, and then:
            - Casts to float.
            - Ensures the number is finite.
            - Ensures it lies within [0, max_points].

        Args:
            grade (Any): The input value to validate.
            max_points (float): The owning task's point value.

        Returns:
            The normalized grade (float).

        Raises:
            TypeError: If the input cannot be cast to float.
            ValueError: If the input is non-finite or out of bounds.
        """
        if isinstance(grade, bool):
            raise TypeError("Invalid input. Grade must be a number.")

        try:
            grade = float(grade)

        except (TypeError, ValueError):
            raise TypeError("Invalid input. Grade must be a number.") from None

        if not math.isfinite(grade):
            raise ValueError("Invalid input. Grade must be a finite number.")

        if grade < 0:
            raise ValueError("Invalid input. Grade cannot be less than zero.")

        if grade > max_points:
            raise ValueError(
                f"Invalid input. Grade cannot exceed the task's {max_points:g} points."
            )

        return grade


# === helper methods ===


def _optional_str(value: Any) -> str | None:
    return None if value is None or value == "" else str(value)


def _lenient_grade(value: Any) -> float | None:
    # backend records sometimes carry "" or a numeric string for ungraded work
    if value is None or value == "" or isinstance(value, bool):
        return None

    try:
        grade = float(value)
    except (TypeError, ValueError):
        return None

    return grade if math.isfinite(grade) else None
