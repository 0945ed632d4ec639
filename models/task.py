# models/task.py

"""
The Task model represents an assignment, quiz, project, homework, or exam posted to a classroom.

A task owns its submissions: they are stored in submission order and are removed with
the task. Only one submission per student email is kept; a resubmission replaces the
earlier record in place.
"""

from __future__ import annotations

import datetime
import logging
import math
from enum import Enum
from typing import Any

from core.formatters import format_timestamp, parse_timestamp
from models.submission import Submission

logger = logging.getLogger(__name__)

DEFAULT_POINTS = 100.0


class TaskType(str, Enum):
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    PROJECT = "project"
    HOMEWORK = "homework"
    EXAM = "exam"

    @classmethod
    def parse(cls, value: Any) -> TaskType:
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.ASSIGNMENT


class Task:

    def __init__(
        self,
        id: str,
        title: str,
        description: str = "",
        task_type: TaskType = TaskType.ASSIGNMENT,
        due_date: datetime.datetime | None = None,
        points: float = DEFAULT_POINTS,
        created_by: str | None = None,
        submissions: list[Submission] | None = None,
        allow_resubmission: bool = True,
        created_at: datetime.datetime | None = None,
    ):
        self._id = id
        self._title = title
        self._description = description or ""
        self._task_type = task_type
        self._due_date_dt = due_date
        # points uses setter method for validation
        self.points = points
        self._created_by = created_by
        self._submissions: list[Submission] = list(submissions or [])
        self._allow_resubmission = allow_resubmission
        self._created_at = created_at

    # === properties ===

    @property
    def id(self) -> str:
        return self._id

    @property
    def title(self) -> str:
        return self._title

    @title.setter
    def title(self, title: str) -> None:
        self._title = title

    @property
    def description(self) -> str:
        return self._description

    @description.setter
    def description(self, description: str) -> None:
        self._description = description or ""

    @property
    def task_type(self) -> TaskType:
        return self._task_type

    @property
    def due_date_dt(self) -> datetime.datetime | None:
        return self._due_date_dt

    @due_date_dt.setter
    def due_date_dt(self, due_date_dt: datetime.datetime | None) -> None:
        self._due_date_dt = due_date_dt

    @property
    def due_date_iso(self) -> str | None:
        return format_timestamp(self._due_date_dt)

    @property
    def points(self) -> float:
        return self._points

    @points.setter
    def points(self, points: float) -> None:
        self._points = Task.validate_points_input(points)

    @property
    def created_by(self) -> str | None:
        return self._created_by

    @property
    def created_at(self) -> datetime.datetime | None:
        return self._created_at

    @property
    def allow_resubmission(self) -> bool:
        return self._allow_resubmission

    @property
    def submissions(self) -> tuple[Submission, ...]:
        return tuple(self._submissions)

    @property
    def submission_count(self) -> int:
        return len(self._submissions)

    # === data accessors ===

    def is_past_due(self, now: datetime.datetime) -> bool:
        if self._due_date_dt is None:
            return False

        # naive values are treated as UTC on both sides
        due = self._due_date_dt
        if due.tzinfo is None:
            due = due.replace(tzinfo=datetime.timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=datetime.timezone.utc)

        return now > due

    def find_submission_for(self, email: str | None) -> Submission | None:
        if not email:
            return None

        email = email.strip().lower()

        for submission in self._submissions:
            if submission.student_email == email:
                return submission

        return None

    def find_submission_by_id(self, submission_id: str | None) -> Submission | None:
        if not submission_id:
            return None

        for submission in self._submissions:
            if submission.id == submission_id:
                return submission

        return None

    def has_submitted(self, email: str | None) -> bool:
        return self.find_submission_for(email) is not None

    # === data manipulators ===

    def upsert_submission(self, submission: Submission) -> bool:
        """
        Records a submission, replacing the student's earlier one if present.

        Returns:
            True if an existing record was replaced, False if the submission was appended.
        """
        for index, existing in enumerate(self._submissions):
            if existing.student_email == submission.student_email:
                self._submissions[index] = submission
                return True

        self._submissions.append(submission)
        return False

    def apply_updates(self, fields: dict) -> None:
        if "title" in fields:
            self.title = fields["title"]
        if "description" in fields:
            self.description = fields["description"]
        if "type" in fields:
            self._task_type = TaskType.parse(fields["type"])
        if "dueDate" in fields:
            self._due_date_dt = parse_timestamp(fields["dueDate"])
        if "points" in fields:
            self.points = fields["points"]
        if "allowResubmission" in fields:
            self._allow_resubmission = fields["allowResubmission"] is not False

    def copy(self) -> Task:
        clone = Task.from_dict(self.to_dict())
        clone._submissions = [submission.copy() for submission in self._submissions]
        return clone

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "title": self._title,
            "description": self._description,
            "type": self._task_type.value,
            "dueDate": self.due_date_iso,
            "points": self._points,
            "createdBy": self._created_by,
            "allowResubmission": self._allow_resubmission,
            "createdAt": format_timestamp(self._created_at),
            "submissions": [submission.to_dict() for submission in self._submissions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Task:
        """
        Builds a `Task` from a backend record.

        Notes:
            - Accepts either "id" or "_id" as the identifier.
            - An invalid or missing due date becomes None (no deadline).
            - Missing or invalid points fall back to the default of 100.
            - Only an explicit `allowResubmission: false` disables resubmission.
            - Submission records without a student email are skipped with a warning.
        """
        task_id = data.get("id") or data.get("_id")

        if not task_id:
            raise ValueError("Task record is missing an id.")

        task_id = str(task_id)

        try:
            points = Task.validate_points_input(data.get("points", DEFAULT_POINTS))
        except (TypeError, ValueError):
            points = DEFAULT_POINTS

        submissions = []
        for entry in data.get("submissions") or []:
            try:
                submissions.append(Submission.from_dict(entry, task_id=task_id))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping submission %r on task %s: %s", entry, task_id, e)

        return cls(
            id=task_id,
            title=data.get("title") or "",
            description=data.get("description") or "",
            task_type=TaskType.parse(data.get("type")),
            due_date=parse_timestamp(data.get("dueDate")),
            points=points,
            created_by=data.get("createdBy"),
            submissions=submissions,
            allow_resubmission=data.get("allowResubmission") is not False,
            created_at=parse_timestamp(data.get("createdAt")),
        )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"Task({self._id}, {self._title}, {self._task_type.value}, {self.due_date_iso}, {self._points}, {len(self._submissions)})"

    def __str__(self) -> str:
        return f"TASK: title: {self._title}, id: {self._id}"

    # === data validators ===

    @staticmethod
    def validate_points_input(points: Any) -> float:
        """
        Validates and normalizes input for a `Task` point value.

        Accepts any input, and then:
            - Casts to float.
            - Ensures the number is finite.
            - Ensures it is non-negative.

        Raises:
            TypeError: If the input cannot be cast to float.
            ValueError: If the input is non-finite or less than zero.
        """
        try:
            points = float(points)

        except (TypeError, ValueError):
            raise TypeError("Invalid input. Points must be a number.") from None

        if not math.isfinite(points):
            raise ValueError("Invalid input. Points must be a finite number.")

        if points < 0:
            raise ValueError("Invalid input. Points cannot be less than zero.")

        return points
