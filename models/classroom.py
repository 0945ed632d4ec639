# models/classroom.py

"""
Represents a classroom as returned by the backend.

The backend record has grown ownership fields over time (owner, teacherEmail, teachers,
members with role tags, and more). The raw record is kept verbatim so the ownership
resolver can read whichever of them a given classroom carries.
"""

from __future__ import annotations

import logging
from typing import Any

from models.student import Student
from models.task import Task

logger = logging.getLogger(__name__)


class Classroom:

    def __init__(
        self,
        id: str,
        name: str,
        subject: str | None = None,
        students: list[Student] | None = None,
        tasks: list[Task] | None = None,
        record: dict | None = None,
    ):
        self._id = id
        self._name = name
        self._subject = subject
        self._students: list[Student] = list(students or [])
        self._tasks: list[Task] = list(tasks or [])
        self._record: dict = dict(record or {})

    # === properties ===

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def subject(self) -> str | None:
        return self._subject

    @property
    def students(self) -> tuple[Student, ...]:
        return tuple(self._students)

    @property
    def student_count(self) -> int:
        return len(self._students)

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def record(self) -> dict:
        return self._record

    # === data accessors ===

    def find_student(self, email: str | None) -> Student | None:
        if not email:
            return None

        email = email.strip().lower()

        for student in self._students:
            if student.email == email:
                return student

        return None

    def get(self, field: str, default: Any = None) -> Any:
        return self._record.get(field, default)

    # === persistence and import ===

    @classmethod
    def from_dict(cls, data: dict) -> Classroom:
        """
        Builds a `Classroom` from a backend record.

        Notes:
            - Accepts either "id" or "_id" as the identifier.
            - Tasks are read from "tasks.assignments" (grouped shape) or a flat "tasks" list.
            - Roster entries and task records that cannot be parsed are skipped with a
              warning rather than failing the whole classroom.
        """
        classroom_id = data.get("id") or data.get("_id")

        if not classroom_id:
            raise ValueError("Classroom record is missing an id.")

        students = []
        for entry in data.get("students") or []:
            try:
                students.append(Student.from_dict(entry))
            except (TypeError, ValueError) as e:
                logger.warning("Skipping roster entry %r: %s", entry, e)

        raw_tasks = data.get("tasks") or []
        if isinstance(raw_tasks, dict):
            raw_tasks = raw_tasks.get("assignments") or []

        tasks = []
        for entry in raw_tasks:
            try:
                tasks.append(Task.from_dict(entry))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping task record %r: %s", entry, e)

        return cls(
            id=str(classroom_id),
            name=data.get("name") or "",
            subject=data.get("subject"),
            students=students,
            tasks=tasks,
            record=data,
        )

    @classmethod
    def from_response_body(cls, body: dict) -> Classroom:
        # the classroom endpoint answers either {"classroom": {...}} or the bare record
        record = body.get("classroom") if isinstance(body.get("classroom"), dict) else body
        return cls.from_dict(record)

    def to_dict(self) -> dict:
        data = dict(self._record)
        data.update(
            {
                "id": self._id,
                "name": self._name,
                "subject": self._subject,
                "students": [student.to_dict() for student in self._students],
                "tasks": {"assignments": [task.to_dict() for task in self._tasks]},
            }
        )
        return data

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"Classroom({self._id}, {self._name}, {self._subject}, {len(self._students)}, {len(self._tasks)})"

    def __str__(self) -> str:
        return f"CLASSROOM: name: {self._name}, id: {self._id}"
