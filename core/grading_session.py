# core/grading_session.py

"""
Instructor-side grading.

A `GradingSession` edits one submission's grade at a time. Out-of-range grades are rejected
before any request is sent. Accepted grades are sent to the backend, recorded on the board,
and the student's aggregate is recomputed from the board's submissions.

Aggregates (total points, average) are always derived from the task list on demand; nothing
here caches them.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable, Iterable

from core.ownership import normalize_email, require_owner
from core.response import ErrorCode, Response
from core.task_gateway import RESYNC_NOTE, TaskGateway
from core.utils import percentage, round_half_up, utc_now
from models.classroom import Classroom
from models.submission import Submission
from models.task import Task
from models.task_board import BoardCommand, TaskBoard

logger = logging.getLogger(__name__)

PASSING_AVERAGE = 70


class GradeRow:
    """One graded task in a student's summary."""

    def __init__(
        self,
        task_id: str,
        task_title: str,
        grade: float,
        max_points: float,
        feedback: str = "",
    ):
        self.task_id = task_id
        self.task_title = task_title
        self.grade = grade
        self.max_points = max_points
        self.feedback = feedback

    def to_dict(self) -> dict:
        return {
            "taskId": self.task_id,
            "taskTitle": self.task_title,
            "grade": self.grade,
            "maxPoints": self.max_points,
            "feedback": self.feedback,
        }

    def __repr__(self) -> str:
        return f"GradeRow({self.task_id}, {self.grade}/{self.max_points})"


class StudentGradeSummary:

    def __init__(self, student_email: str, student_name: str, grades: list[GradeRow]):
        self._student_email = student_email
        self._student_name = student_name
        self._grades = list(grades)

    @property
    def student_email(self) -> str:
        return self._student_email

    @property
    def student_name(self) -> str:
        return self._student_name

    @property
    def grades(self) -> tuple[GradeRow, ...]:
        return tuple(self._grades)

    @property
    def total_points(self) -> float:
        return sum(row.grade for row in self._grades)

    @property
    def max_total_points(self) -> float:
        return sum(row.max_points for row in self._grades)

    @property
    def average(self) -> int:
        return percentage(self.total_points, self.max_total_points)

    def to_dict(self) -> dict:
        return {
            "studentEmail": self._student_email,
            "studentName": self._student_name,
            "grades": [row.to_dict() for row in self._grades],
            "totalPoints": self.total_points,
            "maxTotalPoints": self.max_total_points,
            "average": self.average,
        }

    def __repr__(self) -> str:
        return f"StudentGradeSummary({self._student_email}, {self.average}%)"


# === aggregate functions ===


def student_grade_summary(
    tasks: Iterable[Task], student_email: str, student_name: str | None = None
) -> StudentGradeSummary:
    """
    Builds a student's aggregate from graded submissions only.

    Ungraded and missing submissions do not count toward either total, so an instructor
    who has graded nothing yet sees an average of 0 rather than a failing grade.
    """
    email = normalize_email(student_email)
    rows = []

    for task in tasks:
        submission = task.find_submission_for(email)

        if submission is None or not submission.is_graded:
            continue

        if student_name is None:
            student_name = submission.student_name

        rows.append(
            GradeRow(
                task_id=task.id,
                task_title=task.title,
                grade=submission.grade,
                max_points=task.points,
                feedback=submission.feedback,
            )
        )

    return StudentGradeSummary(email, student_name or email, rows)


def gradebook_rows(classroom: Classroom, tasks: Iterable[Task] | None = None) -> list[StudentGradeSummary]:
    tasks = list(classroom.tasks if tasks is None else tasks)
    return [
        student_grade_summary(tasks, student.email, student.name)
        for student in classroom.students
    ]


def class_grade_statistics(summaries: Iterable[StudentGradeSummary]) -> dict[str, int]:
    averages = [summary.average for summary in summaries]

    if not averages:
        return {"average": 0, "highest": 0, "lowest": 0, "passing_rate": 0}

    passing = sum(1 for average in averages if average >= PASSING_AVERAGE)

    return {
        "average": round_half_up(sum(averages) / len(averages)),
        "highest": max(averages),
        "lowest": min(averages),
        "passing_rate": percentage(passing, len(averages)),
    }


class GradingSession:

    def __init__(
        self,
        board: TaskBoard,
        gateway: TaskGateway,
        actor_email: str,
        clock: Callable[[], datetime.datetime] = utc_now,
    ):
        self._board = board
        self._gateway = gateway
        self._actor_email = normalize_email(actor_email)
        self._clock = clock

    @property
    def actor_email(self) -> str:
        return self._actor_email

    def update_grade(
        self,
        task_id: str,
        submission_id: str | None,
        new_grade,
        feedback: str = "",
        student_email: str | None = None,
    ) -> Response:
        """
        Grades one submission.

        Args:
            task_id (str): The task the submission belongs to.
            submission_id (str | None): The submission's id.
            new_grade: The grade, anything castable to float within [0, task.points].
            feedback (str): Optional feedback for the student.
            student_email (str | None): Used to locate the submission when the id is unknown.

        Returns:
            Response: A structured response with the following contract:
                - success (bool): True if the backend accepted the grade.
                - error (ErrorCode | None):
                    - `ErrorCode.ACCESS_DENIED` if the actor does not own the classroom.
                    - `ErrorCode.NOT_FOUND` if the task or submission is not on the board.
                    - `ErrorCode.INVALID_FIELD_VALUE` if the grade is not a number within bounds.
                    - `ErrorCode.BACKEND_ERROR` if the backend refused or could not be reached.
                - data (dict): On success, "submission" (the updated Submission) and
                  "summary" (StudentGradeSummary for that student).

        Notes:
            - Validation and access failures never reach the network and leave the board unchanged.
            - If a resync removed the submission while the grade was in transit, the grade still
              counts as saved; "submission" is None and the detail says a refresh is pending.
        """
        denied = require_owner(self._board.classroom, self._actor_email, "grade submissions")
        if denied:
            return denied

        task = self._board.find_task(task_id)
        if task is None:
            return Response.fail(
                detail=f"No task found with id {task_id}.",
                error=ErrorCode.NOT_FOUND,
                status_code=404,
            )

        submission = task.find_submission_by_id(submission_id) or task.find_submission_for(
            student_email
        )
        if submission is None:
            return Response.fail(
                detail="No matching submission found for this task.",
                error=ErrorCode.NOT_FOUND,
                status_code=404,
            )

        try:
            grade = Submission.validate_grade_input(new_grade, task.points)

        except (TypeError, ValueError) as e:
            return Response.fail(
                detail=f"Grade validation failed: {e}",
                error=ErrorCode.INVALID_FIELD_VALUE,
            )

        response = self._gateway.grade_submission(
            self._board.classroom.id,
            task.id,
            submission.id,
            grade,
            feedback,
        )
        if not response.success:
            return response

        detail = response.detail
        updated = None

        try:
            self._board.apply(
                BoardCommand.SUBMISSION_GRADED,
                task_id=task.id,
                student_email=submission.student_email,
                grade=grade,
                feedback=feedback,
                graded_by=self._actor_email,
                graded_at=self._clock(),
            )
        except KeyError as e:
            logger.warning(
                "Graded submission from %s on task %s is no longer on the board: %s",
                submission.student_email,
                task.id,
                e,
            )
            detail = f"{detail} {RESYNC_NOTE}"
        else:
            logger.info(
                "Graded %s on task %s: %g/%g",
                submission.student_email,
                task.id,
                grade,
                task.points,
            )
            updated = self._board.find_task(task.id).find_submission_for(
                submission.student_email
            )

        return Response.succeed(
            detail=detail,
            status_code=response.status_code,
            data={
                "submission": updated,
                "summary": self.summary_for(submission.student_email),
            },
        )

    def summary_for(self, student_email: str) -> StudentGradeSummary:
        student = self._board.classroom.find_student(student_email)
        return student_grade_summary(
            self._board.tasks, student_email, student.name if student else None
        )

    def gradebook(self) -> list[StudentGradeSummary]:
        return gradebook_rows(self._board.classroom, self._board.tasks)

    def class_statistics(self) -> dict[str, int]:
        return class_grade_statistics(self.gradebook())
