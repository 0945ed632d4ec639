# core/task_status.py

"""
Derives what a task looks like to a given actor.

Everything here is pure: no I/O, no mutation, and every function returns a value for every
input. A task without a parsable due date simply never becomes overdue.

Student precedence:    overdue > graded > completed > pending
Instructor precedence: overdue > needs-grading > graded

For instructors, overdue and graded-ness are independent facts; overdue is reported even
when every submission has been graded.
"""

from __future__ import annotations

import datetime
import math
from collections.abc import Iterable
from enum import Enum

from core.ownership import Role
from core.utils import percentage, utc_now
from models.task import Task

STATUS_FILTER_ALL = "all"


class TaskStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    GRADED = "graded"
    OVERDUE = "overdue"
    NEEDS_GRADING = "needs-grading"


STUDENT_STATUSES = (
    TaskStatus.PENDING,
    TaskStatus.COMPLETED,
    TaskStatus.GRADED,
    TaskStatus.OVERDUE,
)

OWNER_STATUSES = (
    TaskStatus.NEEDS_GRADING,
    TaskStatus.GRADED,
    TaskStatus.OVERDUE,
)


def derive_status(
    task: Task,
    actor_email: str | None,
    role: Role,
    now: datetime.datetime | None = None,
) -> TaskStatus:
    now = _aware(now or utc_now())
    past_due = task.is_past_due(now)

    if role == Role.OWNER:
        if past_due:
            return TaskStatus.OVERDUE

        if task.submission_count == 0 or any(
            not submission.is_graded for submission in task.submissions
        ):
            return TaskStatus.NEEDS_GRADING

        return TaskStatus.GRADED

    submission = task.find_submission_for(actor_email)

    if submission is None:
        return TaskStatus.OVERDUE if past_due else TaskStatus.PENDING

    if submission.is_graded:
        return TaskStatus.GRADED

    return TaskStatus.COMPLETED


def calculate_task_stats(
    tasks: Iterable[Task],
    actor_email: str | None,
    role: Role,
    now: datetime.datetime | None = None,
) -> dict[str, int]:
    """
    Counts tasks by derived status for the actor's role.

    Returns:
        dict[str, int]:
            - Owners: "total", "needs_grading", "graded", "overdue".
            - Everyone else: "total", "pending", "completed", "graded", "overdue".
    """
    now = now or utc_now()
    statuses = [derive_status(task, actor_email, role, now) for task in tasks]
    buckets = OWNER_STATUSES if role == Role.OWNER else STUDENT_STATUSES

    stats = {"total": len(statuses)}
    for status in buckets:
        stats[status.value.replace("-", "_")] = statuses.count(status)

    return stats


def filter_tasks(
    tasks: Iterable[Task],
    status_filter: TaskStatus | str,
    actor_email: str | None,
    role: Role,
    now: datetime.datetime | None = None,
) -> list[Task]:
    tasks = list(tasks)

    if status_filter == STATUS_FILTER_ALL:
        return tasks

    try:
        wanted = TaskStatus(status_filter)
    except ValueError:
        return []

    now = now or utc_now()
    return [task for task in tasks if derive_status(task, actor_email, role, now) == wanted]


def can_submit(
    task: Task,
    actor_email: str | None,
    now: datetime.datetime | None = None,
    allow_late: bool = False,
) -> bool:
    """
    Whether the submit action should be offered to a student.

    Args:
        allow_late (bool): Instructor override that lifts the deadline.
    """
    if not actor_email:
        return False

    if task.has_submitted(actor_email) and not task.allow_resubmission:
        return False

    if allow_late:
        return True

    return not task.is_past_due(_aware(now or utc_now()))


def can_view_submission(task: Task, actor_email: str | None, role: Role) -> bool:
    return role == Role.OWNER or task.has_submitted(actor_email)


def submission_percentage(task: Task, student_count: int) -> int:
    return percentage(task.submission_count, student_count)


def days_until_due(task: Task, now: datetime.datetime | None = None) -> int | None:
    if task.due_date_dt is None:
        return None

    remaining = _aware(task.due_date_dt) - _aware(now or utc_now())
    return math.ceil(remaining.total_seconds() / 86400)


# === helper methods ===


def _aware(moment: datetime.datetime) -> datetime.datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=datetime.timezone.utc)

    return moment
