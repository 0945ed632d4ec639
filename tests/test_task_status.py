# tests/test_task_status.py

import datetime

from conftest import ALICE, BOB, CAROL, NOW

from core.ownership import Role
from core.task_status import (
    STATUS_FILTER_ALL,
    TaskStatus,
    calculate_task_stats,
    can_submit,
    can_view_submission,
    days_until_due,
    derive_status,
    filter_tasks,
    submission_percentage,
)
from models.submission import Submission
from models.task import Task

UTC = datetime.timezone.utc


def _task(sample_classroom, task_id):
    return next(task for task in sample_classroom.tasks if task.id == task_id)


# === student view ===


def test_student_statuses(sample_classroom):
    assert derive_status(_task(sample_classroom, "t001"), ALICE, Role.MEMBER, NOW) == TaskStatus.GRADED
    assert derive_status(_task(sample_classroom, "t001"), BOB, Role.MEMBER, NOW) == TaskStatus.PENDING
    assert derive_status(_task(sample_classroom, "t002"), ALICE, Role.MEMBER, NOW) == TaskStatus.OVERDUE
    assert derive_status(_task(sample_classroom, "t003"), BOB, Role.MEMBER, NOW) == TaskStatus.COMPLETED


def test_late_submission_is_completed_not_overdue():
    task = Task(
        "t100",
        "Essay",
        due_date=datetime.datetime(2025, 2, 1, tzinfo=UTC),
        submissions=[
            Submission(
                "sub100",
                "t100",
                ALICE,
                submitted_at=datetime.datetime(2025, 2, 3, tzinfo=UTC),
                text="late",
            )
        ],
    )

    assert derive_status(task, ALICE, Role.MEMBER, NOW) == TaskStatus.COMPLETED


def test_task_without_due_date_is_never_overdue():
    task = Task("t101", "Journal")
    far_future = datetime.datetime(2100, 1, 1, tzinfo=UTC)

    assert derive_status(task, ALICE, Role.MEMBER, far_future) == TaskStatus.PENDING
    assert days_until_due(task, far_future) is None


# === instructor view ===


def test_owner_statuses(sample_classroom):
    assert derive_status(_task(sample_classroom, "t001"), None, Role.OWNER, NOW) == TaskStatus.GRADED
    assert derive_status(_task(sample_classroom, "t002"), None, Role.OWNER, NOW) == TaskStatus.OVERDUE
    assert derive_status(_task(sample_classroom, "t003"), None, Role.OWNER, NOW) == TaskStatus.NEEDS_GRADING


def test_owner_overdue_even_when_fully_graded(sample_classroom):
    after_deadline = datetime.datetime(2025, 3, 20, tzinfo=UTC)
    assert derive_status(_task(sample_classroom, "t001"), None, Role.OWNER, after_deadline) == TaskStatus.OVERDUE


def test_owner_task_without_submissions_needs_grading():
    assert derive_status(Task("t102", "Empty"), None, Role.OWNER, NOW) == TaskStatus.NEEDS_GRADING


# === aggregates ===


def test_student_stats(sample_classroom):
    assert calculate_task_stats(sample_classroom.tasks, CAROL, Role.MEMBER, NOW) == {
        "total": 3,
        "pending": 2,
        "completed": 0,
        "graded": 0,
        "overdue": 1,
    }


def test_owner_stats(sample_classroom):
    assert calculate_task_stats(sample_classroom.tasks, None, Role.OWNER, NOW) == {
        "total": 3,
        "needs_grading": 1,
        "graded": 1,
        "overdue": 1,
    }


def test_filter_tasks(sample_classroom):
    tasks = sample_classroom.tasks

    assert len(filter_tasks(tasks, STATUS_FILTER_ALL, ALICE, Role.MEMBER, NOW)) == 3
    assert [t.id for t in filter_tasks(tasks, "graded", ALICE, Role.MEMBER, NOW)] == ["t001"]
    assert [t.id for t in filter_tasks(tasks, TaskStatus.OVERDUE, ALICE, Role.MEMBER, NOW)] == ["t002"]
    assert filter_tasks(tasks, "archived", ALICE, Role.MEMBER, NOW) == []


# === action guards ===


def test_can_submit(sample_classroom):
    assert can_submit(_task(sample_classroom, "t001"), BOB, NOW)
    assert not can_submit(_task(sample_classroom, "t002"), BOB, NOW)
    assert can_submit(_task(sample_classroom, "t002"), BOB, NOW, allow_late=True)
    assert not can_submit(_task(sample_classroom, "t001"), None, NOW)


def test_can_submit_respects_resubmission_flag(sample_classroom):
    assert not can_submit(_task(sample_classroom, "t003"), BOB, NOW)
    assert can_submit(_task(sample_classroom, "t001"), ALICE, NOW)


def test_can_view_submission(sample_classroom):
    task = _task(sample_classroom, "t001")

    assert can_view_submission(task, None, Role.OWNER)
    assert can_view_submission(task, ALICE, Role.MEMBER)
    assert not can_view_submission(task, BOB, Role.MEMBER)


def test_submission_percentage(sample_classroom):
    assert submission_percentage(_task(sample_classroom, "t001"), 3) == 33
    assert submission_percentage(_task(sample_classroom, "t001"), 0) == 0


def test_days_until_due(sample_classroom):
    assert days_until_due(_task(sample_classroom, "t001"), NOW) == 10
    assert days_until_due(_task(sample_classroom, "t002"), NOW) == -8
