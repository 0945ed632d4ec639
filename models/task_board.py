# models/task_board.py

"""
The TaskBoard is the client's single source of truth for a classroom's task list.

Every change goes through `TaskBoard.apply()`, which takes a `BoardCommand` and its payload
and publishes a new immutable `BoardSnapshot`. Snapshots are either CONFIRMED (they reflect
what the backend returned) or PROVISIONAL (they include local edits the backend has
accepted but the client has not yet re-read).

The two phases make the post-submit race explicit: a RESYNC always replaces the whole task
list with the backend's version, discarding every provisional edit, whether or not the
backend has caught up with it.
"""

from __future__ import annotations

import datetime
import logging
import threading
from collections import deque
from collections.abc import Callable, Iterable
from enum import Enum

from core.config import DEFAULT_HISTORY_LIMIT
from core.utils import utc_now
from models.classroom import Classroom
from models.submission import Submission
from models.task import Task
from models.types import RecordType

logger = logging.getLogger(__name__)


class SnapshotPhase(str, Enum):
    CONFIRMED = "confirmed"
    PROVISIONAL = "provisional"


class BoardCommand(str, Enum):
    LOAD = "load"
    RESYNC = "resync"
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    SUBMISSION_RECORDED = "submission_recorded"
    SUBMISSION_GRADED = "submission_graded"


class BoardSnapshot:
    """
    One published state of the board.

    Notes:
        - `provisional_keys` holds (task_id, key) pairs for edits not yet confirmed by a resync.
          Submissions are keyed by student email; grades by "grade:<student email>".
        - Tasks inside a snapshot are never mutated after publication; reducers copy on write.
    """

    def __init__(
        self,
        version: int,
        command: BoardCommand,
        tasks: tuple[Task, ...],
        provisional_keys: frozenset[tuple[str, str]] = frozenset(),
        created_at: datetime.datetime | None = None,
    ):
        self._version = version
        self._command = command
        self._tasks = tasks
        self._provisional_keys = provisional_keys
        self._created_at = created_at or utc_now()

    @property
    def version(self) -> int:
        return self._version

    @property
    def command(self) -> BoardCommand:
        return self._command

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    @property
    def provisional_keys(self) -> frozenset[tuple[str, str]]:
        return self._provisional_keys

    @property
    def phase(self) -> SnapshotPhase:
        return (
            SnapshotPhase.PROVISIONAL
            if self._provisional_keys
            else SnapshotPhase.CONFIRMED
        )

    @property
    def created_at(self) -> datetime.datetime:
        return self._created_at

    def __repr__(self) -> str:
        return f"BoardSnapshot({self._version}, {self._command.value}, {self.phase.value}, {len(self._tasks)})"


class TaskBoard:

    def __init__(self, classroom: Classroom, history_limit: int = DEFAULT_HISTORY_LIMIT):
        if history_limit < 1:
            raise ValueError("Invalid history limit. Must keep at least one snapshot.")

        self._classroom = classroom
        self._lock = threading.RLock()
        # oldest snapshots fall off once the limit is reached
        self._history: deque[BoardSnapshot] = deque(
            [BoardSnapshot(0, BoardCommand.LOAD, tuple(classroom.tasks))],
            maxlen=history_limit,
        )
        self._reducers: dict[BoardCommand, Callable[..., BoardSnapshot]] = {
            BoardCommand.LOAD: self._reduce_classroom,
            BoardCommand.RESYNC: self._reduce_classroom,
            BoardCommand.TASK_CREATED: self._reduce_task_created,
            BoardCommand.TASK_UPDATED: self._reduce_task_updated,
            BoardCommand.TASK_DELETED: self._reduce_task_deleted,
            BoardCommand.SUBMISSION_RECORDED: self._reduce_submission_recorded,
            BoardCommand.SUBMISSION_GRADED: self._reduce_submission_graded,
        }

    # === properties ===

    @property
    def classroom(self) -> Classroom:
        return self._classroom

    @property
    def current(self) -> BoardSnapshot:
        with self._lock:
            return self._history[-1]

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self.current.tasks

    @property
    def history_limit(self) -> int:
        return self._history.maxlen

    @property
    def history(self) -> tuple[BoardSnapshot, ...]:
        with self._lock:
            return tuple(self._history)

    @property
    def is_provisional(self) -> bool:
        return self.current.phase == SnapshotPhase.PROVISIONAL

    # === data accessors ===

    def find_task(self, task_id: str | None) -> Task | None:
        return _find_by_id(self.tasks, task_id)

    def is_key_provisional(self, task_id: str, key: str) -> bool:
        return (task_id, key.strip().lower()) in self.current.provisional_keys

    # === reducer entry point ===

    def apply(self, command: BoardCommand, **payload) -> BoardSnapshot:
        """
        Applies a command and publishes the resulting snapshot.

        Args:
            command (BoardCommand): The change to apply.
            **payload: Command-specific arguments:
                - LOAD / RESYNC: classroom (Classroom)
                - TASK_CREATED / TASK_UPDATED: task (Task)
                - TASK_DELETED: task_id (str)
                - SUBMISSION_RECORDED: task_id (str), submission (Submission)
                - SUBMISSION_GRADED: task_id (str), student_email (str), grade (float),
                  feedback (str), graded_by (str | None), graded_at (datetime | None)

        Returns:
            BoardSnapshot: The newly published snapshot.

        Raises:
            KeyError: If a command references a task that is not on the board.
            TypeError / ValueError: If the payload is missing arguments or fails validation.

        Notes:
            - A failed command publishes nothing; the previous snapshot stays current.
        """
        with self._lock:
            reducer = self._reducers[command]
            snapshot = reducer(self._history[-1], command, **payload)
            self._history.append(snapshot)

        logger.debug(
            "Board v%s after %s (%s)",
            snapshot.version,
            command.value,
            snapshot.phase.value,
        )
        return snapshot

    # --- convenience wrappers ---

    def load(self, classroom: Classroom) -> BoardSnapshot:
        return self.apply(BoardCommand.LOAD, classroom=classroom)

    def resync(self, classroom: Classroom) -> BoardSnapshot:
        return self.apply(BoardCommand.RESYNC, classroom=classroom)

    def record_submission(self, task_id: str, submission: Submission) -> BoardSnapshot:
        return self.apply(
            BoardCommand.SUBMISSION_RECORDED, task_id=task_id, submission=submission
        )

    # === reducers ===

    def _reduce_classroom(
        self, previous: BoardSnapshot, command: BoardCommand, classroom: Classroom
    ) -> BoardSnapshot:
        # full overwrite, never a merge
        self._classroom = classroom
        return BoardSnapshot(previous.version + 1, command, tuple(classroom.tasks))

    def _reduce_task_created(
        self, previous: BoardSnapshot, command: BoardCommand, task: Task
    ) -> BoardSnapshot:
        tasks = tuple(t for t in previous.tasks if t.id != task.id) + (task,)
        return BoardSnapshot(
            previous.version + 1, command, tasks, previous.provisional_keys
        )

    def _reduce_task_updated(
        self, previous: BoardSnapshot, command: BoardCommand, task: Task
    ) -> BoardSnapshot:
        self._require_task(previous, task.id)
        tasks = tuple(task if t.id == task.id else t for t in previous.tasks)
        return BoardSnapshot(
            previous.version + 1, command, tasks, previous.provisional_keys
        )

    def _reduce_task_deleted(
        self, previous: BoardSnapshot, command: BoardCommand, task_id: str
    ) -> BoardSnapshot:
        self._require_task(previous, task_id)
        tasks = tuple(t for t in previous.tasks if t.id != task_id)
        keys = frozenset(key for key in previous.provisional_keys if key[0] != task_id)
        return BoardSnapshot(previous.version + 1, command, tasks, keys)

    def _reduce_submission_recorded(
        self,
        previous: BoardSnapshot,
        command: BoardCommand,
        task_id: str,
        submission: Submission,
    ) -> BoardSnapshot:
        task = self._require_task(previous, task_id).copy()
        task.upsert_submission(submission)

        keys = previous.provisional_keys | {(task_id, submission.student_email)}
        return BoardSnapshot(
            previous.version + 1, command, _replace_task(previous.tasks, task), keys
        )

    def _reduce_submission_graded(
        self,
        previous: BoardSnapshot,
        command: BoardCommand,
        task_id: str,
        student_email: str,
        grade: float,
        feedback: str | None = None,
        graded_by: str | None = None,
        graded_at: datetime.datetime | None = None,
    ) -> BoardSnapshot:
        task = self._require_task(previous, task_id).copy()
        submission = task.find_submission_for(student_email)

        if submission is None:
            raise KeyError(f"No submission from {student_email} on task {task_id}.")

        submission.apply_grade(
            grade,
            task.points,
            feedback=feedback,
            graded_by=graded_by,
            graded_at=graded_at or utc_now(),
        )

        keys = previous.provisional_keys | {
            (task_id, f"grade:{submission.student_email}")
        }
        return BoardSnapshot(
            previous.version + 1, command, _replace_task(previous.tasks, task), keys
        )

    # === helper methods ===

    def _require_task(self, snapshot: BoardSnapshot, task_id: str) -> Task:
        task = _find_by_id(snapshot.tasks, task_id)

        if task is None:
            raise KeyError(f"Task {task_id} is not on the board.")

        return task

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"TaskBoard({self._classroom.id}, {self.current!r})"


def _find_by_id(records: Iterable[RecordType], record_id: str | None) -> RecordType | None:
    if not record_id:
        return None

    for record in records:
        if record.id == record_id:
            return record

    return None


def _replace_task(tasks: tuple[Task, ...], task: Task) -> tuple[Task, ...]:
    return tuple(task if t.id == task.id else t for t in tasks)
