# tests/conftest.py

import copy
import datetime
import json

import httpx
import pytest

from core.task_gateway import TaskGateway
from models.classroom import Classroom
from models.student import Student
from models.submission import Submission
from models.task import Task
from models.task_board import TaskBoard

NOW = datetime.datetime(2025, 3, 1, 12, 0, tzinfo=datetime.timezone.utc)
TEACHER = "teacher@school.edu"
ALICE = "alice@school.edu"
BOB = "bob@school.edu"
CAROL = "carol@school.edu"

CLASSROOM_RECORD = {
    "_id": "c001",
    "name": "Intro to Theatre",
    "subject": "THTR 274A",
    "teacherEmail": TEACHER,
    "students": [
        {"email": ALICE, "name": "Alice"},
        {"email": BOB, "name": "Bob"},
        CAROL,
    ],
    "tasks": {
        "assignments": [
            {
                "id": "t001",
                "title": "Monologue",
                "type": "assignment",
                "dueDate": "2025-03-10T23:59:00Z",
                "points": 100,
                "submissions": [
                    {
                        "id": "sub001",
                        "studentEmail": ALICE,
                        "studentName": "Alice",
                        "submittedAt": "2025-02-27T10:00:00Z",
                        "text": "To be or not to be",
                        "grade": 80,
                        "feedback": "Good pacing",
                    },
                ],
            },
            {
                "id": "t002",
                "title": "Blocking quiz",
                "type": "quiz",
                "dueDate": "2025-02-20T23:59:00Z",
                "points": 50,
                "submissions": [],
            },
            {
                "id": "t003",
                "title": "Final project",
                "type": "project",
                "dueDate": "2025-03-15T23:59:00Z",
                "points": 200,
                "allowResubmission": False,
                "submissions": [
                    {
                        "_id": "sub002",
                        "studentEmail": BOB,
                        "studentName": "Bob",
                        "submittedAt": "2025-02-28T09:30:00Z",
                        "fileUrl": "https://files.example.com/bob-project.pdf",
                        "fileName": "bob-project.pdf",
                    },
                ],
            },
        ]
    },
}


class ManualScheduler:
    """Queues scheduled callbacks until the test runs them."""

    def __init__(self):
        self.calls = []

    def schedule(self, delay, callback, *args):
        self.calls.append((delay, callback, args))

    @property
    def pending_count(self):
        return len(self.calls)

    def cancel_all(self):
        self.calls = []

    def run_pending(self):
        calls, self.calls = self.calls, []
        for _, callback, args in calls:
            callback(*args)


class FakeBackend:
    """
    Routes (method, path) pairs to canned replies and records every request.

    A route value is either (status, body) or a callable taking the `httpx.Request`.
    Unrouted requests answer 404 with an empty JSON object.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def route(self, method, path, status=200, body=None):
        self.routes[(method, path)] = (status, body if body is not None else {})

    def handler(self, request):
        self.requests.append(request)
        reply = self.routes.get((request.method, request.url.path), (404, {}))

        if callable(reply):
            return reply(request)

        status, body = reply

        if isinstance(body, (bytes, str)):
            return httpx.Response(status, content=body)

        return httpx.Response(status, json=body)

    def sent_json(self, index=-1):
        return json.loads(self.requests[index].content)

    def client(self):
        return httpx.Client(
            base_url="http://testserver", transport=httpx.MockTransport(self.handler)
        )


def declining(title, text):
    return False


def accepting(title, text):
    return True


@pytest.fixture
def classroom_record():
    return copy.deepcopy(CLASSROOM_RECORD)


@pytest.fixture
def sample_classroom(classroom_record):
    return Classroom.from_dict(classroom_record)


@pytest.fixture
def sample_board(sample_classroom):
    return TaskBoard(sample_classroom)


@pytest.fixture
def manual_scheduler():
    return ManualScheduler()


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def gateway(fake_backend):
    return TaskGateway(fake_backend.client(), confirm=accepting, actor_email=TEACHER)


@pytest.fixture
def sample_student():
    return Student(ALICE, "Alice")


@pytest.fixture
def sample_task():
    return Task(
        id="t001",
        title="Monologue",
        due_date=datetime.datetime(2025, 3, 10, 23, 59, tzinfo=datetime.timezone.utc),
        points=100.0,
    )


@pytest.fixture
def sample_submission():
    return Submission(
        id="sub001",
        task_id="t001",
        student_email=" Alice@School.edu ",
        student_name="Alice",
        submitted_at=datetime.datetime(2025, 2, 27, 10, 0, tzinfo=datetime.timezone.utc),
        text="To be or not to be",
    )
