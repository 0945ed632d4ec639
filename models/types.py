# models/types.py

"""
Holds TypeVar definition for simplifying type checks.
"""

from typing import TypeVar

from .submission import Submission
from .task import Task

RecordType = TypeVar("RecordType", Task, Submission)
