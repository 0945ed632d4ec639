# models/student.py

"""
Represents a student on a classroom roster.

The backend stores roster entries either as bare email strings or as objects with an
email and a display name. Email is the student's identity everywhere in the client:
roster membership, submission authorship, and grade summaries all join on it.

Includes functionality for:
- Validating and normalizing email input
- Falling back to the email when no display name is known
- Serializing to and from JSON-compatible dictionaries
"""

from __future__ import annotations

import re
from typing import Any


class Student:

    def __init__(self, email: str, name: str | None = None):
        self._email: str = Student.validate_email_input(email)
        self._name: str | None = name.strip() if name and name.strip() else None

    # === properties ===

    @property
    def email(self) -> str:
        return self._email

    @email.setter
    def email(self, email: str) -> None:
        self._email = Student.validate_email_input(email)

    @property
    def name(self) -> str:
        return self._name or self._email

    @name.setter
    def name(self, name: str | None) -> None:
        self._name = name.strip() if name and name.strip() else None

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "email": self._email,
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Student:
        """
        Builds a `Student` from either roster representation.

        Args:
            data: A bare email string, or a dict with "email" and optionally "name" or "displayName".

        Raises:
            TypeError: If the entry is neither a string nor a dict.
            ValueError: If the email is blank.
        """
        if isinstance(data, str):
            return cls(email=data)

        if not isinstance(data, dict):
            raise TypeError(f"Unsupported roster entry: {data!r}")

        return cls(
            email=data.get("email") or "",
            name=data.get("name") or data.get("displayName"),
        )

    # === dunder methods ===

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Student) and other._email == self._email

    def __hash__(self) -> int:
        return hash(self._email)

    def __repr__(self) -> str:
        return f"Student({self._email}, {self._name})"

    def __str__(self) -> str:
        return f"STUDENT: name: {self.name}, email: {self._email}"

    # === data validators ===

    @staticmethod
    def validate_email_input(email: Any) -> str:
        """
        Normalizes a roster email address.

        Strips surrounding whitespace and lower-cases the address. Roster data comes
        from a legacy backend, so only blank values and embedded whitespace are
        rejected; a missing domain is tolerated.

        Raises:
            TypeError: If the email is not a string.
            ValueError: If the email is blank or contains whitespace.
        """
        if not isinstance(email, str):
            raise TypeError("Invalid input. Email must be a string.")

        email = email.strip().lower()

        if not email:
            raise ValueError("Invalid input. Email cannot be blank.")

        if re.search(r"\s", email):
            raise ValueError("Invalid input. Email cannot contain whitespace.")

        return email
