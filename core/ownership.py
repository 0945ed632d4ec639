# core/ownership.py

"""
Decides whether an actor owns a classroom, belongs to it, or has no access.

Classroom records carry the owner's identity under many historical field names. Instead of
an if-chain, the names live in `OWNER_FIELDS`: an ordered tuple of tagged accessors that
are evaluated uniformly.

All checks are OR'd. Owner wins over member. An actor that matches nothing is denied;
there is no fail-open path.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Any

from core.response import Response
from models.classroom import Classroom

logger = logging.getLogger(__name__)


class Role(str, Enum):
    OWNER = "owner"
    MEMBER = "member"
    NONE = "none"


class FieldKind(str, Enum):
    # "owner": "t@x.com", or a dotted path such as "user.email"
    SCALAR = "scalar"
    # "teachers": ["t@x.com", ...]
    SCALAR_ARRAY = "scalar_array"
    # "teachers": [{"email": "t@x.com"}, ...]; bare strings are accepted too
    OBJECT_ARRAY = "object_array"
    # "members": [{"email": "t@x.com", "role": "teacher"}, ...]
    ROLE_MEMBERS = "role_members"


OWNER_ROLES = frozenset({"owner", "teacher", "instructor", "admin"})
MEMBER_IDENTITY_KEYS = ("email", "userEmail", "studentEmail")


class OwnerField:
    """One place in a classroom record where an owner's identity may live."""

    def __init__(self, kind: FieldKind, path: str):
        self._kind = kind
        self._path = path

    @property
    def kind(self) -> FieldKind:
        return self._kind

    @property
    def path(self) -> str:
        return self._path

    def read(self, record: dict) -> Any:
        value: Any = record
        for part in self._path.split("."):
            if not isinstance(value, dict):
                return None
            value = value.get(part)
        return value

    def emails(self, record: dict) -> Iterator[str]:
        """Yields every normalized email this field names as an owner."""
        value = self.read(record)

        if value is None:
            return

        if self._kind == FieldKind.SCALAR:
            if isinstance(value, (str, int)) and not isinstance(value, bool):
                yield normalize_email(value)

        elif self._kind == FieldKind.SCALAR_ARRAY:
            if isinstance(value, list):
                for entry in value:
                    if isinstance(entry, str) and entry.strip():
                        yield normalize_email(entry)

        elif self._kind == FieldKind.OBJECT_ARRAY:
            if isinstance(value, list):
                for entry in value:
                    email = _entry_email(entry, ("email",))
                    if email:
                        yield email

        elif self._kind == FieldKind.ROLE_MEMBERS:
            if isinstance(value, list):
                for entry in value:
                    if isinstance(entry, dict) and _member_role(entry) in OWNER_ROLES:
                        email = _entry_email(entry, MEMBER_IDENTITY_KEYS)
                        if email:
                            yield email

    def __repr__(self) -> str:
        return f"OwnerField({self._kind.value}, {self._path})"


OWNER_FIELDS: tuple[OwnerField, ...] = (
    OwnerField(FieldKind.SCALAR, "owner"),
    OwnerField(FieldKind.SCALAR, "teacher"),
    OwnerField(FieldKind.SCALAR, "instructor"),
    OwnerField(FieldKind.SCALAR, "createdBy"),
    OwnerField(FieldKind.SCALAR, "teacherEmail"),
    OwnerField(FieldKind.SCALAR, "createdByEmail"),
    OwnerField(FieldKind.SCALAR, "ownerEmail"),
    OwnerField(FieldKind.SCALAR, "creatorEmail"),
    OwnerField(FieldKind.SCALAR, "creator"),
    OwnerField(FieldKind.SCALAR, "user.email"),
    OwnerField(FieldKind.SCALAR, "createdByUser.email"),
    OwnerField(FieldKind.OBJECT_ARRAY, "teachers"),
    OwnerField(FieldKind.OBJECT_ARRAY, "instructors"),
    OwnerField(FieldKind.ROLE_MEMBERS, "members"),
)


# === public functions ===


def normalize_email(email: Any) -> str:
    if email is None:
        return ""

    return str(email).strip().lower()


def owner_emails(
    classroom: Classroom | dict, fields: Iterable[OwnerField] = OWNER_FIELDS
) -> set[str]:
    record = _record_of(classroom)
    return {email for field in fields for email in field.emails(record) if email}


def matching_owner_fields(
    classroom: Classroom | dict,
    actor_email: str | None,
    fields: Iterable[OwnerField] = OWNER_FIELDS,
) -> list[OwnerField]:
    actor = normalize_email(actor_email)

    if not actor:
        return []

    record = _record_of(classroom)
    return [field for field in fields if actor in set(field.emails(record))]


def resolve_role(
    classroom: Classroom | dict,
    actor_email: str | None,
    fields: Iterable[OwnerField] = OWNER_FIELDS,
) -> Role:
    """
    Resolves the actor's role in a classroom.

    Args:
        classroom (Classroom | dict): The classroom model or its raw backend record.
        actor_email (str | None): The acting user's email, in any case and with any padding.
        fields (Iterable[OwnerField]): Owner-bearing fields to check. Defaults to `OWNER_FIELDS`.

    Returns:
        Role:
            - `Role.OWNER` if any owner-bearing field names the actor.
            - `Role.MEMBER` if the actor is on the roster or is a non-owner member entry.
            - `Role.NONE` otherwise, including for a blank actor.
    """
    actor = normalize_email(actor_email)

    if not actor:
        return Role.NONE

    if matching_owner_fields(classroom, actor, fields):
        return Role.OWNER

    record = _record_of(classroom)

    if actor in _member_emails(record) or actor in _student_emails(record):
        return Role.MEMBER

    logger.info("No ownership or membership found for %s", actor)
    return Role.NONE


def is_owner(classroom: Classroom | dict, actor_email: str | None) -> bool:
    return resolve_role(classroom, actor_email) == Role.OWNER


def has_access(classroom: Classroom | dict, actor_email: str | None) -> bool:
    return resolve_role(classroom, actor_email) != Role.NONE


def require_owner(
    classroom: Classroom | dict, actor_email: str | None, action: str
) -> Response | None:
    """
    Returns an ACCESS_DENIED response unless the actor owns the classroom.

    Returns:
        None when the actor is the owner, otherwise the failure response to hand back.
    """
    if is_owner(classroom, actor_email):
        return None

    return Response.deny(f"Only the classroom teacher can {action}.")


def require_member(
    classroom: Classroom | dict, actor_email: str | None, action: str
) -> Response | None:
    if resolve_role(classroom, actor_email) == Role.MEMBER:
        return None

    return Response.deny(f"Only enrolled students can {action}.")


def require_access(classroom: Classroom | dict, actor_email: str | None) -> Response | None:
    if has_access(classroom, actor_email):
        return None

    return Response.deny("You do not have permission to access this classroom.")


# === helper methods ===


def _record_of(classroom: Classroom | dict) -> dict:
    if isinstance(classroom, Classroom):
        return classroom.record

    return classroom or {}


def _entry_email(entry: Any, keys: Iterable[str]) -> str:
    if isinstance(entry, str):
        return normalize_email(entry)

    if isinstance(entry, dict):
        for key in keys:
            email = normalize_email(entry.get(key))
            if email:
                return email

    return ""


def _member_role(entry: dict) -> str:
    role = entry.get("role")
    return role.strip().lower() if isinstance(role, str) else ""


def _member_emails(record: dict) -> set[str]:
    members = record.get("members")

    if not isinstance(members, list):
        return set()

    return {
        email
        for email in (_entry_email(entry, MEMBER_IDENTITY_KEYS) for entry in members)
        if email
    }


def _student_emails(record: dict) -> set[str]:
    students = record.get("students")

    if not isinstance(students, list):
        return set()

    return {
        email for email in (_entry_email(entry, ("email",)) for entry in students) if email
    }
