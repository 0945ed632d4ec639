# core/response.py

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    # === Not Found ===
    NOT_FOUND = "NOT_FOUND"

    # === Validation Failures ===
    # required argument or identifier is missing
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"

    # input structure is malformed or incomplete
    INVALID_INPUT = "INVALID_INPUT"

    # field value is out of bounds or incorrectly formatted
    INVALID_FIELD_VALUE = "INVALID_FIELD_VALUE"

    # the value is valid in isolation, but violates system rules
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # === State Restrictions ===
    RESUBMISSION_NOT_ALLOWED = "RESUBMISSION_NOT_ALLOWED"
    SUBMISSION_IN_FLIGHT = "SUBMISSION_IN_FLIGHT"

    # === User Decisions ===
    # a confirmation prompt was declined, not a failure
    CANCELLED = "CANCELLED"

    # === Authorization ===
    ACCESS_DENIED = "ACCESS_DENIED"

    # === Backend Faults ===
    # non-success response or transport failure
    BACKEND_ERROR = "BACKEND_ERROR"

    # === Internal Faults ===
    INTERNAL_ERROR = "INTERNAL_ERROR"


VALIDATION_ERRORS = frozenset(
    {
        ErrorCode.MISSING_REQUIRED_FIELD,
        ErrorCode.INVALID_INPUT,
        ErrorCode.INVALID_FIELD_VALUE,
        ErrorCode.VALIDATION_FAILED,
        ErrorCode.RESUBMISSION_NOT_ALLOWED,
        ErrorCode.SUBMISSION_IN_FLIGHT,
    }
)


class Response:
    """
    Standard Response object for task commands, submissions, and grading.

    Attributes:
        success (bool): Indicates whether the operation succeeded.
        detail (str | None): Optional human-readable explanation.
        error (ErrorCode | str | None): Optional machine-readable error identifier.
        status_code (int | None): Optional HTTP response code.
        data (dict): Optional payload, varies by operation.
        cancelled (bool): True when the user declined a confirmation prompt.
        trace (str | None): Optional exception traceback when errors occur.
    """

    def __init__(
        self,
        success: bool,
        detail: str | None = None,
        error: ErrorCode | str | None = None,
        status_code: int | None = None,
        data: dict | None = None,
        cancelled: bool = False,
        trace: str | None = None,
    ):
        self._success = success
        self._detail = detail
        self._error = error
        self._status_code = status_code
        self._data = data or {}
        self._cancelled = cancelled
        self._trace = trace

    # === properties ===

    @property
    def success(self) -> bool:
        return self._success

    @property
    def detail(self) -> str | None:
        return self._detail

    @property
    def error(self) -> ErrorCode | str | None:
        return self._error

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def data(self) -> dict:
        return self._data or {}

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def trace(self) -> str | None:
        return self._trace

    # --- classification ---

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def is_validation_error(self) -> bool:
        return not self._success and self._error in VALIDATION_ERRORS

    @property
    def is_access_denied(self) -> bool:
        return not self._success and self._error == ErrorCode.ACCESS_DENIED

    @property
    def is_backend_error(self) -> bool:
        return not self._success and self._error == ErrorCode.BACKEND_ERROR

    # === public classmethods ===

    @classmethod
    def succeed(
        cls,
        detail: str | None = None,
        status_code: int | None = 200,
        data: dict | None = None,
    ) -> Response:
        return cls(
            success=True,
            detail=detail,
            error=None,
            status_code=status_code,
            data=data,
        )

    @classmethod
    def fail(
        cls,
        detail: str | None = None,
        error: ErrorCode | str | None = None,
        status_code: int | None = 400,
        data: dict | None = None,
        trace: str | None = None,
    ) -> Response:
        return cls(
            success=False,
            detail=detail,
            error=error,
            status_code=status_code,
            data=data,
            trace=trace,
        )

    @classmethod
    def cancel(cls, detail: str | None = "Action cancelled.") -> Response:
        return cls(
            success=False,
            detail=detail,
            error=ErrorCode.CANCELLED,
            status_code=None,
            cancelled=True,
        )

    @classmethod
    def deny(cls, detail: str) -> Response:
        return cls.fail(
            detail=detail,
            error=ErrorCode.ACCESS_DENIED,
            status_code=403,
        )

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "error": self.error.value if isinstance(self.error, Enum) else self.error,
            "detail": self.detail,
            "data": self.data,
            "status_code": self.status_code,
            "cancelled": self.cancelled,
            "trace": self.trace,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> Response:
        error = payload.get("error")

        if error in ErrorCode._value2member_map_:
            error = ErrorCode(error)

        return cls(
            success=payload["success"],
            error=error,
            detail=payload.get("detail"),
            data=payload.get("data", {}),
            status_code=payload.get("status_code"),
            cancelled=payload.get("cancelled", False),
            trace=payload.get("trace"),
        )

    # === dunder methods ===

    def __str__(self) -> str:
        if self.success:
            return f"Success: {self.detail or ''}"
        elif self.cancelled:
            return f"Cancelled: {self.detail or ''}"
        else:
            error_str = (
                self.error.value if isinstance(self.error, Enum) else self.error or ""
            )
            return f"Error: {error_str}"
