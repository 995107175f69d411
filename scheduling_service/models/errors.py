from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL = "INTERNAL"


class SchedulingError(Exception):
    """
    Single error type raised by the scheduling services.

    The code drives the HTTP status at the API boundary. ``cause`` is only
    kept for server-side logging and is never sent to the caller.
    """

    def __init__(self, code: ErrorCode, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.code.value}: {self.message} ({self.cause})"
        return f"{self.code.value}: {self.message}"

    @classmethod
    def validation(cls, message: str) -> "SchedulingError":
        return cls(ErrorCode.VALIDATION, message)

    @classmethod
    def not_found(cls, message: str) -> "SchedulingError":
        return cls(ErrorCode.NOT_FOUND, message)

    @classmethod
    def internal(cls, message: str, cause: BaseException) -> "SchedulingError":
        return cls(ErrorCode.INTERNAL, message, cause)
