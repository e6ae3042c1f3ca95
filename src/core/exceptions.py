"""Custom exceptions and error codes."""

from enum import StrEnum
from pathlib import Path
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for task operations."""

    # Lookup errors
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    AMBIGUOUS_REFERENCE = "AMBIGUOUS_REFERENCE"

    # Validation errors
    INVALID_PATH = "INVALID_PATH"
    CIRCULAR_REFERENCE = "CIRCULAR_REFERENCE"
    EMPTY_INPUT = "EMPTY_INPUT"
    INVALID_TEXT = "INVALID_TEXT"
    INVALID_OPERATION = "INVALID_OPERATION"

    # Storage errors
    IO_FAILURE = "IO_FAILURE"
    INVALID_STORE_FORMAT = "INVALID_STORE_FORMAT"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.details = details
        super().__init__(self.message)


class TaskNotFoundError(AppException):
    """No task matches a position path or reference."""

    def __init__(self, reference: str, message: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.TASK_NOT_FOUND,
            message=message or f"Task not found: {reference}",
            details={"reference": reference},
        )


class AmbiguousReferenceError(TaskNotFoundError):
    """A short identifier prefix matches more than one task."""

    def __init__(self, reference: str, matches: int) -> None:
        super().__init__(
            reference,
            message=f"Reference is ambiguous: {reference} matches {matches} tasks",
        )
        self.error_code = ErrorCode.AMBIGUOUS_REFERENCE
        self.details = {"reference": reference, "matches": matches}


class InvalidPathError(AppException):
    """Malformed position path."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_PATH,
            message=f"Invalid position path {path!r}: {reason}",
            details={"path": path},
        )


class CircularReferenceError(AppException):
    """Circular reference detected in hierarchy."""

    def __init__(
        self, message: str = "Cannot move a task into itself or its own descendant"
    ) -> None:
        super().__init__(
            error_code=ErrorCode.CIRCULAR_REFERENCE,
            message=message,
        )


class EmptyInputError(AppException):
    """Blank text where text is required."""

    def __init__(self, field: str = "text") -> None:
        super().__init__(
            error_code=ErrorCode.EMPTY_INPUT,
            message=f"The {field} cannot be empty",
            details={"field": field},
        )


class InvalidTextError(AppException):
    """Text that cannot be stored, such as a string with lone surrogates."""

    def __init__(self, field: str = "text", reason: str = "not valid UTF-8") -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_TEXT,
            message=f"The {field} is {reason}",
            details={"field": field},
        )


class InvalidOperationError(AppException):
    """The requested mutation is not allowed for the given tasks."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_OPERATION,
            message=message,
            details=details,
        )


class StorageIOError(AppException):
    """File-system failure while reading or writing the collection file."""

    def __init__(self, path: Path | str, operation: str, cause: OSError) -> None:
        super().__init__(
            error_code=ErrorCode.IO_FAILURE,
            message=f"Failed to {operation} {path}: {cause}",
            details={"path": str(path), "operation": operation},
        )
        self.path = Path(path)


class StoreFormatError(AppException):
    """The collection file exists but matches no known layout."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_STORE_FORMAT,
            message=f"Unrecognised collection file {path}: {reason}",
            details={"path": str(path)},
        )
        self.path = Path(path)
