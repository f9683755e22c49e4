from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    HEADER_NOT_FOUND = "header_not_found"
    NO_TASK_COLUMN = "no_task_column"
    EMPTY_RESULT = "empty_result"
    INVALID_CONFIG = "invalid_config"
    INVALID_OBSERVATIONS = "invalid_observations"


class ReconcileError(Exception):
    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class HeaderNotFound(ReconcileError):
    kind = ErrorKind.HEADER_NOT_FOUND

    def __init__(self, max_rows: int, threshold: int) -> None:
        super().__init__(
            f"No header row with at least {threshold} recognised columns in the first {max_rows} rows; "
            "check the template format"
        )
        self.max_rows = max_rows
        self.threshold = threshold


class NoTaskColumn(ReconcileError):
    kind = ErrorKind.NO_TASK_COLUMN

    def __init__(self, message: str = "Could not determine the task content column") -> None:
        super().__init__(message)


class EmptyResult(ReconcileError):
    kind = ErrorKind.EMPTY_RESULT


class ConfigError(ReconcileError):
    kind = ErrorKind.INVALID_CONFIG


class ObservationError(ReconcileError):
    kind = ErrorKind.INVALID_OBSERVATIONS
