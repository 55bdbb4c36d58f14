from __future__ import annotations

from enum import Enum
from typing import Any


class APIError(Exception):
    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


class ErrorCode(str, Enum):
    """Failure codes the storage service attaches to a failed reply."""

    NO_ACTION_SPECIFIED = "NO_ACTION_SPECIFIED"
    BAD_ACTION = "BAD_ACTION"
    DB_ERROR = "DB_ERROR"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    TIMEOUT = "TIMEOUT"


class ReplyFailure(str, Enum):
    NO_HANDLERS = "NO_HANDLERS"
    TIMEOUT = "TIMEOUT"
    RECIPIENT_FAILURE = "RECIPIENT_FAILURE"


class ReplyException(Exception):
    def __init__(self, failure: ReplyFailure, message: str, code: ErrorCode | None = None):
        super().__init__(message)
        self.failure = failure
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"ReplyException(failure={self.failure.value}, code={self.code}, message={self.message!r})"


class CatalogError(Exception):
    pass


class DataIntegrityError(Exception):
    pass
