"""Error types and classification for remote and local storage failures."""

from enum import Enum
from typing import Literal

import httpx


class ErrorCategory(Enum):
    """Categories of failures seen while syncing habit completions."""

    NETWORK_ERROR = "network_error"
    SERVER_ERROR = "server_error"
    REJECTED = "rejected"
    AUTHENTICATION_FAILED = "authentication_failed"
    UNKNOWN = "unknown"


class RemoteAPIError(Exception):
    """Transient failure talking to the remote habits API."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LocalStorageError(Exception):
    """The local durable store could not be read or written."""


class HabitNotFoundError(KeyError):
    """Habit is not present in the local projection."""


HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_CLIENT_ERROR_START = 400
HTTP_SERVER_ERROR_START = 500

_ERROR_PATTERNS: dict[Literal["auth", "network"], dict[str, list[str] | set[str]]] = {
    "auth": {
        "phrases": ["unauthorized", "invalid token", "forbidden", "401", "403"],
        "exception_types": {"PermissionError"},
    },
    "network": {
        "phrases": ["connection", "timeout", "timed out", "network", "unreachable", "502", "503", "504"],
        "exception_types": {"ConnectionError", "TimeoutError", "ConnectError", "ReadTimeout", "ConnectTimeout"},
    },
}


def _match_error_pattern(*, error_str: str, exception_type: str, pattern_type: Literal["auth", "network"]) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def classify_remote_error(exception: Exception) -> ErrorCategory:
    """Classify a failed remote call.

    Status codes are checked first when the error carries one; otherwise the
    exception type and message are matched against known patterns.
    """
    status_code = getattr(exception, "status_code", None)
    if isinstance(exception, httpx.HTTPStatusError):
        status_code = exception.response.status_code

    if status_code is not None:
        if status_code in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
            return ErrorCategory.AUTHENTICATION_FAILED
        if status_code >= HTTP_SERVER_ERROR_START:
            return ErrorCategory.SERVER_ERROR
        if status_code >= HTTP_CLIENT_ERROR_START:
            return ErrorCategory.REJECTED

    if isinstance(exception, httpx.TransportError):
        return ErrorCategory.NETWORK_ERROR

    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="auth"):
        return ErrorCategory.AUTHENTICATION_FAILED

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="network"):
        return ErrorCategory.NETWORK_ERROR

    return ErrorCategory.UNKNOWN
