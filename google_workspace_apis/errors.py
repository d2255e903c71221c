"""
Error taxonomy shared by every client in the package.

    WorkspaceError
      ├── NetworkError          transport failure, no HTTP response
      ├── AuthError             401, expired token with refresh disabled, refresh failure
      ├── ApiError              4xx from Google (status + message)
      │     └── ServerError     5xx from Google
      └── DeserializationError  body is not JSON or not the expected shape

Nothing here retries; every error is raised once and the underlying exception
is chained via ``raise ... from exc``.
"""
from __future__ import annotations

import json
from typing import Optional

from googleapiclient.errors import HttpError


class WorkspaceError(Exception):
    """Base class for all errors raised by google_workspace_apis."""


class NetworkError(WorkspaceError):
    """The request never produced an HTTP response."""


class AuthError(WorkspaceError):
    """Authentication failed or no valid access token is available."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class ApiError(WorkspaceError):
    """Google answered with a client error (4xx other than 401)."""

    def __init__(self, status: int, message: str, reason: str = "") -> None:
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.message = message
        self.reason = reason


class ServerError(ApiError):
    """Google answered with a server error (5xx)."""


class DeserializationError(WorkspaceError):
    """The response body could not be decoded into the expected type."""


def _error_reason(content: bytes | str) -> tuple[str, str]:
    """Pull (message, reason) out of a Google JSON error body, if it is one."""
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    try:
        data = json.loads(content)
    except ValueError:
        return content.strip(), ""
    if not isinstance(data, dict):
        return str(data), ""

    error = data.get("error")
    if isinstance(error, dict):
        reason = ""
        details = error.get("errors")
        if isinstance(details, list) and details and isinstance(details[0], dict):
            reason = details[0].get("reason", "")
        return error.get("message", ""), reason or error.get("status", "")
    # OAuth-style error bodies: {"error": "invalid_grant", "error_description": "..."}
    return data.get("error_description", str(error or "")), str(error or "")


def error_from_http(exc: HttpError) -> WorkspaceError:
    """Translate a googleapiclient HttpError into the package taxonomy."""
    status = int(exc.resp.status)
    message, reason = _error_reason(exc.content or b"")
    if not message:
        message = getattr(exc.resp, "reason", "") or "request failed"

    if status == 401:
        return AuthError(message, status=status)
    if status >= 500:
        return ServerError(status, message, reason)
    return ApiError(status, message, reason)
