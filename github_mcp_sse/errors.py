"""Error types for GitHub API failures and their human-readable formatting."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

_ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)


class GitHubError(Exception):
    """An error reported by the GitHub API."""

    default_status = 0

    def __init__(self, message: str, status: int | None = None) -> None:
        self.message = message
        self.status = self.default_status if status is None else status
        super().__init__(message, self.status)

    def __str__(self) -> str:
        return f"GitHub API Error: {self.message} (Status: {self.status})"


class GitHubValidationError(GitHubError):
    """The request was rejected as invalid."""

    default_status = 422

    def __init__(
        self, message: str, status: int | None = None, response: Any = None
    ) -> None:
        super().__init__(message, status)
        self.response = response


class GitHubResourceNotFoundError(GitHubError):
    """The requested resource does not exist."""

    default_status = 404


class GitHubAuthenticationError(GitHubError):
    """The credentials were missing or rejected."""

    default_status = 401


class GitHubPermissionError(GitHubError):
    """The credentials lack permission for the operation."""

    default_status = 403


class GitHubRateLimitError(GitHubError):
    """The API rate limit was exceeded."""

    default_status = 403

    def __init__(
        self,
        message: str,
        status: int | None = None,
        reset_at: datetime | None = None,
    ) -> None:
        super().__init__(message, status)
        self.reset_at = _ZERO_TIME if reset_at is None else reset_at


class GitHubConflictError(GitHubError):
    """The operation conflicts with the current state of the resource."""

    default_status = 409


def _rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    stamp = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    offset = moment.utcoffset()
    seconds = int(offset.total_seconds()) if offset is not None else 0
    if seconds == 0:
        return stamp + "Z"
    sign = "+" if seconds > 0 else "-"
    hours, minutes = divmod(abs(seconds) // 60, 60)
    return f"{stamp}{sign}{hours:02d}:{minutes:02d}"


def is_github_error(err: BaseException) -> bool:
    """Tell whether ``err`` is one of the GitHub error types."""
    return isinstance(err, GitHubError)


def format_github_error(err: BaseException) -> str:
    """Render an error as a readable message."""
    if not isinstance(err, GitHubError):
        return str(err)

    if isinstance(err, GitHubValidationError):
        message = f"Validation Error: {err.message}"
        if err.response is not None:
            message += f"\nDetails: {err.response}"
        return message
    if isinstance(err, GitHubResourceNotFoundError):
        return f"Not Found: {err.message}"
    if isinstance(err, GitHubAuthenticationError):
        return f"Authentication Failed: {err.message}"
    if isinstance(err, GitHubPermissionError):
        return f"Permission Denied: {err.message}"
    if isinstance(err, GitHubRateLimitError):
        return (
            f"Rate Limit Exceeded: {err.message}\n"
            f"Resets at: {_rfc3339(err.reset_at)}"
        )
    if isinstance(err, GitHubConflictError):
        return f"Conflict: {err.message}"
    return f"GitHub API Error: {err.message}"