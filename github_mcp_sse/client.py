"""A small authenticated client for the GitHub REST API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import requests

from .auth import VERSION
from .errors import (
    GitHubAuthenticationError,
    GitHubConflictError,
    GitHubError,
    GitHubPermissionError,
    GitHubRateLimitError,
    GitHubResourceNotFoundError,
    GitHubValidationError,
)

API_BASE_URL = "https://api.github.com"
USER_AGENT = f"github-mcp-server/{VERSION}"


def _reset_time(response: requests.Response) -> datetime | None:
    raw = response.headers.get("X-RateLimit-Reset")
    if raw is None:
        return None
    try:
        return datetime.fromtimestamp(int(raw), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def _error_from_response(response: requests.Response) -> GitHubError:
    try:
        body: Any = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        message = str(body["message"])
    else:
        message = response.text or response.reason or ""
    status = response.status_code

    rate_limited = status == 429 or (
        status == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
    )
    if rate_limited:
        return GitHubRateLimitError(message, status, _reset_time(response))
    if status == 401:
        return GitHubAuthenticationError(message, status)
    if status == 403:
        return GitHubPermissionError(message, status)
    if status == 404:
        return GitHubResourceNotFoundError(message, status)
    if status == 409:
        return GitHubConflictError(message, status)
    if status == 422:
        return GitHubValidationError(message, status, body)
    return GitHubError(message, status)


class GitHubClient:
    """Sends authenticated JSON requests to the GitHub API."""

    def __init__(
        self,
        token: str,
        base_url: str = API_BASE_URL,
        session: requests.Session | None = None,
        timeout: float | None = 30.0,
    ) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body, or None if empty."""
        response = self._session.request(
            method,
            self._url(path),
            params=params,
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            raise _error_from_response(response)
        if not response.content:
            return None
        return response.json()

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: Any = None) -> Any:
        return self.request("POST", path, payload=payload)

    def put(self, path: str, payload: Any = None) -> Any:
        return self.request("PUT", path, payload=payload)

    def patch(self, path: str, payload: Any = None) -> Any:
        return self.request("PATCH", path, payload=payload)


def get_github_client(token: str) -> GitHubClient:
    """Create a client authenticated with ``token``."""
    return GitHubClient(token)