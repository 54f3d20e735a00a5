"""Carrying the GitHub authentication token through a request context."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any, Union

VERSION = "0.1.0"

TOKEN_ENV_VAR = "GITHUB_TOKEN"
AUTHORIZATION_HEADER = "Authorization"

_MISSING_TOKEN_MESSAGE = (
    "認証トークンがありません。環境変数GITHUB_TOKENを設定するか、"
    "Authorizationヘッダーを指定してください"
)

Headers = Union[Mapping[str, Any], Iterable[tuple[str, Any]]]


class MissingAuthTokenError(Exception):
    """Raised when a context carries no usable authentication token."""

    def __init__(self, message: str = _MISSING_TOKEN_MESSAGE) -> None:
        super().__init__(message)


@dataclass(frozen=True)
class RequestContext:
    """Immutable per-request state handed to tool handlers."""

    auth_token: str | None = None


def with_auth_token(context: RequestContext | None, token: str) -> RequestContext:
    """Return a copy of ``context`` that carries ``token``."""
    base = context if context is not None else RequestContext()
    return replace(base, auth_token=token)


def _header_value(headers: Headers | None, name: str) -> str:
    """Look a header up case-insensitively, returning its first value or ''."""
    if not headers:
        return ""
    items = headers.items() if isinstance(headers, Mapping) else headers
    wanted = name.lower()
    for key, value in items:
        if key.lower() != wanted:
            continue
        if isinstance(value, (list, tuple)):
            return str(value[0]) if value else ""
        return "" if value is None else str(value)
    return ""


def auth_token_from_request(
    context: RequestContext | None, headers: Headers | None
) -> RequestContext:
    """Store the request's Authorization header value in the context."""
    return with_auth_token(context, _header_value(headers, AUTHORIZATION_HEADER))


def auth_token_from_env(
    context: RequestContext | None, environ: Mapping[str, str] | None = None
) -> RequestContext:
    """Store the GITHUB_TOKEN environment variable in the context."""
    env = os.environ if environ is None else environ
    return with_auth_token(context, env.get(TOKEN_ENV_VAR, ""))


def get_auth_token_from_context(context: RequestContext | None) -> str:
    """Return the context's token, raising if it is missing or empty."""
    token = getattr(context, "auth_token", None) if context is not None else None
    if not isinstance(token, str) or not token:
        raise MissingAuthTokenError()
    return token