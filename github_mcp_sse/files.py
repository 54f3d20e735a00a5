"""Reading, writing and pushing repository files."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping
from urllib.parse import quote

import requests

from .client import get_github_client
from .errors import GitHubError

_REGULAR_FILE_MODE = "100644"
_BLOB = "blob"
_ZERO_TIME_TEXT = "0001-01-01T00:00:00Z"


def _repo_path(owner: str, repo: str) -> str:
    return f"repos/{quote(owner, safe='')}/{quote(repo, safe='')}"


def _parse_time(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _format_time(moment: datetime | None) -> str:
    if moment is None:
        return _ZERO_TIME_TEXT
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


@dataclass
class FileContent:
    """A file fetched from a repository, with its content decoded."""

    type: str = ""
    encoding: str = ""
    size: int = 0
    name: str = ""
    path: str = ""
    content: str = ""
    sha: str = ""
    url: str = ""
    html_url: str = ""
    download_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.encoding:
            data["encoding"] = self.encoding
        data.update(size=self.size, name=self.name, path=self.path)
        if self.content:
            data["content"] = self.content
        data.update(sha=self.sha, url=self.url, html_url=self.html_url)
        if self.download_url:
            data["download_url"] = self.download_url
        return data


@dataclass
class FileOperation:
    """One file to write in a multi-file push."""

    path: str
    content: str
    sha: str = ""


@dataclass
class GetFileContentOptions:
    owner: str
    repo: str
    path: str
    branch: str = ""


@dataclass
class CreateOrUpdateFileOptions:
    owner: str
    repo: str
    path: str
    content: str
    message: str
    branch: str = ""
    sha: str = ""


@dataclass
class PushFilesOptions:
    owner: str
    repo: str
    branch: str
    files: list[FileOperation]
    message: str


@dataclass
class CommitAuthor:
    """The author recorded on a commit."""

    name: str = ""
    email: str = ""
    date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "email": self.email, "date": _format_time(self.date)}


@dataclass
class CommitResult:
    """The commit produced by a file write or push."""

    sha: str = ""
    url: str = ""
    author: CommitAuthor = field(default_factory=CommitAuthor)
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "sha": self.sha,
            "url": self.url,
            "author": self.author.to_dict(),
            "message": self.message,
        }


def _decode_content(data: Mapping[str, Any]) -> str:
    encoding = data.get("encoding") or ""
    content = data.get("content")
    if encoding == "base64":
        if content is None:
            raise ValueError("malformed response: base64 encoding of null content")
        try:
            raw = base64.b64decode(content)
        except (binascii.Error, ValueError) as err:
            raise ValueError(str(err)) from err
        return raw.decode("utf-8", errors="replace")
    if encoding == "":
        return content or ""
    if encoding == "none":
        raise ValueError("unsupported content encoding: none, this may occur when file size > 1 MB")
    raise ValueError(f"unsupported content encoding: {encoding}")


def _commit_result(commit: Mapping[str, Any] | None, message: str) -> CommitResult:
    commit = commit or {}
    result = CommitResult(
        sha=commit.get("sha") or "", url=commit.get("url") or "", message=message
    )
    author = commit.get("author")
    if author:
        result.author = CommitAuthor(
            name=author.get("name") or "",
            email=author.get("email") or "",
            date=_parse_time(author.get("date")),
        )
    return result


def get_file_contents(options: GetFileContentOptions, token: str) -> FileContent:
    """Fetch a file and decode its content."""
    params = {"ref": options.branch} if options.branch else None
    path = quote(options.path.rstrip("/"), safe="/")
    with get_github_client(token) as client:
        data = client.get(
            f"{_repo_path(options.owner, options.repo)}/contents/{path}", params
        )

    if not isinstance(data, Mapping):
        raise ValueError(f"ファイル内容のデコードに失敗: {options.path} is not a file")
    try:
        content = _decode_content(data)
    except ValueError as err:
        raise ValueError(f"ファイル内容のデコードに失敗: {err}") from err

    return FileContent(
        type=data.get("type") or "",
        encoding=data.get("encoding") or "",
        size=int(data.get("size") or 0),
        name=data.get("name") or "",
        path=data.get("path") or "",
        content=content,
        sha=data.get("sha") or "",
        url=data.get("url") or "",
        html_url=data.get("html_url") or "",
        download_url=data.get("download_url") or "",
    )


def create_or_update_file(
    options: CreateOrUpdateFileOptions, token: str
) -> CommitResult:
    """Create a file, or update it when ``options.sha`` names the current blob."""
    payload: dict[str, Any] = {
        "message": options.message,
        "content": base64.b64encode(options.content.encode("utf-8")).decode("ascii"),
    }
    if options.branch:
        payload["branch"] = options.branch
    if options.sha:
        payload["sha"] = options.sha

    path = quote(options.path, safe="/")
    with get_github_client(token) as client:
        data = client.put(
            f"{_repo_path(options.owner, options.repo)}/contents/{path}", payload
        )
    return _commit_result((data or {}).get("commit"), options.message)


@contextmanager
def _step(description: str) -> Iterator[None]:
    try:
        yield
    except (GitHubError, requests.RequestException) as err:
        raise RuntimeError(f"{description}: {err}") from err


def push_files(options: PushFilesOptions, token: str) -> CommitResult:
    """Write several files to a branch in a single commit."""
    base = _repo_path(options.owner, options.repo)
    branch = quote(options.branch, safe="/")

    with get_github_client(token) as client:
        with _step("ブランチの取得に失敗"):
            ref = client.get(f"{base}/git/ref/heads/{branch}") or {}
        parent_sha = (ref.get("object") or {}).get("sha") or ""

        with _step("コミットの取得に失敗"):
            parent = client.get(f"{base}/git/commits/{parent_sha}") or {}
        base_tree_sha = (parent.get("tree") or {}).get("sha") or ""

        entries = [
            {
                "path": item.path,
                "mode": _REGULAR_FILE_MODE,
                "type": _BLOB,
                "content": item.content,
            }
            for item in options.files
        ]
        with _step("ツリーの作成に失敗"):
            tree = client.post(
                f"{base}/git/trees", {"base_tree": base_tree_sha, "tree": entries}
            ) or {}

        with _step("コミットの作成に失敗"):
            commit = client.post(
                f"{base}/git/commits",
                {
                    "message": options.message,
                    "tree": tree.get("sha") or "",
                    "parents": [parent_sha],
                },
            ) or {}

        with _step("リファレンスの更新に失敗"):
            client.patch(
                f"{base}/git/refs/heads/{branch}",
                {"sha": commit.get("sha") or "", "force": False},
            )

    return _commit_result(commit, options.message)