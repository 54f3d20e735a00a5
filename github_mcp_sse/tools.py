"""The GitHub tools offered by the server and the handlers behind them."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .auth import RequestContext, get_auth_token_from_context
from .files import (
    CreateOrUpdateFileOptions,
    FileOperation,
    GetFileContentOptions,
    PushFilesOptions,
    create_or_update_file,
    get_file_contents,
    push_files,
)
from .pulls import (
    CreatePullRequestOptions,
    GetPullRequestOptions,
    PullRequestReviewOptions,
    create_pull_request,
    create_pull_request_review,
    get_pull_request,
)
from .repository import (
    CreateRepositoryOptions,
    ForkRepositoryOptions,
    SearchRepositoriesOptions,
    create_repository,
    fork_repository,
    search_repositories,
)
from .server import MCPServer, Param, ParamType, Tool, ToolResult, text_result

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 30

# Characters the JSON encoder on the other side of the wire escapes inside strings.
_JSON_ESCAPES = str.maketrans(
    {
        "<": "\\u003c",
        ">": "\\u003e",
        "&": "\\u0026",
        "\u2028": "\\u2028",
        "\u2029": "\\u2029",
    }
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _string(arguments: Mapping[str, Any], name: str, label: str | None = None) -> str:
    value = arguments.get(name)
    if not isinstance(value, str):
        raise TypeError(f"{label or name} must be a string")
    return value


def _number(arguments: Mapping[str, Any], name: str) -> int:
    value = arguments.get(name)
    if not _is_number(value):
        raise TypeError(f"{name} must be a number")
    return int(value)


def _optional_string(arguments: Mapping[str, Any], name: str) -> str:
    value = arguments.get(name)
    return value if isinstance(value, str) else ""


def _optional_bool(arguments: Mapping[str, Any], name: str) -> bool:
    value = arguments.get(name)
    return value if isinstance(value, bool) else False


def _optional_number(arguments: Mapping[str, Any], name: str, default: int) -> int:
    value = arguments.get(name)
    return int(value) if _is_number(value) else default


def _json_result(result: Any) -> ToolResult:
    text = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    return text_result(text.translate(_JSON_ESCAPES))


def handle_search_repositories(
    context: RequestContext, arguments: Mapping[str, Any]
) -> ToolResult:
    """Search repositories and return the hits as JSON."""
    token = get_auth_token_from_context(context)
    options = SearchRepositoriesOptions(
        query=_string(arguments, "query"),
        page=_optional_number(arguments, "page", DEFAULT_PAGE),
        per_page=_optional_number(arguments, "per_page", DEFAULT_PER_PAGE),
    )
    return _json_result(search_repositories(options, token))


def handle_create_repository(
    context: RequestContext, arguments: Mapping[str, Any]
) -> ToolResult:
    """Create a repository and return it as JSON."""
    token = get_auth_token_from_context(context)
    options = CreateRepositoryOptions(
        name=_string(arguments, "name"),
        description=_optional_string(arguments, "description"),
        private=_optional_bool(arguments, "private"),
        auto_init=_optional_bool(arguments, "auto_init"),
    )
    return _json_result(create_repository(options, token))


def handle_get_file_contents(
    context: RequestContext, arguments: Mapping[str, Any]
) -> ToolResult:
    """Fetch a file and return it as JSON."""
    token = get_auth_token_from_context(context)
    options = GetFileContentOptions(
        owner=_string(arguments, "owner"),
        repo=_string(arguments, "repo"),
        path=_string(arguments, "path"),
        branch=_optional_string(arguments, "branch"),
    )
    return _json_result(get_file_contents(options, token))


def handle_create_or_update_file(
    context: RequestContext, arguments: Mapping[str, Any]
) -> ToolResult:
    """Create or update a file and return the commit as JSON."""
    token = get_auth_token_from_context(context)
    options = CreateOrUpdateFileOptions(
        owner=_string(arguments, "owner"),
        repo=_string(arguments, "repo"),
        path=_string(arguments, "path"),
        content=_string(arguments, "content"),
        message=_string(arguments, "message"),
        branch=_optional_string(arguments, "branch"),
        sha=_optional_string(arguments, "sha"),
    )
    return _json_result(create_or_update_file(options, token))


def _file_operation(item: Any) -> FileOperation:
    if not isinstance(item, Mapping):
        raise TypeError("each file must be an object")
    return FileOperation(
        path=_string(item, "path", "file path"),
        content=_string(item, "content", "file content"),
        sha=_optional_string(item, "sha"),
    )


def handle_push_files(
    context: RequestContext, arguments: Mapping[str, Any]
) -> ToolResult:
    """Push several files in one commit and return the commit as JSON."""
    token = get_auth_token_from_context(context)
    owner = _string(arguments, "owner")
    repo = _string(arguments, "repo")
    branch = _string(arguments, "branch")
    raw_files = arguments.get("files")
    if not isinstance(raw_files, list):
        raise TypeError("files must be an array")
    message = _string(arguments, "message")

    options = PushFilesOptions(
        owner=owner,
        repo=repo,
        branch=branch,
        files=[_file_operation(item) for item in raw_files],
        message=message,
    )
    return _json_result(push_files(options, token))


def handle_fork_repository(
    context: RequestContext, arguments: Mapping[str, Any]
) -> ToolResult:
    """Fork a repository and return the fork as JSON."""
    token = get_auth_token_from_context(context)
    options = ForkRepositoryOptions(
        owner=_string(arguments, "owner"),
        repo=_string(arguments, "repo"),
        organization=_optional_string(arguments, "organization"),
    )
    return _json_result(fork_repository(options, token))


def handle_get_pull_request(
    context: RequestContext, arguments: Mapping[str, Any]
) -> ToolResult:
    """Fetch a pull request and return it as JSON."""
    token = get_auth_token_from_context(context)
    options = GetPullRequestOptions(
        owner=_string(arguments, "owner"),
        repo=_string(arguments, "repo"),
        pull_number=_number(arguments, "pull_number"),
    )
    return _json_result(get_pull_request(options, token))


def handle_create_pull_request(
    context: RequestContext, arguments: Mapping[str, Any]
) -> ToolResult:
    """Open a pull request and return it as JSON."""
    token = get_auth_token_from_context(context)
    options = CreatePullRequestOptions(
        owner=_string(arguments, "owner"),
        repo=_string(arguments, "repo"),
        title=_string(arguments, "title"),
        head=_string(arguments, "head"),
        base=_string(arguments, "base"),
        body=_optional_string(arguments, "body"),
        draft=_optional_bool(arguments, "draft"),
        maintainer_can_modify=_optional_bool(arguments, "maintainer_can_modify"),
    )
    return _json_result(create_pull_request(options, token))


def handle_create_pull_request_review(
    context: RequestContext, arguments: Mapping[str, Any]
) -> ToolResult:
    """Submit a pull request review and return it as JSON."""
    token = get_auth_token_from_context(context)
    owner = _string(arguments, "owner")
    repo = _string(arguments, "repo")
    pull_number = _number(arguments, "pull_number")
    event = _string(arguments, "event")
    options = PullRequestReviewOptions(
        owner=owner,
        repo=repo,
        pull_number=pull_number,
        event=event,
        body=_optional_string(arguments, "body"),
        commit_id=_optional_string(arguments, "commit_id"),
    )
    return _json_result(create_pull_request_review(options, token))


def _string_param(name: str, description: str, required: bool = False) -> Param:
    return Param(name, ParamType.STRING, description, required)


def _owner() -> Param:
    return _string_param("owner", "リポジトリオーナー", required=True)


def _repo() -> Param:
    return _string_param("repo", "リポジトリ名", required=True)


_TOOLS: tuple[tuple[Tool, Any], ...] = (
    (
        Tool(
            "search_repositories",
            "GitHub リポジトリを検索します",
            (
                _string_param("query", "検索クエリ", required=True),
                Param("page", ParamType.NUMBER, "ページ番号"),
                Param("per_page", ParamType.NUMBER, "1ページあたりの結果数"),
            ),
        ),
        handle_search_repositories,
    ),
    (
        Tool(
            "create_repository",
            "新しいGitHubリポジトリを作成します",
            (
                _string_param("name", "リポジトリ名", required=True),
                _string_param("description", "リポジトリの説明"),
                Param("private", ParamType.BOOLEAN, "プライベートリポジトリかどうか"),
                Param("auto_init", ParamType.BOOLEAN, "READMEファイルを自動生成するかどうか"),
            ),
        ),
        handle_create_repository,
    ),
    (
        Tool(
            "get_file_contents",
            "GitHubリポジトリからファイルの内容を取得します",
            (
                _owner(),
                _repo(),
                _string_param("path", "ファイルパス", required=True),
                _string_param("branch", "ブランチ名 (省略時はデフォルトブランチ)"),
            ),
        ),
        handle_get_file_contents,
    ),
    (
        Tool(
            "create_or_update_file",
            "GitHubリポジトリにファイルを作成または更新します",
            (
                _owner(),
                _repo(),
                _string_param("path", "ファイルパス", required=True),
                _string_param("content", "ファイルの内容", required=True),
                _string_param("message", "コミットメッセージ", required=True),
                _string_param("branch", "ブランチ名 (省略時はデフォルトブランチ)"),
                _string_param("sha", "更新する場合のファイルのSHA"),
            ),
        ),
        handle_create_or_update_file,
    ),
    (
        Tool(
            "push_files",
            "複数のファイルを一度にGitHubリポジトリにプッシュします",
            (
                _owner(),
                _repo(),
                _string_param("branch", "ブランチ名", required=True),
                Param("files", ParamType.ARRAY, "ファイル操作の配列", required=True),
                _string_param("message", "コミットメッセージ", required=True),
            ),
        ),
        handle_push_files,
    ),
    (
        Tool(
            "fork_repository",
            "GitHubリポジトリをフォークします",
            (
                _string_param("owner", "元のリポジトリオーナー", required=True),
                _string_param("repo", "元のリポジトリ名", required=True),
                _string_param("organization", "フォーク先の組織名 (省略時は個人アカウント)"),
            ),
        ),
        handle_fork_repository,
    ),
    (
        Tool(
            "get_pull_request",
            "GitHubリポジトリからPull Requestの詳細を取得します",
            (
                _owner(),
                _repo(),
                Param(
                    "pull_number",
                    ParamType.NUMBER,
                    "取得するPull Requestの番号",
                    required=True,
                ),
            ),
        ),
        handle_get_pull_request,
    ),
    (
        Tool(
            "create_pull_request",
            "GitHubリポジトリに新しいPull Requestを作成します",
            (
                _owner(),
                _repo(),
                _string_param("title", "Pull Requestのタイトル", required=True),
                _string_param("body", "Pull Requestの説明"),
                _string_param("head", "変更を含むブランチ（例：'feature'）", required=True),
                _string_param("base", "変更をマージするブランチ（例：'main'）", required=True),
                Param("draft", ParamType.BOOLEAN, "ドラフトPull Requestとして作成するかどうか"),
                Param(
                    "maintainer_can_modify",
                    ParamType.BOOLEAN,
                    "メンテナーが変更を加えられるようにするかどうか",
                ),
            ),
        ),
        handle_create_pull_request,
    ),
    (
        Tool(
            "create_pull_request_review",
            "Pull Requestにレビューを作成します",
            (
                _owner(),
                _repo(),
                Param(
                    "pull_number",
                    ParamType.NUMBER,
                    "レビューするPull Requestの番号",
                    required=True,
                ),
                _string_param("body", "レビューのコメント本文"),
                _string_param(
                    "event",
                    "レビューイベント (APPROVE, REQUEST_CHANGES, COMMENT)",
                    required=True,
                ),
                _string_param(
                    "commit_id", "レビューする特定のコミットID（省略時は最新コミット）"
                ),
            ),
        ),
        handle_create_pull_request_review,
    ),
)


def register_tools(server: MCPServer) -> None:
    """Register every GitHub tool with ``server``."""
    for tool, handler in _TOOLS:
        server.add_tool(tool, handler)