"""Repository search, creation and forking."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping
from urllib.parse import quote

from .client import get_github_client


def _repo_path(owner: str, repo: str) -> str:
    return f"repos/{quote(owner, safe='')}/{quote(repo, safe='')}"


@dataclass
class Repository:
    """The fields of a GitHub repository that tool results expose."""

    id: int = 0
    name: str = ""
    full_name: str = ""
    description: str = ""
    private: bool = False
    html_url: str = ""
    clone_url: str = ""
    ssh_url: str = ""
    fork: bool = False

    @classmethod
    def from_api(cls, data: Mapping[str, Any] | None) -> Repository:
        """Build a repository from an API payload; missing fields take defaults."""
        data = data or {}
        return cls(
            id=int(data.get("id") or 0),
            name=data.get("name") or "",
            full_name=data.get("full_name") or "",
            description=data.get("description") or "",
            private=bool(data.get("private")),
            html_url=data.get("html_url") or "",
            clone_url=data.get("clone_url") or "",
            ssh_url=data.get("ssh_url") or "",
            fork=bool(data.get("fork")),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SearchRepositoriesOptions:
    """Parameters of a repository search; zero paging values are left out."""

    query: str
    page: int = 0
    per_page: int = 0


@dataclass
class SearchRepositoriesResult:
    """The total hit count and the repositories on the requested page."""

    total_count: int = 0
    items: list[Repository] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        items = [item.to_dict() for item in self.items] if self.items else None
        return {"total_count": self.total_count, "items": items}


@dataclass
class CreateRepositoryOptions:
    """Parameters for creating a repository for the authenticated user."""

    name: str
    description: str = ""
    private: bool = False
    auto_init: bool = False


@dataclass
class ForkRepositoryOptions:
    """Parameters for forking a repository, optionally into an organization."""

    owner: str
    repo: str
    organization: str = ""


def search_repositories(
    options: SearchRepositoriesOptions, token: str
) -> SearchRepositoriesResult:
    """Search GitHub repositories."""
    params: dict[str, Any] = {"q": options.query}
    if options.page:
        params["page"] = options.page
    if options.per_page:
        params["per_page"] = options.per_page

    with get_github_client(token) as client:
        data = client.get("search/repositories", params) or {}

    return SearchRepositoriesResult(
        total_count=int(data.get("total_count") or 0),
        items=[Repository.from_api(item) for item in data.get("items") or []],
    )


def create_repository(options: CreateRepositoryOptions, token: str) -> Repository:
    """Create a repository owned by the authenticated user."""
    payload = {
        "name": options.name,
        "description": options.description,
        "private": options.private,
        "auto_init": options.auto_init,
    }
    with get_github_client(token) as client:
        data = client.post("user/repos", payload)
    return Repository.from_api(data)


def fork_repository(options: ForkRepositoryOptions, token: str) -> Repository:
    """Fork a repository into the user's account or the given organization."""
    payload: dict[str, Any] = {}
    if options.organization:
        payload["organization"] = options.organization
    with get_github_client(token) as client:
        data = client.post(f"{_repo_path(options.owner, options.repo)}/forks", payload)
    return Repository.from_api(data)