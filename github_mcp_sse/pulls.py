"""Fetching and creating pull requests and pull request reviews."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping
from urllib.parse import quote

from .client import get_github_client
from .files import _format_time, _parse_time
from .repository import Repository


def _repo_path(owner: str, repo: str) -> str:
    return f"repos/{quote(owner, safe='')}/{quote(repo, safe='')}"


@dataclass
class User:
    """The fields of a GitHub user that tool results expose."""

    login: str = ""
    id: int = 0
    avatar_url: str = ""
    html_url: str = ""
    type: str = ""

    @classmethod
    def from_api(cls, data: Mapping[str, Any] | None) -> User:
        """Build a user from an API payload; a missing user gives empty fields."""
        data = data or {}
        return cls(
            login=data.get("login") or "",
            id=int(data.get("id") or 0),
            avatar_url=data.get("avatar_url") or "",
            html_url=data.get("html_url") or "",
            type=data.get("type") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "login": self.login,
            "id": self.id,
            "avatar_url": self.avatar_url,
            "html_url": self.html_url,
            "type": self.type,
        }


@dataclass
class Ref:
    """One side (base or head) of a pull request."""

    label: str = ""
    ref: str = ""
    sha: str = ""
    user: User = field(default_factory=User)
    repo: Repository = field(default_factory=Repository)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "ref": self.ref,
            "sha": self.sha,
            "user": self.user.to_dict(),
            "repo": self.repo.to_dict(),
        }


def _ref_from_api(data: Mapping[str, Any] | None) -> Ref:
    if not data:
        return Ref()
    return Ref(
        label=data.get("label") or "",
        ref=data.get("ref") or "",
        sha=data.get("sha") or "",
        user=User.from_api(data.get("user")),
        repo=Repository.from_api(data.get("repo")),
    )


@dataclass
class PullRequest:
    """A pull request with the details tool results expose."""

    id: int = 0
    number: int = 0
    state: str = ""
    title: str = ""
    body: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    merge_commit_sha: str = ""
    user: User = field(default_factory=User)
    html_url: str = ""
    diff_url: str = ""
    patch_url: str = ""
    base: Ref = field(default_factory=Ref)
    head: Ref = field(default_factory=Ref)
    merged: bool = False
    mergeable: bool = False
    mergeable_state: str = ""
    comments: int = 0
    review_comments: int = 0
    commits: int = 0
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    draft: bool = False
    requested_reviewers: list[User] | None = None
    maintainer_can_modify: bool = False

    @classmethod
    def from_api(cls, data: Mapping[str, Any] | None) -> PullRequest:
        """Build a pull request from an API payload; missing fields take defaults."""
        data = data or {}
        reviewers = data.get("requested_reviewers")
        return cls(
            id=int(data.get("id") or 0),
            number=int(data.get("number") or 0),
            state=data.get("state") or "",
            title=data.get("title") or "",
            body=data.get("body") or "",
            created_at=_parse_time(data.get("created_at")),
            updated_at=_parse_time(data.get("updated_at")),
            closed_at=_parse_time(data.get("closed_at")),
            merged_at=_parse_time(data.get("merged_at")),
            merge_commit_sha=data.get("merge_commit_sha") or "",
            user=User.from_api(data.get("user")),
            html_url=data.get("html_url") or "",
            diff_url=data.get("diff_url") or "",
            patch_url=data.get("patch_url") or "",
            base=_ref_from_api(data.get("base")),
            head=_ref_from_api(data.get("head")),
            merged=bool(data.get("merged")),
            mergeable=bool(data.get("mergeable")),
            mergeable_state=data.get("mergeable_state") or "",
            comments=int(data.get("comments") or 0),
            review_comments=int(data.get("review_comments") or 0),
            commits=int(data.get("commits") or 0),
            additions=int(data.get("additions") or 0),
            deletions=int(data.get("deletions") or 0),
            changed_files=int(data.get("changed_files") or 0),
            draft=bool(data.get("draft")),
            requested_reviewers=(
                None
                if reviewers is None
                else [User.from_api(reviewer) for reviewer in reviewers]
            ),
            maintainer_can_modify=bool(data.get("maintainer_can_modify")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "number": self.number,
            "state": self.state,
            "title": self.title,
            "body": self.body,
            "created_at": _format_time(self.created_at),
            "updated_at": _format_time(self.updated_at),
            "closed_at": _format_time(self.closed_at),
            "merged_at": _format_time(self.merged_at),
        }
        if self.merge_commit_sha:
            data["merge_commit_sha"] = self.merge_commit_sha
        data.update(
            user=self.user.to_dict(),
            html_url=self.html_url,
            diff_url=self.diff_url,
            patch_url=self.patch_url,
            base=self.base.to_dict(),
            head=self.head.to_dict(),
            merged=self.merged,
            mergeable=self.mergeable,
            mergeable_state=self.mergeable_state,
            comments=self.comments,
            review_comments=self.review_comments,
            commits=self.commits,
            additions=self.additions,
            deletions=self.deletions,
            changed_files=self.changed_files,
            draft=self.draft,
            requested_reviewers=(
                None
                if self.requested_reviewers is None
                else [reviewer.to_dict() for reviewer in self.requested_reviewers]
            ),
            maintainer_can_modify=self.maintainer_can_modify,
        )
        return data


@dataclass
class CreatePullRequestOptions:
    """Parameters for opening a pull request."""

    owner: str
    repo: str
    title: str
    head: str
    base: str
    body: str = ""
    draft: bool = False
    maintainer_can_modify: bool = False


@dataclass
class GetPullRequestOptions:
    """Identifies one pull request."""

    owner: str
    repo: str
    pull_number: int


@dataclass
class PullRequestReviewOptions:
    """Parameters for a review; event is APPROVE, REQUEST_CHANGES or COMMENT."""

    owner: str
    repo: str
    pull_number: int
    event: str
    body: str = ""
    commit_id: str = ""


@dataclass
class PullRequestReview:
    """A review submitted on a pull request."""

    id: int = 0
    user: User = field(default_factory=User)
    body: str = ""
    state: str = ""
    html_url: str = ""
    commit_id: str = ""
    submitted_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user": self.user.to_dict(),
            "body": self.body,
            "state": self.state,
            "html_url": self.html_url,
            "commit_id": self.commit_id,
            "submitted_at": _format_time(self.submitted_at),
        }


def create_pull_request(options: CreatePullRequestOptions, token: str) -> PullRequest:
    """Open a new pull request."""
    payload = {
        "title": options.title,
        "head": options.head,
        "base": options.base,
        "body": options.body,
        "maintainer_can_modify": options.maintainer_can_modify,
        "draft": options.draft,
    }
    with get_github_client(token) as client:
        data = client.post(f"{_repo_path(options.owner, options.repo)}/pulls", payload)
    return PullRequest.from_api(data)


def get_pull_request(options: GetPullRequestOptions, token: str) -> PullRequest:
    """Fetch the details of a pull request."""
    with get_github_client(token) as client:
        data = client.get(
            f"{_repo_path(options.owner, options.repo)}/pulls/{int(options.pull_number)}"
        )
    return PullRequest.from_api(data)


def create_pull_request_review(
    options: PullRequestReviewOptions, token: str
) -> PullRequestReview:
    """Submit a review on a pull request."""
    payload = {
        "body": options.body,
        "event": options.event,
        "commit_id": options.commit_id,
    }
    with get_github_client(token) as client:
        data = client.post(
            f"{_repo_path(options.owner, options.repo)}"
            f"/pulls/{int(options.pull_number)}/reviews",
            payload,
        )
    data = data or {}
    return PullRequestReview(
        id=int(data.get("id") or 0),
        user=User.from_api(data.get("user")),
        body=data.get("body") or "",
        state=data.get("state") or "",
        html_url=data.get("html_url") or "",
        commit_id=data.get("commit_id") or "",
        submitted_at=_parse_time(data.get("submitted_at")),
    )