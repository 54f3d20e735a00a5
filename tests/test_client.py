import json
from datetime import datetime, timezone

import pytest
import responses

from github_mcp_sse.client import GitHubClient, get_github_client
from github_mcp_sse.errors import (
    GitHubAuthenticationError,
    GitHubConflictError,
    GitHubError,
    GitHubPermissionError,
    GitHubRateLimitError,
    GitHubResourceNotFoundError,
    GitHubValidationError,
)

BASE = "https://api.example.com"


@pytest.fixture
def client():
    with GitHubClient("token", base_url=BASE) as github:
        yield github


def test_get_returns_json_and_sends_token(client):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/user", json={"login": "octo"})
        result = client.get("/user")
        assert result == {"login": "octo"}
        assert rsps.calls[0].request.headers["Authorization"] == "Bearer token"


def test_get_passes_query_params(client):
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET, f"{BASE}/search/repositories", json={"items": ["one"]}
        )
        result = client.get("search/repositories", params={"q": "go", "per_page": 5})
        assert result == {"items": ["one"]}
        url = rsps.calls[0].request.url
        assert "q=go" in url
        assert "per_page=5" in url


@pytest.mark.parametrize(
    "method, verb", [("post", responses.POST), ("put", responses.PUT), ("patch", responses.PATCH)]
)
def test_write_methods_send_json(client, method, verb):
    payload = {"name": "demo", "private": True}
    with responses.RequestsMock() as rsps:
        rsps.add(verb, f"{BASE}/repos/o/r", json={"ok": True}, status=201)
        result = getattr(client, method)("/repos/o/r", payload)
        assert result == {"ok": True}
        assert json.loads(rsps.calls[0].request.body) == payload


def test_empty_body_returns_none(client):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.PUT, f"{BASE}/thing", status=204)
        assert client.put("/thing") is None


def test_absolute_url_is_used_as_is(client):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, "https://other.example.com/x", json=[1, 2])
        assert client.get("https://other.example.com/x") == [1, 2]


@pytest.mark.parametrize(
    "status, cls",
    [
        (401, GitHubAuthenticationError),
        (403, GitHubPermissionError),
        (404, GitHubResourceNotFoundError),
        (409, GitHubConflictError),
    ],
)
def test_status_maps_to_error(client, status, cls):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/x", json={"message": "nope"}, status=status)
        with pytest.raises(cls) as info:
            client.get("/x")
    assert info.value.message == "nope"
    assert info.value.status == status


def test_validation_error_keeps_body(client):
    body = {"message": "Validation Failed", "errors": [{"field": "name"}]}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{BASE}/user/repos", json=body, status=422)
        with pytest.raises(GitHubValidationError) as info:
            client.post("/user/repos", {"name": ""})
    assert info.value.response == body


def test_rate_limit_error_with_reset(client):
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            f"{BASE}/x",
            json={"message": "limit"},
            status=403,
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "0"},
        )
        with pytest.raises(GitHubRateLimitError) as info:
            client.get("/x")
    assert info.value.reset_at == datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_other_status_raises_base_error_with_text(client):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/x", body="server broke", status=500)
        with pytest.raises(GitHubError) as info:
            client.get("/x")
    assert type(info.value) is GitHubError
    assert info.value.message == "server broke"
    assert info.value.status == 500


def test_get_github_client_uses_token_and_default_base():
    github = get_github_client("token")
    assert github.token == "token"
    assert github.base_url == "https://api.github.com"