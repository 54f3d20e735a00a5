# github-mcp-sse

A Model Context Protocol (MCP) server that gives MCP clients access to GitHub.
It answers JSON-RPC 2.0 messages over standard input/output or over HTTP with
Server-Sent Events (SSE).

## Tools

| Tool | What it does |
| --- | --- |
| `search_repositories` | Search GitHub repositories (`query`; optional `page`, default 1, and `per_page`, default 30) |
| `create_repository` | Create a repository for the authenticated user (`name`; optional `description`, `private`, `auto_init`) |
| `get_file_contents` | Read a file from a repository (`owner`, `repo`, `path`; optional `branch`) and return its decoded content |
| `create_or_update_file` | Create or update one file with a commit (`owner`, `repo`, `path`, `content`, `message`; optional `branch`, `sha`) |
| `push_files` | Commit several files at once to a branch (`owner`, `repo`, `branch`, `files`, `message`); each entry of `files` is an object with `path` and `content` |
| `fork_repository` | Fork a repository (`owner`, `repo`; optional `organization`) |
| `get_pull_request` | Fetch details of a pull request (`owner`, `repo`, `pull_number`) |
| `create_pull_request` | Open a pull request (`owner`, `repo`, `title`, `head`, `base`; optional `body`, `draft`, `maintainer_can_modify`) |
| `create_pull_request_review` | Submit a review (`owner`, `repo`, `pull_number`, `event` = `APPROVE`, `REQUEST_CHANGES` or `COMMENT`; optional `body`, `commit_id`) |

Every tool returns its result as a single text item holding pretty-printed JSON.
A tool that fails (a missing token, an argument of the wrong type, an error from
GitHub) is answered with a JSON-RPC error whose message is the error's text.

## Installation

```
pip install .
```

## Running

Standard input/output mode (the default):

```
github-mcp-sse
github-mcp-sse --transport stdio
```

The server reads one JSON-RPC message per line from standard input and writes
one response per line to standard output until the input ends. The GitHub token
is read from the `GITHUB_TOKEN` environment variable.

SSE mode, listening on `localhost` at the given port (default `8080`):

```
github-mcp-sse --transport sse --port 8080
```

The short options `-t` and `-p` work as well. Any other transport name is
reported as an error and the command exits with status 1.

In SSE mode a client opens an event stream with `GET /sse`. The first event,
`endpoint`, gives the URL to post messages to (`/message?sessionId=...`).
Each message posted there is answered in the HTTP response and also sent as a
`message` event on that client's stream.

The GitHub token is taken from the `Authorization` header of each posted
message. The header's whole value is used as the token and is sent on to GitHub
as `Authorization: Bearer <value>`, so the header should hold the bare token.

If no token is present, tool calls fail with an error that asks for
`GITHUB_TOKEN` or an `Authorization` header.

## Using the library

The operations can be called directly:

```python
from github_mcp_sse.repository import SearchRepositoriesOptions, search_repositories

result = search_repositories(SearchRepositoriesOptions(query="language:python"), "token")
for repo in result.items:
    print(repo.full_name)
```

The modules are:

- `github_mcp_sse.repository` – `search_repositories`, `create_repository`, `fork_repository`
- `github_mcp_sse.files` – `get_file_contents`, `create_or_update_file`, `push_files`
- `github_mcp_sse.pulls` – `get_pull_request`, `create_pull_request`, `create_pull_request_review`
- `github_mcp_sse.client` – `GitHubClient`, a small JSON client for the GitHub REST API
- `github_mcp_sse.server` – `MCPServer`, `Tool`, `Param`, `ToolResult` and `serve_stdio`
- `github_mcp_sse.sse` – `SSEServer`, with `start(addr)` and `shutdown()`
- `github_mcp_sse.tools` – the tool handlers and `register_tools(server)`
- `github_mcp_sse.cli` – `GitHubMCPServer` and the `main` command

Errors that GitHub reports are raised as subclasses of
`github_mcp_sse.errors.GitHubError`, chosen by HTTP status (401, 403, 404, 409,
422, and 429 or an exhausted rate limit). `push_files` wraps them in a
`RuntimeError` that names the step that failed. `format_github_error` turns any
of them into a readable message.

## What it does not do

- The server answers only `initialize`, `ping`, `tools/list` and `tools/call`;
  it offers no resources or prompts.
- The SSE server listens on `localhost` only and has no TLS.
- `push_files` writes regular files only; it does not delete files.

## Development

```
pip install -e ".[test]"
pytest
```