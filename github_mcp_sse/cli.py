"""Command-line entry point that runs the GitHub MCP server."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from .auth import VERSION, auth_token_from_env, auth_token_from_request
from .server import MCPServer
from .server import serve_stdio as _serve_stdio
from .sse import SSEServer
from .tools import register_tools

SERVER_NAME = "github-mcp-server"

_log = logging.getLogger(__name__)


class GitHubMCPServer:
    """An MCP server with all GitHub tools registered."""

    def __init__(self) -> None:
        self.server = MCPServer(SERVER_NAME, VERSION)
        register_tools(self.server)

    def serve_sse(self, addr: str) -> SSEServer:
        """Build an SSE server that takes tokens from the Authorization header."""
        return SSEServer(
            self.server,
            base_url=f"http://{addr}",
            context_func=auth_token_from_request,
        )

    def serve_stdio(self) -> None:
        """Serve on standard input and output with the token from GITHUB_TOKEN."""
        _serve_stdio(self.server, context_func=auth_token_from_env)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=SERVER_NAME)
    parser.add_argument(
        "-t",
        "--transport",
        default="stdio",
        help="トランスポートタイプ (stdio または sse)",
    )
    parser.add_argument(
        "-p",
        "--port",
        default="8080",
        help="SSEサーバーのポート番号",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the server on the transport chosen on the command line."""
    args = _parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    app = GitHubMCPServer()
    if args.transport == "stdio":
        _log.info("GitHub MCP Server を標準入出力モードで起動します")
        try:
            app.serve_stdio()
        except Exception as err:
            _log.error("サーバーエラー: %s", err)
            return 1
        return 0
    if args.transport == "sse":
        addr = f"localhost:{args.port}"
        _log.info("GitHub MCP Server をSSEモードで起動します (アドレス: %s)", addr)
        try:
            app.serve_sse(addr).start(addr)
        except Exception as err:
            _log.error("サーバーエラー: %s", err)
            return 1
        return 0

    _log.error(
        "無効なトランスポートタイプ: %s (stdio または sse を指定してください)",
        args.transport,
    )
    return 1


if __name__ == "__main__":
    raise SystemExit(main())