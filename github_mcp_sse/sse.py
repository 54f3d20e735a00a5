"""Serving an MCP server over HTTP with Server-Sent Events."""

from __future__ import annotations

import json
import logging
import queue
import threading
import uuid
from collections.abc import Callable, Iterable
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlsplit

from .auth import RequestContext
from .server import PARSE_ERROR, MCPServer

_log = logging.getLogger(__name__)

ContextFunc = Callable[[RequestContext, Iterable[tuple[str, str]]], RequestContext]

_POLL_SECONDS = 0.1


def _split_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"address must be host:port, got {addr!r}")
    try:
        number = int(port)
    except ValueError as err:
        raise ValueError(f"invalid port in address {addr!r}") from err
    return host.strip("[]"), number


def _dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False)


class SSEServer:
    """Opens an event stream per client and answers messages posted to it."""

    def __init__(
        self,
        server: MCPServer,
        base_url: str = "",
        context_func: ContextFunc | None = None,
        sse_endpoint: str = "/sse",
        message_endpoint: str = "/message",
    ) -> None:
        self.server = server
        self.base_url = base_url.rstrip("/")
        self.context_func = context_func
        self.sse_endpoint = sse_endpoint
        self.message_endpoint = message_endpoint
        self.address: tuple[str, int] | None = None
        self.ready = threading.Event()
        self._sessions: dict[str, queue.Queue[str]] = {}
        self._lock = threading.Lock()
        self._closing = threading.Event()
        self._httpd: ThreadingHTTPServer | None = None

    def start(self, addr: str) -> None:
        """Listen on ``addr`` (host:port) and serve until shut down."""
        host, port = _split_addr(addr)
        httpd = ThreadingHTTPServer((host, port), self._handler_class())
        httpd.daemon_threads = True
        with self._lock:
            closing = self._closing.is_set()
            self._httpd = httpd
        self.address = (httpd.server_address[0], httpd.server_address[1])
        self.ready.set()
        try:
            if not closing:
                httpd.serve_forever(poll_interval=_POLL_SECONDS)
        finally:
            httpd.server_close()

    def shutdown(self) -> None:
        """Close all event streams and stop serving."""
        with self._lock:
            self._closing.set()
            httpd = self._httpd
        if httpd is not None:
            httpd.shutdown()

    def _handler_class(self) -> type[BaseHTTPRequestHandler]:
        owner = self

        class _Handler(BaseHTTPRequestHandler):
            server_version = "github-mcp-server"

            def do_GET(self) -> None:
                owner._dispatch(self, "GET")

            def do_POST(self) -> None:
                owner._dispatch(self, "POST")

            def log_message(self, format: str, *args: Any) -> None:
                _log.debug("%s - %s", self.address_string(), format % args)

        return _Handler

    def _dispatch(self, handler: BaseHTTPRequestHandler, method: str) -> None:
        path = urlsplit(handler.path).path
        if path == self.sse_endpoint:
            if method != "GET":
                self._send_text(handler, HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed")
                return
            self._handle_sse(handler)
        elif path == self.message_endpoint:
            if method != "POST":
                self._send_text(handler, HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed")
                return
            self._handle_message(handler)
        else:
            self._send_text(handler, HTTPStatus.NOT_FOUND, "Not found")

    @staticmethod
    def _send_body(
        handler: BaseHTTPRequestHandler, status: int, content_type: str, body: bytes
    ) -> None:
        handler.send_response(status)
        handler.send_header("Content-Type", content_type)
        handler.send_header("Content-Length", str(len(body)))
        handler.end_headers()
        if body:
            handler.wfile.write(body)

    def _send_text(self, handler: BaseHTTPRequestHandler, status: int, text: str) -> None:
        self._send_body(handler, status, "text/plain; charset=utf-8", text.encode("utf-8"))

    def _send_json(self, handler: BaseHTTPRequestHandler, status: int, data: Any) -> None:
        self._send_body(handler, status, "application/json", _dumps(data).encode("utf-8"))

    def _handle_sse(self, handler: BaseHTTPRequestHandler) -> None:
        session_id = str(uuid.uuid4())
        events: queue.Queue[str] = queue.Queue()
        with self._lock:
            self._sessions[session_id] = events
        try:
            handler.send_response(HTTPStatus.OK)
            handler.send_header("Content-Type", "text/event-stream")
            handler.send_header("Cache-Control", "no-cache")
            handler.send_header("Access-Control-Allow-Origin", "*")
            handler.end_headers()
            endpoint = f"{self.base_url}{self.message_endpoint}?sessionId={session_id}"
            self._write(handler, f"event: endpoint\ndata: {endpoint}\r\n\r\n")
            while not self._closing.is_set():
                try:
                    data = events.get(timeout=_POLL_SECONDS)
                except queue.Empty:
                    continue
                self._write(handler, f"event: message\ndata: {data}\n\n")
        except OSError:
            _log.debug("event stream %s closed by client", session_id)
        finally:
            with self._lock:
                self._sessions.pop(session_id, None)

    @staticmethod
    def _write(handler: BaseHTTPRequestHandler, text: str) -> None:
        handler.wfile.write(text.encode("utf-8"))
        handler.wfile.flush()

    def _handle_message(self, handler: BaseHTTPRequestHandler) -> None:
        query = parse_qs(urlsplit(handler.path).query)
        session_id = (query.get("sessionId") or [""])[0]
        if not session_id:
            self._send_text(handler, HTTPStatus.BAD_REQUEST, "Missing sessionId")
            return
        with self._lock:
            events = self._sessions.get(session_id)
        if events is None:
            self._send_text(handler, HTTPStatus.BAD_REQUEST, "Invalid session ID")
            return

        length = int(handler.headers.get("Content-Length") or 0)
        body = handler.rfile.read(length) if length > 0 else b""
        try:
            message = json.loads(body)
        except ValueError:
            self._send_json(
                handler,
                HTTPStatus.BAD_REQUEST,
                {
                    "jsonrpc": "2.0",
                    "id": None,
                    "error": {"code": PARSE_ERROR, "message": "Parse error"},
                },
            )
            return

        context = RequestContext()
        if self.context_func is not None:
            context = self.context_func(context, list(handler.headers.items()))

        response = self.server.handle_message(message, context)
        if response is None:
            self._send_body(handler, HTTPStatus.ACCEPTED, "application/json", b"")
            return
        events.put(_dumps(response))
        self._send_json(handler, HTTPStatus.ACCEPTED, response)