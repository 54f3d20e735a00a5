import http.client
import json
import threading
from http import HTTPStatus

import pytest

from github_mcp_sse import server
from github_mcp_sse.auth import auth_token_from_request, get_auth_token_from_context
from github_mcp_sse.server import MCPServer, Tool, text_result
from github_mcp_sse.sse import SSEServer


def _whoami(context, arguments):
    return text_result(get_auth_token_from_context(context))


def _make_mcp():
    mcp = MCPServer("test", "1.0")
    mcp.add_tool(Tool("whoami", "Report token"), _whoami)
    return mcp


def _launch(sse):
    thread = threading.Thread(target=sse.start, args=("127.0.0.1:0",), daemon=True)
    thread.start()
    assert sse.ready.wait(5)
    return thread


@pytest.fixture
def running():
    sse = SSEServer(_make_mcp(), context_func=auth_token_from_request)
    thread = _launch(sse)
    yield sse, thread
    sse.shutdown()
    thread.join(5)


def _connect(sse):
    host, port = sse.address
    return http.client.HTTPConnection(host, port, timeout=5)


def _open_stream(sse):
    conn = _connect(sse)
    conn.request("GET", "/sse")
    return conn, conn.getresponse()


def _read_event(resp):
    fields = {}
    while True:
        raw = resp.readline()
        if raw == b"":
            raise EOFError("stream closed")
        line = raw.decode("utf-8").rstrip("\r\n")
        if not line:
            if fields:
                return fields.get("event"), fields.get("data")
            continue
        key, _, value = line.partition(": ")
        fields[key] = value


def _request(sse, method, path, body=b"", headers=None):
    conn = _connect(sse)
    try:
        conn.request(method, path, body=body, headers=headers or {})
        resp = conn.getresponse()
        return resp.status, resp.read()
    finally:
        conn.close()


def test_stream_announces_message_endpoint(running):
    sse, _ = running
    conn, resp = _open_stream(sse)
    try:
        assert resp.getheader("Content-Type") == "text/event-stream"
        event, data = _read_event(resp)
        assert event == "endpoint"
        assert data.startswith("/message?sessionId=")
    finally:
        conn.close()


def test_base_url_prefixes_endpoint():
    sse = SSEServer(_make_mcp(), base_url="http://localhost:8080")
    thread = _launch(sse)
    try:
        conn, resp = _open_stream(sse)
        try:
            _, data = _read_event(resp)
            assert data.startswith("http://localhost:8080/message?sessionId=")
        finally:
            conn.close()
    finally:
        sse.shutdown()
        thread.join(5)


def test_posted_call_is_answered_and_streamed(running):
    sse, _ = running
    conn, resp = _open_stream(sse)
    try:
        _, endpoint = _read_event(resp)
        message = {
            "jsonrpc": "2.0",
            "id": 5,
            "method": "tools/call",
            "params": {"name": "whoami", "arguments": {}},
        }
        status, body = _request(
            sse,
            "POST",
            endpoint,
            json.dumps(message).encode(),
            {"Authorization": "Bearer token", "Content-Type": "application/json"},
        )
        assert status == HTTPStatus.ACCEPTED
        answer = json.loads(body)
        assert answer["id"] == 5
        assert answer["result"]["content"][0]["text"] == "Bearer token"
        event, data = _read_event(resp)
        assert event == "message"
        assert json.loads(data) == answer
    finally:
        conn.close()


def test_missing_authorization_gives_error(running):
    sse, _ = running
    conn, resp = _open_stream(sse)
    try:
        _, endpoint = _read_event(resp)
        message = {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "whoami"}}
        status, body = _request(sse, "POST", endpoint, json.dumps(message).encode())
        assert status == HTTPStatus.ACCEPTED
        assert json.loads(body)["error"]["code"] == server.INTERNAL_ERROR
    finally:
        conn.close()


def test_notification_gets_empty_accepted(running):
    sse, _ = running
    conn, resp = _open_stream(sse)
    try:
        _, endpoint = _read_event(resp)
        message = {"jsonrpc": "2.0", "method": "notifications/initialized"}
        status, body = _request(sse, "POST", endpoint, json.dumps(message).encode())
        assert status == HTTPStatus.ACCEPTED
        assert body == b""
    finally:
        conn.close()


def test_missing_session_id(running):
    sse, _ = running
    status, body = _request(sse, "POST", "/message", b"{}")
    assert status == HTTPStatus.BAD_REQUEST
    assert body == b"Missing sessionId"


def test_unknown_session_id(running):
    sse, _ = running
    status, body = _request(sse, "POST", "/message?sessionId=unknown", b"{}")
    assert status == HTTPStatus.BAD_REQUEST
    assert body == b"Invalid session ID"


def test_malformed_body_is_parse_error(running):
    sse, _ = running
    conn, resp = _open_stream(sse)
    try:
        _, endpoint = _read_event(resp)
        status, body = _request(sse, "POST", endpoint, b"{broken")
        assert status == HTTPStatus.BAD_REQUEST
        assert json.loads(body)["error"]["code"] == server.PARSE_ERROR
    finally:
        conn.close()


def test_wrong_method_and_path(running):
    sse, _ = running
    assert _request(sse, "GET", "/message")[0] == HTTPStatus.METHOD_NOT_ALLOWED
    assert _request(sse, "POST", "/sse")[0] == HTTPStatus.METHOD_NOT_ALLOWED
    assert _request(sse, "GET", "/elsewhere")[0] == HTTPStatus.NOT_FOUND


def test_shutdown_stops_server_and_streams(running):
    sse, thread = running
    conn, resp = _open_stream(sse)
    try:
        _read_event(resp)
        sse.shutdown()
        thread.join(5)
        assert not thread.is_alive()
        with pytest.raises(EOFError):
            _read_event(resp)
    finally:
        conn.close()


def test_bad_address_is_rejected():
    sse = SSEServer(_make_mcp())
    with pytest.raises(ValueError):
        sse.start("no-port-here")