import io
import json

import pytest

from github_mcp_sse import server
from github_mcp_sse.auth import RequestContext, get_auth_token_from_context, with_auth_token
from github_mcp_sse.server import (
    MCPServer,
    Param,
    ParamType,
    Tool,
    ToolResult,
    serve_stdio,
    text_result,
)


def _echo(context, arguments):
    return text_result(json.dumps(arguments, sort_keys=True))


def _whoami(context, arguments):
    return text_result(get_auth_token_from_context(context))


def _boom(context, arguments):
    raise ValueError("boom")


@pytest.fixture
def mcp():
    srv = MCPServer("test", "1.0")
    srv.add_tool(
        Tool("echo", "Echo arguments", (Param("query", ParamType.STRING, "q", required=True),)),
        _echo,
    )
    srv.add_tool(Tool("whoami", "Report token"), _whoami)
    srv.add_tool(Tool("boom", "Always fails"), _boom)
    return srv


def _call(srv, name, arguments=None, context=None):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return srv.handle_message(
        {"jsonrpc": "2.0", "id": 7, "method": "tools/call", "params": params}, context
    )


def test_tool_schema_lists_properties_and_required():
    tool = Tool(
        "search",
        "Search",
        (
            Param("query", ParamType.STRING, "the query", required=True),
            Param("page", ParamType.NUMBER),
            Param("files", ParamType.ARRAY, "ops", required=True),
        ),
    )
    data = tool.to_dict()
    assert data["name"] == "search"
    schema = data["inputSchema"]
    assert schema["type"] == "object"
    assert schema["properties"]["query"] == {"type": "string", "description": "the query"}
    assert schema["properties"]["page"] == {"type": "number"}
    assert schema["properties"]["files"]["type"] == "array"
    assert schema["required"] == ["query", "files"]


def test_tool_without_required_params_omits_required():
    data = Tool("plain", "d", (Param("flag", ParamType.BOOLEAN),)).to_dict()
    assert "required" not in data["inputSchema"]
    assert data["inputSchema"]["properties"]["flag"] == {"type": "boolean"}


def test_text_result_and_error_flag():
    assert text_result("hi").to_dict() == {"content": [{"type": "text", "text": "hi"}]}
    failed = ToolResult(content=[], is_error=True).to_dict()
    assert failed["isError"] is True


def test_initialize_reports_server_info(mcp):
    response = mcp.handle_message({"jsonrpc": "2.0", "id": 1, "method": "initialize"})
    assert response["id"] == 1
    result = response["result"]
    assert result["serverInfo"] == {"name": "test", "version": "1.0"}
    assert result["protocolVersion"] == server.PROTOCOL_VERSION
    assert "tools" in result["capabilities"]


def test_ping_returns_empty_result(mcp):
    response = mcp.handle_message('{"jsonrpc": "2.0", "id": "a", "method": "ping"}')
    assert response == {"jsonrpc": "2.0", "id": "a", "result": {}}


def test_tools_list_is_sorted_by_name(mcp):
    response = mcp.handle_message({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    names = [tool["name"] for tool in response["result"]["tools"]]
    assert names == sorted(names)
    assert set(names) == {"echo", "whoami", "boom"}


def test_add_tool_replaces_same_name(mcp):
    mcp.add_tool(Tool("echo", "Replaced"), _whoami)
    descriptions = [tool.description for tool in mcp.tools if tool.name == "echo"]
    assert descriptions == ["Replaced"]


def test_tools_call_passes_arguments(mcp):
    response = _call(mcp, "echo", {"query": "x", "page": 2})
    assert response["id"] == 7
    text = response["result"]["content"][0]["text"]
    assert json.loads(text) == {"query": "x", "page": 2}


def test_tools_call_missing_arguments_gives_empty_dict(mcp):
    response = _call(mcp, "echo")
    assert json.loads(response["result"]["content"][0]["text"]) == {}


def test_tools_call_receives_context(mcp):
    context = with_auth_token(RequestContext(), "token")
    response = _call(mcp, "whoami", {}, context)
    assert response["result"]["content"][0]["text"] == "token"


def test_handler_exception_becomes_internal_error(mcp):
    response = _call(mcp, "boom", {})
    assert response["error"] == {"code": server.INTERNAL_ERROR, "message": "boom"}


def test_missing_token_is_reported_as_error(mcp):
    response = _call(mcp, "whoami", {})
    assert response["error"]["code"] == server.INTERNAL_ERROR
    assert "GITHUB_TOKEN" in response["error"]["message"]


def test_unknown_tool_is_invalid_params(mcp):
    response = _call(mcp, "nope", {})
    assert response["error"]["code"] == server.INVALID_PARAMS
    assert "nope" in response["error"]["message"]


def test_non_object_arguments_are_invalid_params(mcp):
    response = _call(mcp, "echo", [1, 2])
    assert response["error"]["code"] == server.INVALID_PARAMS


def test_unknown_method(mcp):
    response = mcp.handle_message({"jsonrpc": "2.0", "id": 3, "method": "resources/list"})
    assert response["error"]["code"] == server.METHOD_NOT_FOUND
    assert response["id"] == 3


def test_parse_error(mcp):
    response = mcp.handle_message("{not json")
    assert response["error"]["code"] == server.PARSE_ERROR
    assert response["id"] is None


def test_wrong_version_is_invalid_request(mcp):
    response = mcp.handle_message({"jsonrpc": "1.0", "id": 4, "method": "ping"})
    assert response["error"]["code"] == server.INVALID_REQUEST


def test_notification_has_no_response(mcp):
    assert mcp.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None


def test_serve_stdio_answers_each_request():
    srv = MCPServer("test", "1.0")
    srv.add_tool(Tool("whoami"), _whoami)
    lines = [
        json.dumps({"jsonrpc": "2.0", "id": 1, "method": "ping"}),
        "",
        json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
        json.dumps(
            {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "whoami"}}
        ),
    ]
    stdin = io.StringIO("\n".join(lines) + "\n")
    stdout = io.StringIO()
    serve_stdio(srv, lambda ctx: with_auth_token(ctx, "token"), stdin, stdout)
    responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert [r["id"] for r in responses] == [1, 2]
    assert responses[1]["result"]["content"][0]["text"] == "token"