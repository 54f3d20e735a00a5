"""A minimal Model Context Protocol server: tool registry and JSON-RPC dispatch."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TextIO

from .auth import RequestContext

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ParamType(str, Enum):
    """JSON Schema types a tool parameter may take."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class Param:
    """One input parameter of a tool."""

    name: str
    type: ParamType
    description: str = ""
    required: bool = False


@dataclass(frozen=True)
class Tool:
    """A named tool with a description and its input parameters."""

    name: str
    description: str = ""
    params: tuple[Param, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        for param in self.params:
            schema: dict[str, Any] = {"type": ParamType(param.type).value}
            if param.description:
                schema["description"] = param.description
            properties[param.name] = schema
        input_schema: dict[str, Any] = {"type": "object", "properties": properties}
        required = [param.name for param in self.params if param.required]
        if required:
            input_schema["required"] = required
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": input_schema,
        }


@dataclass
class ToolResult:
    """The content returned by a tool call."""

    content: list[dict[str, Any]] = field(default_factory=list)
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": list(self.content)}
        if self.is_error:
            data["isError"] = True
        return data


def text_result(text: str) -> ToolResult:
    """A tool result holding a single piece of text."""
    return ToolResult(content=[{"type": "text", "text": text}])


Handler = Callable[[RequestContext, dict[str, Any]], ToolResult]


def _error(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": code, "message": message},
    }


def _result(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


class MCPServer:
    """Holds the registered tools and answers JSON-RPC messages."""

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        self._tools: dict[str, tuple[Tool, Handler]] = {}

    @property
    def tools(self) -> list[Tool]:
        return [tool for tool, _ in self._tools.values()]

    def add_tool(self, tool: Tool, handler: Handler) -> None:
        """Register ``tool``; a later tool with the same name replaces it."""
        self._tools[tool.name] = (tool, handler)

    def handle_message(
        self, message: Any, context: RequestContext | None = None
    ) -> dict[str, Any] | None:
        """Answer one JSON-RPC message; notifications yield None."""
        if isinstance(message, (bytes, bytearray)):
            message = message.decode("utf-8", errors="replace")
        if isinstance(message, str):
            try:
                message = json.loads(message)
            except ValueError:
                return _error(None, PARSE_ERROR, "Parse error")

        if not isinstance(message, Mapping):
            return _error(None, INVALID_REQUEST, "Invalid request")
        request_id = message.get("id")
        if message.get("jsonrpc") != JSONRPC_VERSION:
            return _error(request_id, INVALID_REQUEST, "Invalid JSON-RPC version")

        method = message.get("method")
        if "id" not in message or request_id is None:
            return None
        if not isinstance(method, str):
            return _error(request_id, INVALID_REQUEST, "Invalid request")

        context = context if context is not None else RequestContext()
        params = message.get("params")

        if method == "initialize":
            return _result(request_id, self._initialize_result())
        if method == "ping":
            return _result(request_id, {})
        if method == "tools/list":
            tools = sorted(self.tools, key=lambda tool: tool.name)
            return _result(request_id, {"tools": [tool.to_dict() for tool in tools]})
        if method == "tools/call":
            return self._call_tool(request_id, params, context)
        return _error(request_id, METHOD_NOT_FOUND, f"Method {method} not found")

    def _initialize_result(self) -> dict[str, Any]:
        capabilities: dict[str, Any] = {}
        if self._tools:
            capabilities["tools"] = {"listChanged": True}
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": capabilities,
            "serverInfo": {"name": self.name, "version": self.version},
        }

    def _call_tool(
        self, request_id: Any, params: Any, context: RequestContext
    ) -> dict[str, Any]:
        if not isinstance(params, Mapping) or not isinstance(params.get("name"), str):
            return _error(request_id, INVALID_PARAMS, "Invalid params")
        name = params["name"]
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            return _error(request_id, INVALID_PARAMS, "Invalid params")

        entry = self._tools.get(name)
        if entry is None:
            return _error(request_id, INVALID_PARAMS, f"Tool not found: {name}")
        _, handler = entry
        try:
            result = handler(context, dict(arguments))
        except Exception as err:  # a failing tool becomes a JSON-RPC error
            return _error(request_id, INTERNAL_ERROR, str(err))
        return _result(request_id, result.to_dict())


def serve_stdio(
    server: MCPServer,
    context_func: Callable[[RequestContext], RequestContext] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> None:
    """Answer newline-delimited JSON-RPC messages until the input ends."""
    source = sys.stdin if stdin is None else stdin
    sink = sys.stdout if stdout is None else stdout
    context = RequestContext()
    if context_func is not None:
        context = context_func(context)

    for line in source:
        text = line.strip()
        if not text:
            continue
        response = server.handle_message(text, context)
        if response is None:
            continue
        sink.write(json.dumps(response, ensure_ascii=False) + "\n")
        sink.flush()