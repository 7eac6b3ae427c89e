"""
JSON-RPC 2.0 / MCP message models and builders.
"""

from typing import Any

from pydantic import BaseModel, Field

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ProtocolError(Exception):
    """A failure reported in the response's ``error`` object."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class JsonRpcRequest(BaseModel):
    """An inbound request; ``id`` absent or null marks a notification."""

    jsonrpc: str = JSONRPC_VERSION
    id: int | str | None = None
    method: str
    params: dict[str, Any] | list | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


def make_response(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def make_error(request_id: Any, code: int, message: str, data: Any = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


# ── MCP payloads ─────────────────────────────────────────────


class PropertySchema(BaseModel):
    type: str
    description: str


class InputSchema(BaseModel):
    type: str = "object"
    properties: dict[str, PropertySchema] = {}
    required: list[str] | None = None


class Tool(BaseModel):
    name: str
    description: str
    input_schema: InputSchema = Field(default_factory=InputSchema, serialization_alias="inputSchema")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolResult(BaseModel):
    """Outcome of one tool call. ``is_error`` marks a tool-level failure."""

    text: str
    is_error: bool = False

    @classmethod
    def success(cls, text: str) -> "ToolResult":
        return cls(text=text)

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        return cls(text=text, is_error=True)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"content": [{"type": "text", "text": self.text}]}
        if self.is_error:
            result["isError"] = True
        return result


def initialize_result(server_name: str, server_version: str, protocol_version: str) -> dict[str, Any]:
    return {
        "protocolVersion": protocol_version,
        "capabilities": {"tools": {"listChanged": False}},
        "serverInfo": {"name": server_name, "version": server_version},
    }


def tools_list_result(tools: list[Tool]) -> dict[str, Any]:
    return {"tools": [t.to_dict() for t in tools]}
