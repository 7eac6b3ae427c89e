"""
MCP server loop over a line-delimited JSON-RPC stream (stdin/stdout).

One message is read, decoded, dispatched and answered before the next
line is read, so responses always come out in request order. Messages
without an id are notifications and never get a response.
"""

import json
import sys
from collections.abc import Callable
from typing import Any, BinaryIO

from pydantic import ValidationError

from swagger_mcp.config import PROTOCOL_VERSION, SERVER_NAME, SERVER_VERSION
from swagger_mcp.dispatcher import CallDispatcher
from swagger_mcp.logger import get_logger
from swagger_mcp.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    JsonRpcRequest,
    ProtocolError,
    initialize_result,
    make_error,
    make_response,
    tools_list_result,
)
from swagger_mcp.registry import ApiRegistry
from swagger_mcp.tools import build_tools

log = get_logger("server")

NOTIFICATION_METHODS = frozenset({"initialized", "notifications/initialized"})


class McpServer:
    """
    Usage:
        server = McpServer(registry)
        server.serve()
    """

    def __init__(
        self,
        registry: ApiRegistry,
        input_stream: BinaryIO | None = None,
        output_stream: BinaryIO | None = None,
    ):
        self.registry = registry
        self.dispatcher = CallDispatcher(registry)
        self._input = input_stream if input_stream is not None else sys.stdin.buffer
        self._output = output_stream if output_stream is not None else sys.stdout.buffer
        self._methods: dict[str, Callable[[Any], Any]] = {
            "initialize": self._handle_initialize,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
            "ping": self._handle_ping,
        }

    # ── main loop ────────────────────────────────────────────────

    def serve(self) -> None:
        """Process messages until EOF or an I/O failure."""
        log.info(f"Starting {SERVER_NAME} v{SERVER_VERSION} with {len(self.registry)} APIs")
        try:
            while True:
                line = self._input.readline()
                if not line:
                    log.info("EOF on input, shutting down")
                    break
                response = self.handle_line(line)
                if response is not None:
                    self._write(response)
        except OSError as e:
            log.error(f"I/O error, stopping: {e}")
        log.info("Server stopped")

    def handle_line(self, raw: bytes | str) -> dict[str, Any] | None:
        """Decode and dispatch one line; returns the response to send, if any."""
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                log.error(f"Input is not valid UTF-8: {e}")
                return make_error(None, PARSE_ERROR, f"Parse error: {e}")
        line = raw.strip()
        if not line:
            return None
        log.debug(f"Received: {line}")

        try:
            payload = json.loads(line)
        except ValueError as e:
            log.error(f"JSON parse error: {e}")
            return make_error(None, PARSE_ERROR, f"Parse error: {e}")

        return self.handle_message(payload)

    def handle_message(self, payload: Any) -> dict[str, Any] | None:
        if not isinstance(payload, dict):
            # no id to correlate with; only parse errors are answered with a null id
            log.warning(f"Ignoring non-object message: {type(payload).__name__}")
            return None

        request_id = payload.get("id")
        if "method" not in payload and ("result" in payload or "error" in payload):
            log.debug(f"Ignoring response message id={request_id}")
            return None

        try:
            request = JsonRpcRequest.model_validate(payload)
        except ValidationError as e:
            log.warning(f"Invalid request: {e.errors()[0]['msg']}")
            if request_id is None:
                return None
            return make_error(request_id, INVALID_REQUEST, "Invalid request")

        method = request.method
        if method in NOTIFICATION_METHODS:
            log.debug(f"Notification: {method}")
            return None

        handler = self._methods.get(method)
        if handler is None:
            if request.is_notification:
                log.debug(f"Ignoring unknown notification: {method}")
                return None
            log.warning(f"Unknown method: {method}")
            return make_error(request.id, METHOD_NOT_FOUND, f"Method not found: {method}")

        log.info(f"Method: {method}")
        try:
            result = handler(request.params)
        except ProtocolError as e:
            log.warning(f"Protocol error: {e.message} (code={e.code})")
            reply = make_error(request.id, e.code, e.message, e.data)
        except Exception as e:
            log.exception(f"Error handling {method}: {e}")
            reply = make_error(request.id, INTERNAL_ERROR, str(e))
        else:
            reply = make_response(request.id, result)

        if request.is_notification:
            return None
        return reply

    def _write(self, message: dict[str, Any]) -> None:
        text = json.dumps(message, ensure_ascii=False, separators=(",", ":"))
        log.debug(f"Sent: {text}")
        self._output.write((text + "\n").encode("utf-8"))
        self._output.flush()

    # ── handlers ─────────────────────────────────────────────────

    def _handle_initialize(self, params: Any) -> dict[str, Any]:
        client = params.get("clientInfo") if isinstance(params, dict) else None
        name = client.get("name", "?") if isinstance(client, dict) else "?"
        log.info(f"Client initialize: {name}")
        return initialize_result(
            server_name=SERVER_NAME,
            server_version=SERVER_VERSION,
            protocol_version=PROTOCOL_VERSION,
        )

    def _handle_tools_list(self, params: Any) -> dict[str, Any]:
        return tools_list_result(build_tools(self.registry))

    def _handle_tools_call(self, params: Any) -> dict[str, Any]:
        if not isinstance(params, dict):
            raise ProtocolError(INVALID_PARAMS, "tools/call requires params")
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise ProtocolError(INVALID_PARAMS, "Missing tool name")
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise ProtocolError(INVALID_PARAMS, "Tool arguments must be an object")

        return self.dispatcher.call(name, arguments).to_dict()

    def _handle_ping(self, params: Any) -> dict[str, Any]:
        return {}
