"""Generic tool handlers: browse, search and call any registered API.

Every handler returns a ToolResult. Expected failures (unknown API, category
or operationId, missing arguments, transport errors) are tool-level errors;
anything else propagates to the protocol engine as an internal error.
"""

import json
from collections.abc import Callable
from typing import Any

from swagger_mcp.client import format_response
from swagger_mcp.errors import HttpTransportError
from swagger_mcp.logger import get_logger
from swagger_mcp.parser.base import ApiEndpoint
from swagger_mcp.protocol import ToolResult
from swagger_mcp.registry import ApiEntry, ApiRegistry, effective_limit
from swagger_mcp.tools import (
    CALL_API,
    LIST_API_CATEGORIES,
    LIST_API_ENDPOINTS,
    LIST_REGISTERED_APIS,
    SEARCH_API,
)

log = get_logger("dispatcher")

AUTHORIZATION = "Authorization"


class CallDispatcher:
    """Executes one generic-tool invocation against the registry."""

    def __init__(self, registry: ApiRegistry):
        self.registry = registry
        self._handlers: dict[str, Callable[[dict], ToolResult]] = {
            LIST_REGISTERED_APIS: self._list_registered_apis,
            LIST_API_CATEGORIES: self._list_categories,
            LIST_API_ENDPOINTS: self._list_endpoints,
            SEARCH_API: self._search_api,
            CALL_API: self._call_api,
        }

    def call(self, name: str, arguments: dict | None) -> ToolResult:
        handler = self._handlers.get(name)
        if handler is None:
            return ToolResult.error(f"Unknown tool: {name}")
        log.info(f"Tool call: {name}")
        return handler(arguments or {})

    # ── API selection ────────────────────────────────────────────

    def _resolve(self, arguments: dict) -> tuple[ApiEntry | None, ToolResult | None]:
        if not len(self.registry):
            return None, ToolResult.error("No APIs are registered.")

        name = _string_arg(arguments, "api")
        entry = self.registry.resolve(name)
        if entry is not None:
            return entry, None

        if not name:
            return None, ToolResult.success(
                "Multiple APIs are registered. Choose one with the `api` argument:\n\n" + self._api_choices()
            )
        return None, ToolResult.error(f"API not found: {name}\n\nChoose one of:\n\n" + self._api_choices())

    def _api_choices(self) -> str:
        return "\n".join(
            f"- **{entry.name}**: {entry.display_name}, {len(entry.catalog)} endpoints"
            for entry in self.registry
        )

    # ── handlers ─────────────────────────────────────────────────

    def _list_registered_apis(self, arguments: dict) -> ToolResult:
        if not len(self.registry):
            return ToolResult.success("No APIs are registered.")

        lines = [
            "# Registered APIs",
            "",
            f"Total: {len(self.registry)} APIs",
            "",
            "| Name | Title | Version | Base URL | Categories | Endpoints |",
            "|------|-------|---------|----------|------------|-----------|",
        ]
        for entry in self.registry:
            lines.append(
                f"| {entry.name} | {entry.title or '-'} | {entry.version or '-'} | {entry.base_url} "
                f"| {len(entry.catalog.tags)} | {len(entry.catalog)} |"
            )
        lines.append("")
        lines.append("*Pass the name as the `api` argument of the other tools.*")
        return ToolResult.success("\n".join(lines))

    def _list_categories(self, arguments: dict) -> ToolResult:
        entry, failure = self._resolve(arguments)
        if failure:
            return failure

        catalog = entry.catalog
        lines = [
            "# API Categories",
            "",
            f"**{entry.title or entry.name}** (v{entry.version or '?'})",
            "",
            f"Total: {len(catalog.tags)} categories, {len(catalog)} endpoints",
            "",
            "| Category | Endpoints |",
            "|----------|-----------|",
        ]
        for tag, endpoints in catalog.tag_index.items():
            lines.append(f"| {tag} | {len(endpoints)} |")
        lines.append("")
        lines.append("*Use `list_api_endpoints` with a category name to see endpoints.*")
        return ToolResult.success("\n".join(lines))

    def _list_endpoints(self, arguments: dict) -> ToolResult:
        entry, failure = self._resolve(arguments)
        if failure:
            return failure

        category = _string_arg(arguments, "category")
        if not category:
            return ToolResult.error("'category' parameter is required")

        found = entry.catalog.by_tag(category)
        if found is None:
            return ToolResult.error(
                f"Category not found: {category}\n"
                f"Available categories: {', '.join(entry.catalog.tags)}"
            )
        tag, endpoints = found

        lines = [f"# Endpoints in '{tag}'", "", f"Total: {len(endpoints)} endpoints", ""]
        for ep in endpoints:
            lines.append(f"## {ep.operation_id}")
            lines.append(f"- **Method:** {ep.method}")
            lines.append(f"- **Path:** {ep.path}")
            if ep.summary:
                lines.append(f"- **Summary:** {ep.summary}")
            required = [p.name for p in ep.parameters if p.required]
            optional = [p.name for p in ep.parameters if not p.required]
            if required:
                lines.append(f"- **Required params:** {', '.join(required)}")
            if optional:
                lines.append(f"- **Optional params:** {', '.join(optional)}")
            lines.append("")

        lines.append("*Use `call_api` with operationId and parameters to call an endpoint.*")
        lines.append("*Use `search_api` to get full parameter details for a specific endpoint.*")
        return ToolResult.success("\n".join(lines))

    def _search_api(self, arguments: dict) -> ToolResult:
        entry, failure = self._resolve(arguments)
        if failure:
            return failure

        keyword = _string_arg(arguments, "keyword")
        if not keyword:
            return ToolResult.error("'keyword' parameter is required")

        limit = effective_limit(arguments.get("limit"))
        matches = entry.catalog.search(keyword, limit)
        if not matches:
            return ToolResult.success(
                f"No endpoints found matching '{keyword}'.\n"
                "Try different keywords or use list_api_categories to browse."
            )

        parts = [
            f"# Search Results for '{keyword}'\n\n"
            f"Found {len(matches)} endpoints (showing max {limit})\n"
        ]
        for ep in matches:
            parts.append(format_endpoint_details(ep))
        return ToolResult.success("\n---\n\n".join(parts))

    def _call_api(self, arguments: dict) -> ToolResult:
        entry, failure = self._resolve(arguments)
        if failure:
            return failure

        operation_id = _string_arg(arguments, "operationId")
        if not operation_id:
            return ToolResult.error("'operationId' parameter is required")

        params = arguments.get("parameters")
        if params is None:
            params = {}
        elif not isinstance(params, dict):
            return ToolResult.error("'parameters' must be a JSON object")

        custom_headers = arguments.get("headers")
        if custom_headers is None:
            custom_headers = {}
        elif not isinstance(custom_headers, dict):
            return ToolResult.error("'headers' must be a JSON object")

        return call_endpoint(entry, operation_id, params, custom_headers)


def call_endpoint(entry: ApiEntry, operation_id: str, params: dict, custom_headers: dict) -> ToolResult:
    """Turn one call_api invocation into an HTTP request and format the outcome."""
    endpoint = entry.catalog.by_operation_id(operation_id)
    if endpoint is None:
        return ToolResult.error(
            f"Endpoint not found: {operation_id}\n"
            "Use search_api or list_api_endpoints to find valid operationIds."
        )

    path_params: dict[str, str] = {}
    query: dict[str, str] = {}
    headers: dict[str, str] = {}
    body: dict[str, Any] = {}

    for key, value in custom_headers.items():
        if value is not None:
            headers[str(key)] = stringify(value)

    for param in endpoint.parameters:
        value = params.get(param.name)
        if value is None:
            continue
        if param.location == "path":
            path_params[param.name] = stringify(value)
        elif param.location == "query":
            query[param.name] = stringify(value)
        elif param.location == "header":
            headers[param.name] = stringify(value)
        elif param.location == "body":
            body[param.name] = value

    missing = [
        f"{p.name} ({p.location})"
        for p in endpoint.parameters
        if p.required and params.get(p.name) is None
    ]
    if missing:
        return ToolResult.error(
            f"Missing required parameters: {', '.join(missing)}\n\n"
            f"Use search_api with operationId '{endpoint.operation_id}' to see all parameter details."
        )

    path = endpoint.path
    for name, value in path_params.items():
        path = path.replace("{" + name + "}", value)

    if entry.auth and not any(k.lower() == AUTHORIZATION.lower() for k in headers):
        headers[AUTHORIZATION] = entry.auth

    try:
        response = entry.client.request(endpoint.method, path, query, headers, body or None)
    except HttpTransportError as e:
        log.error(f"API call failed: {endpoint.method} {path}: {e}")
        return ToolResult.error(f"API call failed: {e}")

    log.info(f"API call done: {endpoint.method} {path} -> {response.status_code}")
    return ToolResult.success(format_response(response))


def stringify(value: Any) -> str:
    """Strings pass through; anything else becomes its compact JSON text."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def format_endpoint_details(ep: ApiEndpoint) -> str:
    lines = [f"## {ep.operation_id}", f"**{ep.method}** `{ep.path}`", ""]

    if ep.summary:
        lines.extend([ep.summary, ""])
    if ep.description and ep.description != ep.summary:
        lines.extend([ep.description, ""])
    if ep.tags:
        lines.extend([f"**Tags:** {', '.join(ep.tags)}", ""])

    if ep.parameters:
        lines.append("**Parameters:**")
        lines.append("")
        lines.append("| Name | Location | Type | Required | Description |")
        lines.append("|------|----------|------|----------|-------------|")
        for p in ep.parameters:
            lines.append(
                f"| {p.name} | {p.location} | {p.param_type} | {'Yes' if p.required else 'No'} | {p.description} |"
            )
    else:
        lines.append("**Parameters:** None")

    return "\n".join(lines) + "\n"


def _string_arg(arguments: dict, name: str) -> str | None:
    value = arguments.get(name)
    if value is None:
        return None
    return value if isinstance(value, str) else stringify(value)
