"""Generic tool definitions derived from the registry's shape.

With one registered API there is no ``api`` argument at all; with several
it becomes required and ``list_registered_apis`` is offered.
"""

from swagger_mcp.protocol import InputSchema, PropertySchema, Tool
from swagger_mcp.registry import DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT, ApiRegistry

LIST_REGISTERED_APIS = "list_registered_apis"
LIST_API_CATEGORIES = "list_api_categories"
LIST_API_ENDPOINTS = "list_api_endpoints"
SEARCH_API = "search_api"
CALL_API = "call_api"


def build_tools(registry: ApiRegistry) -> list[Tool]:
    """Return the tool definitions in their fixed order."""
    multi = registry.is_multi
    subject = _subject(registry)

    tools = []
    if multi:
        tools.append(_list_registered_apis())
    tools.append(_list_categories(subject, multi))
    tools.append(_list_endpoints(multi))
    tools.append(_search_api(multi))
    tools.append(_call_api(multi))
    return tools


def _subject(registry: ApiRegistry) -> str:
    if len(registry) == 1:
        entry = next(iter(registry))
        return f"{entry.title or 'this API'} (v{entry.version or '?'})"
    return "the selected API"


def _api_property(multi: bool) -> dict[str, PropertySchema]:
    if not multi:
        return {}
    return {
        "api": PropertySchema(
            type="string",
            description="Name of the API to use. Call list_registered_apis to see the registered names.",
        )
    }


def _required(multi: bool, *names: str) -> list[str] | None:
    required = (["api"] if multi else []) + list(names)
    return required or None


def _list_registered_apis() -> Tool:
    return Tool(
        name=LIST_REGISTERED_APIS,
        description=(
            "List all registered APIs with their titles, versions and endpoint counts.\n"
            "Use this first to choose the 'api' argument for the other tools."
        ),
        input_schema=InputSchema(),
    )


def _list_categories(subject: str, multi: bool) -> Tool:
    return Tool(
        name=LIST_API_CATEGORIES,
        description=(
            f"List all API categories (tags) available in {subject}.\n"
            "Returns category names with endpoint counts.\n"
            "Use this first to explore the API structure."
        ),
        input_schema=InputSchema(properties=_api_property(multi), required=_required(multi)),
    )


def _list_endpoints(multi: bool) -> Tool:
    properties = _api_property(multi)
    properties["category"] = PropertySchema(
        type="string",
        description="Category (tag) name to list endpoints for. Use list_api_categories to get available categories.",
    )
    return Tool(
        name=LIST_API_ENDPOINTS,
        description=(
            "List all API endpoints in a specific category.\n"
            "Returns operationId, method, path, and summary for each endpoint.\n"
            "Use call_api with the operationId to invoke an endpoint."
        ),
        input_schema=InputSchema(properties=properties, required=_required(multi, "category")),
    )


def _search_api(multi: bool) -> Tool:
    properties = _api_property(multi)
    properties["keyword"] = PropertySchema(
        type="string",
        description="Keyword to search for in API paths, operationIds, summaries, descriptions and tags",
    )
    properties["limit"] = PropertySchema(
        type="integer",
        description=f"Maximum number of results to return (default: {DEFAULT_SEARCH_LIMIT}, max: {MAX_SEARCH_LIMIT})",
    )
    return Tool(
        name=SEARCH_API,
        description=(
            "Search for API endpoints by keyword.\n"
            "Searches in paths, operationIds, summaries, descriptions and tags.\n"
            "Returns matching endpoints with full details including parameters."
        ),
        input_schema=InputSchema(properties=properties, required=_required(multi, "keyword")),
    )


def _call_api(multi: bool) -> Tool:
    properties = _api_property(multi)
    properties["operationId"] = PropertySchema(
        type="string",
        description="The operationId of the API to call. Get this from list_api_endpoints or search_api.",
    )
    properties["parameters"] = PropertySchema(
        type="object",
        description=(
            "Parameters for the API call as a JSON object. "
            "Include path, query, header, and body parameters as needed."
        ),
    )
    properties["headers"] = PropertySchema(
        type="object",
        description="Extra HTTP headers to send, as a JSON object (e.g. {\"Authorization\": \"Bearer ...\"}).",
    )
    return Tool(
        name=CALL_API,
        description=(
            "Call an API endpoint by its operationId.\n"
            "First use list_api_endpoints or search_api to find the operationId and required parameters.\n"
            "Pass parameters as a JSON object with parameter names as keys."
        ),
        input_schema=InputSchema(properties=properties, required=_required(multi, "operationId")),
    )
