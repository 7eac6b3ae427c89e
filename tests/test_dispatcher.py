from unittest.mock import MagicMock

from swagger_mcp.client import HttpClient, HttpResponse
from swagger_mcp.dispatcher import CallDispatcher, format_endpoint_details, stringify
from swagger_mcp.errors import HttpTransportError
from swagger_mcp.parser.base import ApiEndpoint, Param
from swagger_mcp.registry import ApiEntry, ApiRegistry, EndpointCatalog

ENDPOINTS = [
    ApiEndpoint(
        operation_id="getPetById", method="GET", path="/pet/{petId}",
        summary="Find pet by ID", tags=["pet"],
        parameters=[Param(name="petId", location="path", required=True, param_type="integer")],
    ),
    ApiEndpoint(
        operation_id="findPets", method="GET", path="/pet/findByStatus",
        summary="Finds pets by status", tags=["pet"],
        parameters=[
            Param(name="status", location="query"),
            Param(name="tags", location="query", param_type="array"),
            Param(name="X-Trace", location="header"),
        ],
    ),
    ApiEndpoint(
        operation_id="addPet", method="POST", path="/pet",
        summary="Add a new pet", tags=["pet", "store"],
        parameters=[
            Param(name="name", location="body", required=True),
            Param(name="photoUrls", location="body", required=True, param_type="array"),
            Param(name="age", location="body", param_type="integer"),
        ],
    ),
    ApiEndpoint(
        operation_id="getOrder", method="GET", path="/store/{storeId}/order/{orderId}",
        tags=["store"],
        parameters=[
            Param(name="storeId", location="path", required=True),
            Param(name="orderId", location="path"),
        ],
    ),
    ApiEndpoint(operation_id="health", method="GET", path="/health"),
]


def _entry(name="local", auth=None, title="Petstore", version="1.0"):
    client = MagicMock(spec=HttpClient)
    client.request.return_value = HttpResponse(status_code=200, reason="OK", text='{"id": 42}')
    return ApiEntry(
        name=name, source="s", base_url=f"http://{name}", title=title, version=version,
        catalog=EndpointCatalog(ENDPOINTS), auth=auth, client=client,
    )


def _dispatcher(*entries):
    return CallDispatcher(ApiRegistry(entries or [_entry()]))


class TestUnknownTool:
    def test_unknown_tool_is_tool_error(self):
        result = _dispatcher().call("delete_everything", {})
        assert result.is_error
        assert "Unknown tool: delete_everything" in result.text


class TestListRegisteredApis:
    def test_lists_names_and_counts(self):
        result = _dispatcher(_entry("local"), _entry("dev")).call("list_registered_apis", {})
        assert not result.is_error
        assert "| local | Petstore | 1.0 | http://local | 3 | 5 |" in result.text
        assert "| dev |" in result.text


class TestListCategories:
    def test_categories_with_counts(self):
        result = _dispatcher().call("list_api_categories", {})
        assert not result.is_error
        assert "Total: 3 categories, 5 endpoints" in result.text
        assert "| pet | 3 |" in result.text
        assert "| store | 2 |" in result.text
        assert "| default | 1 |" in result.text

    def test_multi_api_without_name_prompts_for_choice(self):
        result = _dispatcher(_entry("local"), _entry("dev")).call("list_api_categories", {})
        assert not result.is_error
        assert "Choose one" in result.text
        assert "**local**" in result.text
        assert "**dev**" in result.text
        assert "5 endpoints" in result.text
        assert "http://local" not in result.text

    def test_multi_api_unknown_name_is_error(self):
        result = _dispatcher(_entry("local"), _entry("dev")).call("list_api_categories", {"api": "prod"})
        assert result.is_error
        assert "API not found: prod" in result.text
        assert "**dev**" in result.text

    def test_multi_api_case_insensitive(self):
        result = _dispatcher(_entry("Local"), _entry("dev", title="Dev API")).call("list_api_categories", {"api": "local"})
        assert not result.is_error
        assert "**Petstore**" in result.text

    def test_empty_registry(self):
        result = CallDispatcher(ApiRegistry()).call("list_api_categories", {})
        assert result.is_error
        assert "No APIs are registered" in result.text


class TestListEndpoints:
    def test_endpoints_in_category(self):
        result = _dispatcher().call("list_api_endpoints", {"category": "store"})
        assert not result.is_error
        assert "Total: 2 endpoints" in result.text
        assert "## addPet" in result.text
        assert "- **Required params:** name, photoUrls" in result.text
        assert "- **Optional params:** age" in result.text

    def test_category_case_insensitive(self):
        result = _dispatcher().call("list_api_endpoints", {"category": "PET"})
        assert "# Endpoints in 'pet'" in result.text

    def test_unknown_category_lists_available(self):
        result = _dispatcher().call("list_api_endpoints", {"category": "users"})
        assert result.is_error
        assert "Available categories: pet, store, default" in result.text

    def test_category_required(self):
        assert _dispatcher().call("list_api_endpoints", {}).is_error


class TestSearchApi:
    def test_limit_above_max_reports_fifty(self):
        result = _dispatcher().call("search_api", {"keyword": "pet", "limit": 100})
        assert "Found 3 endpoints (showing max 50)" in result.text
        assert result.text.count("\n## ") == 3

    def test_limit_respected(self):
        result = _dispatcher().call("search_api", {"keyword": "pet", "limit": 1})
        assert "Found 1 endpoints (showing max 1)" in result.text

    def test_non_integer_limit_uses_default(self):
        result = _dispatcher().call("search_api", {"keyword": "pet", "limit": "lots"})
        assert "(showing max 10)" in result.text

    def test_no_match(self):
        result = _dispatcher().call("search_api", {"keyword": "zebra"})
        assert not result.is_error
        assert "No endpoints found matching 'zebra'" in result.text

    def test_keyword_required(self):
        assert _dispatcher().call("search_api", {"limit": 5}).is_error


class TestCallApi:
    def test_path_parameter_substituted(self):
        entry = _entry()
        result = _dispatcher(entry).call("call_api", {"operationId": "getPetById", "parameters": {"petId": "42"}})
        assert not result.is_error
        entry.client.request.assert_called_once_with("GET", "/pet/42", {}, {}, None)
        assert "Status: 200 OK" in result.text

    def test_non_string_values_stringified(self):
        entry = _entry()
        _dispatcher(entry).call("call_api", {
            "operationId": "findPets",
            "parameters": {"status": "sold", "tags": ["a", "b"], "X-Trace": 7},
        })
        method, path, query, headers, body = entry.client.request.call_args[0]
        assert query == {"status": "sold", "tags": '["a","b"]'}
        assert headers == {"X-Trace": "7"}
        assert body is None

    def test_body_keeps_native_types(self):
        entry = _entry()
        _dispatcher(entry).call("call_api", {
            "operationId": "addPet",
            "parameters": {"name": "Rex", "photoUrls": ["u1"], "age": 3, "ignored": True},
        })
        body = entry.client.request.call_args[0][4]
        assert body == {"name": "Rex", "photoUrls": ["u1"], "age": 3}
        assert list(body) == ["name", "photoUrls", "age"]

    def test_missing_required_lists_all_and_skips_http(self):
        entry = _entry()
        result = _dispatcher(entry).call("call_api", {"operationId": "addPet", "parameters": {"name": None}})
        assert result.is_error
        assert "name (body), photoUrls (body)" in result.text
        entry.client.request.assert_not_called()

    def test_missing_parameters_object(self):
        entry = _entry()
        result = _dispatcher(entry).call("call_api", {"operationId": "getPetById"})
        assert result.is_error
        assert "petId (path)" in result.text
        assert entry.client.request.call_count == 0

    def test_optional_path_placeholder_left_in_place(self):
        entry = _entry()
        _dispatcher(entry).call("call_api", {"operationId": "getOrder", "parameters": {"storeId": 5}})
        assert entry.client.request.call_args[0][1] == "/store/5/order/{orderId}"

    def test_unknown_operation(self):
        result = _dispatcher().call("call_api", {"operationId": "nope"})
        assert result.is_error
        assert "Endpoint not found: nope" in result.text
        assert "search_api" in result.text

    def test_operation_id_case_insensitive(self):
        entry = _entry()
        _dispatcher(entry).call("call_api", {"operationId": "HEALTH"})
        entry.client.request.assert_called_once_with("GET", "/health", {}, {}, None)

    def test_custom_headers_merged(self):
        entry = _entry()
        _dispatcher(entry).call("call_api", {
            "operationId": "findPets",
            "parameters": {"X-Trace": "declared"},
            "headers": {"X-Trace": "custom", "X-Count": 2},
        })
        headers = entry.client.request.call_args[0][3]
        assert headers == {"X-Trace": "declared", "X-Count": "2"}

    def test_credential_injected(self):
        entry = _entry(auth="Bearer fixed")
        _dispatcher(entry).call("call_api", {"operationId": "health"})
        assert entry.client.request.call_args[0][3] == {"Authorization": "Bearer fixed"}

    def test_caller_authorization_wins(self):
        entry = _entry(auth="Bearer fixed")
        _dispatcher(entry).call("call_api", {"operationId": "health", "headers": {"authorization": "Bearer mine"}})
        assert entry.client.request.call_args[0][3] == {"authorization": "Bearer mine"}

    def test_transport_failure_is_tool_error(self):
        entry = _entry()
        entry.client.request.side_effect = HttpTransportError("connection refused")
        result = _dispatcher(entry).call("call_api", {"operationId": "health"})
        assert result.is_error
        assert "API call failed: connection refused" in result.text

    def test_http_error_status_is_not_tool_error(self):
        entry = _entry()
        entry.client.request.return_value = HttpResponse(status_code=404, reason="Not Found", text="")
        result = _dispatcher(entry).call("call_api", {"operationId": "health"})
        assert not result.is_error
        assert "Status: 404 Not Found" in result.text

    def test_parameters_must_be_object(self):
        result = _dispatcher().call("call_api", {"operationId": "health", "parameters": "petId=1"})
        assert result.is_error

    def test_routes_to_named_api(self):
        local, dev = _entry("local"), _entry("dev")
        _dispatcher(local, dev).call("call_api", {"api": "DEV", "operationId": "health"})
        dev.client.request.assert_called_once()
        local.client.request.assert_not_called()


class TestHelpers:
    def test_stringify(self):
        assert stringify("abc") == "abc"
        assert stringify(42) == "42"
        assert stringify(True) == "true"
        assert stringify({"a": 1}) == '{"a":1}'

    def test_endpoint_details_table(self):
        text = format_endpoint_details(ENDPOINTS[0])
        assert "**GET** `/pet/{petId}`" in text
        assert "| petId | path | integer | Yes |  |" in text

    def test_endpoint_details_without_parameters(self):
        assert "**Parameters:** None" in format_endpoint_details(ENDPOINTS[-1])
