"""OpenAPI / Swagger document parser.

Parses OpenAPI 3.x and Swagger 2.0 documents into ApiEndpoint models,
plus the base URL, title and version the document declares.
"""

import re
from urllib.parse import urljoin, urlsplit

from swagger_mcp.logger import get_logger

from .base import ApiEndpoint, Param, ParsedSpec
from .detect import detect_format, is_url, load_document

log = get_logger("parser")

HTTP_METHODS = ("get", "post", "put", "delete", "patch")


def parse_openapi(source: str) -> ParsedSpec:
    """Load the document at ``source`` (URL or path) and parse it."""
    log.info(f"Parsing API document: {source}")
    doc = load_document(source)
    spec = parse_document(doc, source)
    log.info(
        f"{spec.title or 'API'} v{spec.version or '?'}: "
        f"{len(spec.endpoints)} endpoints, base URL {spec.base_url or '(none)'}"
    )
    return spec


def parse_document(doc: dict, source: str = "") -> ParsedSpec:
    """Parse an already decoded document."""
    endpoints = []
    paths = doc.get("paths") or {}

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        shared = path_item.get("parameters", [])

        for method, operation in path_item.items():
            if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            endpoints.append(_parse_operation(doc, method.upper(), path, operation, shared))

    info = doc.get("info") or {}
    title = info.get("title")
    version = info.get("version")

    return ParsedSpec(
        endpoints=endpoints,
        base_url=_base_url(doc, source),
        title=str(title) if title is not None else None,
        version=str(version) if version is not None else None,
    )


def _parse_operation(doc: dict, method: str, path: str, operation: dict, shared: list) -> ApiEndpoint:
    operation_id = operation.get("operationId") or generate_operation_id(method, path)

    params = _parse_parameters(doc, _merge_parameters(doc, shared, operation.get("parameters", [])))
    params.extend(_parse_request_body(doc, operation.get("requestBody")))

    summary = operation.get("summary") or ""
    description = operation.get("description") or summary

    log.debug(f"Endpoint: {method} {path} -> {operation_id}")
    return ApiEndpoint(
        operation_id=operation_id,
        method=method,
        path=path,
        summary=summary,
        description=description,
        parameters=params,
        tags=[str(t) for t in operation.get("tags") or []],
    )


def _merge_parameters(doc: dict, shared: list, own: list) -> list[dict]:
    """Path-item parameters apply to every operation; the operation's own win on clashes."""
    merged: dict[tuple, dict] = {}
    for raw in list(shared or []) + list(own or []):
        p = _resolve(doc, raw)
        if not p or "name" not in p:
            continue
        merged[(p["name"], p.get("in", "query"))] = p
    return list(merged.values())


def _parse_parameters(doc: dict, params: list[dict]) -> list[Param]:
    result = []
    for p in params:
        location = p.get("in", "query")

        if location == "body":
            # Swagger 2.0: the whole request body is one parameter with a schema
            result.extend(_schema_to_body_params(doc, p.get("schema")))
            continue
        if location == "formData":
            location = "body"
        if location not in ("path", "query", "header", "body"):
            log.debug(f"Skipping {location} parameter {p['name']}")
            continue

        schema = _resolve(doc, p.get("schema")) or {}
        param_type = schema.get("type") or p.get("type") or "string"

        result.append(
            Param(
                name=p["name"],
                location=location,
                required=bool(p.get("required", False)),
                param_type=str(param_type),
                description=p.get("description") or "",
            )
        )
    return result


def _parse_request_body(doc: dict, body: dict | None) -> list[Param]:
    body = _resolve(doc, body)
    if not body:
        return []
    content = body.get("content") or {}
    if "application/json" in content:
        return _schema_to_body_params(doc, content["application/json"].get("schema"))
    # Fallback: first available schema
    for ct_data in content.values():
        if isinstance(ct_data, dict):
            return _schema_to_body_params(doc, ct_data.get("schema"))
    return []


def _schema_to_body_params(doc: dict, schema: dict | None) -> list[Param]:
    resolved = _resolve(doc, schema)
    if not resolved:
        return []

    properties = resolved.get("properties") or {}
    required_fields = resolved.get("required") or []

    result = []
    for name, prop in properties.items():
        prop = prop or {}
        if "$ref" in prop:
            param_type = "object"
        else:
            param_type = prop.get("type") or "string"
        result.append(
            Param(
                name=name,
                location="body",
                required=name in required_fields,
                param_type=str(param_type),
                description=prop.get("description") or "",
            )
        )
    return result


def _resolve(doc: dict, node: dict | None) -> dict | None:
    """Follow a local ``$ref`` (``#/components/schemas/Pet``, ``#/definitions/Pet``...)."""
    seen = set()
    while isinstance(node, dict) and "$ref" in node:
        ref = node["$ref"]
        if not isinstance(ref, str) or not ref.startswith("#/") or ref in seen:
            return None
        seen.add(ref)
        target = doc
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                log.warning(f"Unresolvable reference: {ref}")
                return None
            target = target[part]
        node = target
    return node if isinstance(node, dict) else None


def generate_operation_id(method: str, path: str) -> str:
    """Build an operationId for operations that don't declare one.

    ``GET /pet/{petId}`` -> ``get_pet_petId``
    """
    clean = path.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    return f"{method.lower()}_{clean}"


def _base_url(doc: dict, source: str) -> str:
    if detect_format(doc) == "openapi3":
        servers = doc.get("servers") or []
        if servers and isinstance(servers[0], dict) and servers[0].get("url"):
            url = _expand_server_variables(servers[0])
            return _absolute(url, source)
    else:
        host = doc.get("host")
        base_path = doc.get("basePath") or ""
        if host:
            schemes = doc.get("schemes") or []
            scheme = schemes[0] if schemes else (urlsplit(source).scheme if is_url(source) else "https")
            return f"{scheme}://{host}{base_path}"
        if base_path:
            return _absolute(base_path, source)

    return derive_base_url(source)


def _expand_server_variables(server: dict) -> str:
    url = server["url"]
    for name, var in (server.get("variables") or {}).items():
        if isinstance(var, dict) and "default" in var:
            url = url.replace("{" + name + "}", str(var["default"]))
    return url


def _absolute(url: str, source: str) -> str:
    if is_url(url):
        return url
    if is_url(source):
        return urljoin(source, url)
    log.warning(f"Relative server URL {url!r} in {source} cannot be resolved")
    return ""


def derive_base_url(source: str) -> str:
    """Guess the base URL from the document URL (springdoc / swagger-ui conventions)."""
    if not is_url(source):
        return ""
    url = re.sub(r"/v3/api-docs.*", "", source)
    url = re.sub(r"/swagger.*", "", url)
    url = re.sub(r"/openapi.*", "", url)
    return url
