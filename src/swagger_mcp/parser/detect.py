"""Load an API document from a URL or a local file and detect its format."""

from pathlib import Path

import requests
import yaml

from swagger_mcp.errors import SpecLoadError

FETCH_TIMEOUT = 30


def is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def read_source(source: str) -> str:
    """Return the raw text of the document at ``source``."""
    if is_url(source):
        try:
            resp = requests.get(source, timeout=FETCH_TIMEOUT, headers={"Accept": "application/json, application/yaml"})
            resp.raise_for_status()
        except requests.RequestException as e:
            raise SpecLoadError(source, str(e)) from e
        return resp.text

    path = Path(source).expanduser()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise SpecLoadError(source, str(e)) from e


def load_document(source: str) -> dict:
    """Fetch and decode an OpenAPI/Swagger document.

    YAML is a superset of JSON, so both are decoded with ``yaml.safe_load``.
    """
    text = read_source(source)
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SpecLoadError(source, f"invalid YAML/JSON: {e}") from e

    if not isinstance(doc, dict) or detect_format(doc) == "unknown":
        raise SpecLoadError(source, "not an OpenAPI or Swagger document")
    return doc


def detect_format(doc: dict) -> str:
    """Detect the document flavour.

    Returns: 'openapi3', 'swagger2', or 'unknown'.
    """
    if "openapi" in doc:
        return "openapi3"
    if "swagger" in doc:
        return "swagger2"
    return "unknown"
