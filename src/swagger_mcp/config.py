"""Server identity and startup configuration helpers."""

import os
from collections.abc import Iterable, Mapping

from swagger_mcp.registry import ApiSource

SERVER_NAME = "swagger-mcp"
SERVER_VERSION = "1.0.0"
PROTOCOL_VERSION = "2024-11-05"

DEFAULT_API_NAME = "default"
AUTH_ENV_PREFIX = "SWAGGER_MCP_AUTH_"


def parse_pairs(values: Iterable[str], option: str) -> dict[str, str]:
    """Parse ``NAME=VALUE`` items, keeping their order.

    Raises ValueError on items without ``=`` or with an empty name.
    """
    pairs: dict[str, str] = {}
    for item in values:
        for part in item.split(","):
            part = part.strip()
            if not part:
                continue
            name, sep, value = part.partition("=")
            if not sep or not name.strip() or not value.strip():
                raise ValueError(f"{option} expects NAME=VALUE, got {part!r}")
            pairs[name.strip()] = value.strip()
    return pairs


def auth_from_env(names: Iterable[str], environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect ``SWAGGER_MCP_AUTH_<NAME>`` credentials for the given API names."""
    environ = os.environ if environ is None else environ
    found = {}
    for name in names:
        key = AUTH_ENV_PREFIX + name.upper().replace("-", "_")
        if environ.get(key):
            found[name] = environ[key]
    return found


def build_sources(
    spec: str | None,
    base_url: str | None,
    apis: Mapping[str, str],
    auth: Mapping[str, str],
    base_urls: Mapping[str, str],
    default_auth: str | None = None,
) -> list[ApiSource]:
    """Combine single-API and named-API settings into ApiSource records.

    A positional ``spec`` registers the ``default`` API in front of any named ones.
    """
    sources = []
    if spec:
        sources.append(
            ApiSource(
                name=DEFAULT_API_NAME,
                source=spec,
                base_url=base_url or base_urls.get(DEFAULT_API_NAME),
                auth=auth.get(DEFAULT_API_NAME) or default_auth,
            )
        )
    for name, source in apis.items():
        sources.append(
            ApiSource(name=name, source=source, base_url=base_urls.get(name), auth=auth.get(name))
        )
    return sources
