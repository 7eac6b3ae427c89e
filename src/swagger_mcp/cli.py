"""CLI entry point for swagger-mcp."""

from pathlib import Path

import click

from swagger_mcp.client import DEFAULT_TIMEOUT
from swagger_mcp.config import auth_from_env, build_sources, parse_pairs
from swagger_mcp.logger import configure_logging
from swagger_mcp.registry import ApiSource, load_registry
from swagger_mcp.server import McpServer


def _api_options(func):
    """Options shared by every command that loads APIs."""
    options = [
        click.argument("spec", required=False, envvar="SWAGGER_SPEC_URL"),
        click.argument("base_url", required=False, envvar="API_BASE_URL"),
        click.option("--api", "apis", multiple=True, envvar="SWAGGER_MCP_APIS", help="Register an API as NAME=SPEC_URL_OR_PATH (repeatable)."),
        click.option("--auth", "auths", multiple=True, help="Fixed Authorization header value as NAME=VALUE (repeatable)."),
        click.option("--default-auth", envvar="API_AUTH", default=None, help="Authorization header value for the positional SPEC API."),
        click.option("--base-url", "base_urls", multiple=True, help="Override an API's base URL as NAME=URL (repeatable)."),
        click.option("--timeout", default=DEFAULT_TIMEOUT, type=float, envvar="SWAGGER_MCP_TIMEOUT", show_default=True, help="HTTP timeout in seconds."),
        click.option("--log-level", default="INFO", envvar="SWAGGER_MCP_LOG_LEVEL", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False), help="Log level (logs go to stderr)."),
        click.option("--log-file", default=None, envvar="SWAGGER_MCP_LOG_FILE", type=click.Path(path_type=Path), help="Also write logs to this file."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _collect_sources(
    spec: str | None,
    base_url: str | None,
    apis: tuple[str, ...],
    auths: tuple[str, ...],
    default_auth: str | None,
    base_urls: tuple[str, ...],
) -> list[ApiSource]:
    try:
        named = parse_pairs(apis, "--api")
        auth = parse_pairs(auths, "--auth")
        overrides = parse_pairs(base_urls, "--base-url")
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    # explicit --auth wins over the environment
    auth = {**auth_from_env(named), **auth}

    sources = build_sources(spec, base_url, named, auth, overrides, default_auth=default_auth)
    if not sources:
        raise click.UsageError("No API configured: pass SPEC (or SWAGGER_SPEC_URL) or at least one --api NAME=SPEC.")
    return sources


@click.group()
def main():
    """swagger-mcp: expose any OpenAPI/Swagger-described REST API to MCP clients."""
    pass


@main.command()
@_api_options
def serve(spec, base_url, apis, auths, default_auth, base_urls, timeout, log_level, log_file):
    """Run the MCP server on stdin/stdout."""
    configure_logging(log_level, log_file)
    sources = _collect_sources(spec, base_url, apis, auths, default_auth, base_urls)

    registry = load_registry(sources, timeout=timeout)
    try:
        McpServer(registry).serve()
    finally:
        registry.close()


@main.command()
@_api_options
def inspect(spec, base_url, apis, auths, default_auth, base_urls, timeout, log_level, log_file):
    """Load the configured APIs and print what the server would expose."""
    configure_logging(log_level, log_file)
    sources = _collect_sources(spec, base_url, apis, auths, default_auth, base_urls)

    registry = load_registry(sources, timeout=timeout)
    try:
        click.echo(f"Loaded {len(registry)} of {len(sources)} APIs.")
        for entry in registry:
            click.echo(f"\n{entry.name}: {entry.display_name}")
            click.echo(f"  base URL: {entry.base_url}")
            click.echo(f"  auth: {'configured' if entry.auth else 'none'}")
            click.echo(f"  {len(entry.catalog)} endpoints")
            for tag, endpoints in entry.catalog.tag_index.items():
                click.echo(f"    {tag}: {len(endpoints)}")
    finally:
        registry.close()
