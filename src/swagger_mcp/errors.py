"""Exceptions raised by the parser and the HTTP client."""


class SwaggerMcpError(Exception):
    """Base class for all swagger-mcp failures."""


class SpecLoadError(SwaggerMcpError):
    """The source document could not be fetched or parsed."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Cannot load API document {source}: {reason}")
        self.source = source
        self.reason = reason


class HttpTransportError(SwaggerMcpError):
    """The outbound HTTP request failed before a response was received."""
