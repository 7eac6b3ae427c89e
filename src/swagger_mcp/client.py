"""HTTP client used to call the backend APIs."""

import json

import requests
from pydantic import BaseModel

from swagger_mcp.errors import HttpTransportError
from swagger_mcp.logger import get_logger

log = get_logger("http")

DEFAULT_TIMEOUT = 30.0
SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")


class HttpResponse(BaseModel):
    """What came back from the backend, before formatting."""

    status_code: int
    reason: str = ""
    text: str = ""


class HttpClient:
    """One pooled ``requests.Session`` bound to a single backend base URL."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers["Accept"] = "application/json"

    def build_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    def request(
        self,
        method: str,
        path: str,
        query: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        body: dict | None = None,
    ) -> HttpResponse:
        """Send one request. Raises HttpTransportError if no response was received."""
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        url = self.build_url(path)
        log.info(f"HTTP request: {method} {url}")
        if body:
            log.debug(f"Request body: {json.dumps(body, ensure_ascii=False)}")

        try:
            resp = self.session.request(
                method,
                url,
                params=query or None,
                headers=headers or None,
                json=body or None,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise HttpTransportError(str(e)) from e
        except ValueError as e:
            # http.client rejects header values it cannot encode as latin-1
            raise HttpTransportError(f"Cannot encode request: {e}") from e

        log.info(f"HTTP response: {resp.status_code} {resp.reason}")
        log.debug(f"Response body: {resp.text}")
        return HttpResponse(status_code=resp.status_code, reason=resp.reason or "", text=resp.text)

    def close(self) -> None:
        self.session.close()


def format_response(response: HttpResponse) -> str:
    """Render a response as the text block handed back to the agent."""
    lines = [
        "=== HTTP Response ===",
        f"Status: {response.status_code} {response.reason}".rstrip(),
        "",
    ]

    body = response.text
    if body and body.strip():
        try:
            pretty = json.dumps(json.loads(body), indent=2, ensure_ascii=False)
        except ValueError:
            pretty = body
        lines.append("Response data:")
        lines.append(pretty)
    else:
        lines.append("(no response body)")

    return "\n".join(lines)
