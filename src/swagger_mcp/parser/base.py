"""Unified data models for parsed API documents.

The OpenAPI / Swagger parser converts its input into these models;
the registry and dispatcher only ever see these.
"""

from pydantic import BaseModel

LOCATIONS = ("path", "query", "header", "body")


class Param(BaseModel):
    """A single declared parameter of an endpoint."""

    name: str
    location: str  # path / query / header / body
    required: bool = False
    param_type: str = "string"  # documentation only, never enforced
    description: str = ""


class ApiEndpoint(BaseModel):
    """A single API endpoint with all its metadata."""

    operation_id: str
    method: str  # GET / POST / PUT / DELETE / PATCH
    path: str  # /pet/{petId}
    summary: str = ""
    description: str = ""
    parameters: list[Param] = []
    tags: list[str] = []


class ParsedSpec(BaseModel):
    """Everything the registry needs from one source document."""

    endpoints: list[ApiEndpoint]
    base_url: str
    title: str | None = None
    version: str | None = None
