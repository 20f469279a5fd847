"""Pydantic request and response schemas for the proxy API.

Request bodies keep every field optional so the routes can answer missing
input with the console's own `{"error": ...}` messages instead of field-level
validation output.

Resources:
- Policy : listing, single-policy reads, create/update/delete acknowledgements
- Query  : decision queries against the data API
- Compile: Rego validation through /v1/compile
- Trigger: permission document change acknowledgements
"""

from typing import Any

from pydantic import BaseModel, Field

from opa_console.core.models import Policy, PolicyListItem


# ---------------------------------------------------------------------------
# Policy schemas
# ---------------------------------------------------------------------------


class PolicyCreateRequest(BaseModel):
    """Request body for creating a policy."""

    id: str = Field(default="", description="OPA policy identifier")
    content: str = Field(default="", description="Rego source")


class PolicyListResponse(BaseModel):
    """Response schema for the policy listing."""

    result: list[PolicyListItem]


class PolicyResponse(BaseModel):
    """Response schema for a single policy."""

    result: Policy


class MutationResponse(BaseModel):
    """Acknowledgement of a successful write."""

    success: bool = True
    id: str | None = Field(default=None, description="Policy id, for policy mutations")


# ---------------------------------------------------------------------------
# Query / compile schemas
# ---------------------------------------------------------------------------


class QueryRequest(BaseModel):
    """Request body for a decision query."""

    path: str = Field(default="", description="Data path to evaluate, e.g. /example/allow")
    input: Any = Field(default=None, description="Input document; defaults to {}")


class CompileRequest(BaseModel):
    """Request body for validating a Rego module."""

    content: str = Field(default="", description="Rego source to compile")


class CompileResponse(BaseModel):
    """Outcome of a compile request."""

    valid: bool
    result: Any = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Trigger schemas
# ---------------------------------------------------------------------------


class TriggerAcceptedResponse(BaseModel):
    """Acknowledgement of a permission document change notification."""

    accepted: bool = True
    synced: bool = Field(description="Whether the mirror reached OPA")
