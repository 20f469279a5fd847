"""Proxy API router for the policy console.

Routes are thin: each one issues at most one gateway call and reshapes the
result for the UI. No policy logic lives here. Failures are raised as
ConsoleError subclasses and rendered as `{"error": message}` by the handlers
in api/errors.py; health and compile shape their own failure bodies.

Endpoints (mounted under /api/opa):
- GET/POST              /policies           : list / create policies
- GET/PUT/DELETE        /policies/{id}      : read / replace / delete a policy
- GET/PUT               /data               : whole data tree / replace root
- GET/PUT/PATCH/DELETE  /data/{path}        : data document at a path
- POST                  /query              : evaluate a path against input
- POST                  /compile            : validate Rego source
- GET                   /health             : OPA health
- GET                   /metrics            : OPA metrics
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from opa_console.api.schemas import (
    CompileRequest,
    CompileResponse,
    MutationResponse,
    PolicyCreateRequest,
    PolicyListResponse,
    PolicyResponse,
    QueryRequest,
)
from opa_console.core.data_tree import extract_data_items, parse_json_document
from opa_console.core.interfaces import IOPAGateway
from opa_console.errors import ConsoleError, ParseError, ValidationError
from opa_console.observability import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["opa"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_opa_client(request: Request) -> IOPAGateway:
    """Return the gateway client created at application startup.

    Args:
        request: The incoming request.

    Returns:
        The shared OPA gateway client.
    """
    return request.app.state.opa_client


Gateway = Annotated[IOPAGateway, Depends(get_opa_client)]


async def _read_text(request: Request) -> str:
    """Return the request body as text, raising ParseError when it is not UTF-8."""
    raw = await request.body()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError("Request body is not valid UTF-8") from exc


async def _read_json(request: Request) -> Any:
    """Parse the request body as JSON, raising ParseError when it is not."""
    return parse_json_document(await _read_text(request))


# ---------------------------------------------------------------------------
# Policy endpoints
# ---------------------------------------------------------------------------


@router.get("/policies", response_model=PolicyListResponse)
async def list_policies(opa: Gateway) -> PolicyListResponse:
    """List every policy loaded in OPA."""
    return PolicyListResponse(result=await opa.list_policies())


@router.post("/policies", response_model=MutationResponse, response_model_exclude_none=True)
async def create_policy(request: PolicyCreateRequest, opa: Gateway) -> MutationResponse:
    """Create or replace a policy from a JSON `{id, content}` body.

    Args:
        request: Policy creation request body.
        opa: Injected gateway client.

    Returns:
        Success acknowledgement with the policy id.
    """
    if not request.id or not request.content:
        raise ValidationError("Policy ID and content are required")

    logger.info("POST /policies", policy_id=request.id)
    await opa.create_policy(request.id, request.content)
    return MutationResponse(id=request.id)


@router.get("/policies/{policy_id:path}", response_model=PolicyResponse)
async def get_policy(policy_id: str, opa: Gateway) -> PolicyResponse:
    """Return one policy with its Rego source."""
    return PolicyResponse(result=await opa.get_policy(policy_id))


@router.put("/policies/{policy_id:path}", response_model=MutationResponse, response_model_exclude_none=True)
async def update_policy(policy_id: str, request: Request, opa: Gateway) -> MutationResponse:
    """Replace a policy.

    Accepts either a JSON `{content}` body or the raw Rego text, depending
    on the request's content type.

    Args:
        policy_id: Policy to replace.
        request: The incoming request.
        opa: Injected gateway client.

    Returns:
        Success acknowledgement with the policy id.
    """
    if "application/json" in request.headers.get("content-type", ""):
        body = await _read_json(request)
        content = body.get("content") if isinstance(body, dict) else None
    else:
        content = await _read_text(request)

    if not content or not isinstance(content, str):
        raise ValidationError("Policy content is required")

    logger.info("PUT /policies/{id}", policy_id=policy_id)
    await opa.update_policy(policy_id, content)
    return MutationResponse(id=policy_id)


@router.delete("/policies/{policy_id:path}", response_model=MutationResponse, response_model_exclude_none=True)
async def delete_policy(policy_id: str, opa: Gateway) -> MutationResponse:
    """Delete a policy."""
    logger.info("DELETE /policies/{id}", policy_id=policy_id)
    await opa.delete_policy(policy_id)
    return MutationResponse(id=policy_id)


# ---------------------------------------------------------------------------
# Data endpoints
# ---------------------------------------------------------------------------


@router.get("/data")
async def get_all_data(
    opa: Gateway,
    flatten: bool = Query(default=False, description="Also return every object node as a flat list"),
) -> Any:
    """Return OPA's whole data tree, optionally with a flattened node list."""
    body = await opa.get_all_data()
    if not flatten:
        return body

    items = [item.model_dump() for item in extract_data_items(body)]
    if isinstance(body, dict):
        return {**body, "items": items}
    return {"result": body, "items": items}


@router.put("/data", response_model=MutationResponse, response_model_exclude_none=True)
async def put_root_data(request: Request, opa: Gateway) -> MutationResponse:
    """Replace OPA's whole data tree."""
    value = await _read_json(request)
    logger.info("PUT /data")
    await opa.put_data("", value)
    return MutationResponse()


@router.get("/data/{data_path:path}")
async def get_data(data_path: str, opa: Gateway) -> Any:
    """Return the data document at a path as OPA sent it."""
    return await opa.get_data(data_path)


@router.put("/data/{data_path:path}", response_model=MutationResponse, response_model_exclude_none=True)
async def put_data(data_path: str, request: Request, opa: Gateway) -> MutationResponse:
    """Create or overwrite the data document at a path."""
    value = await _read_json(request)
    logger.info("PUT /data/{path}", data_path=data_path)
    await opa.put_data(data_path, value)
    return MutationResponse()


@router.patch("/data/{data_path:path}", response_model=MutationResponse, response_model_exclude_none=True)
async def patch_data(data_path: str, request: Request, opa: Gateway) -> MutationResponse:
    """Patch the data document at a path."""
    value = await _read_json(request)
    logger.info("PATCH /data/{path}", data_path=data_path)
    await opa.patch_data(data_path, value)
    return MutationResponse()


@router.delete("/data/{data_path:path}", response_model=MutationResponse, response_model_exclude_none=True)
async def delete_data(data_path: str, opa: Gateway) -> MutationResponse:
    """Delete the data document at a path."""
    logger.info("DELETE /data/{path}", data_path=data_path)
    await opa.delete_data(data_path)
    return MutationResponse()


# ---------------------------------------------------------------------------
# Query, compile, health
# ---------------------------------------------------------------------------


@router.post("/query")
async def query_data(request: QueryRequest, opa: Gateway) -> Any:
    """Evaluate the document at `path` against `input`.

    Returns:
        OPA's decision response as-is (`result`, optional `decision_id`).
    """
    if not request.path:
        raise ValidationError("Query path is required")
    return await opa.query_data(request.path, request.input if request.input is not None else {})


@router.post("/compile", response_model=CompileResponse, response_model_exclude_none=True)
async def compile_policy(request: CompileRequest, opa: Gateway) -> Any:
    """Validate Rego source through OPA's compile API.

    Returns:
        `{valid: true, result}` on success; `{valid: false, error}` with
        status 400 when OPA rejects the module.
    """
    if not request.content:
        raise ValidationError("Policy content is required")

    try:
        result = await opa.compile_policy(request.content)
    except ConsoleError as exc:
        logger.info("Policy failed to compile", error=exc.message)
        return JSONResponse(status_code=400, content={"valid": False, "error": exc.message})
    return CompileResponse(valid=True, result=result)


@router.get("/health")
async def health(opa: Gateway) -> Any:
    """Report OPA health as `{status: "ok", ...}`, or 503 when OPA is down."""
    try:
        body = await opa.get_health()
    except ConsoleError as exc:
        logger.warning("OPA health check failed", error=exc.message)
        return JSONResponse(status_code=503, content={"status": "error", "error": exc.message})
    extra = body if isinstance(body, dict) else {}
    return {"status": "ok", **extra}


@router.get("/metrics")
async def metrics(opa: Gateway) -> Any:
    """Pass OPA's metrics through as `{result: ...}`."""
    return {"result": await opa.get_metrics()}
