"""OPA (Open Policy Agent) REST API gateway client.

Single point of contact with the external OPA server. Provides async HTTP
access to:
- Policy management (/v1/policies)
- The hierarchical data tree and decision queries (/v1/data)
- Partial evaluation / compilation (/v1/compile)
- Health and metrics (/health, /metrics)

Responses are decoded by content type (JSON or plain text), and the
inconsistent policy-listing shapes are normalized in core.normalization.
Every non-2xx answer, network failure, or timeout surfaces as UpstreamError
carrying OPA's status code and response text.

OPA REST API reference: https://www.openpolicyagent.org/docs/latest/rest-api/
"""

import json
from typing import Any
from urllib.parse import quote

import httpx

from opa_console.core.data_tree import normalize_data_path
from opa_console.core.models import Policy, PolicyListItem
from opa_console.core.normalization import (
    classify_policy_list,
    decode_policy_list,
    extract_policy_content,
    policy_path,
)
from opa_console.errors import MalformedResponseError, ParseError, UpstreamError, ValidationError
from opa_console.observability import get_logger

logger = get_logger(__name__)

# Default request timeout in seconds, overridden by OPA_CONSOLE_REQUEST_TIMEOUT_SECONDS
_DEFAULT_TIMEOUT_SECONDS = 30.0

# Module name used for ad-hoc compile requests
_COMPILE_MODULE_NAME = "policy.rego"

# Upstream bodies are truncated to this many characters in logs
_LOG_BODY_LIMIT = 500


class OPAClient:
    """Async client for the OPA REST API.

    Args:
        opa_url: OPA REST API base URL, e.g. http://localhost:8181.
        timeout_seconds: Default timeout for every request.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        opa_url: str,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize OPAClient.

        Args:
            opa_url: OPA REST API base URL.
            timeout_seconds: Default per-request timeout in seconds.
            transport: Optional transport override.
        """
        self._opa_url = opa_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        """Decode a successful OPA response as JSON or text by content type."""
        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return response.text
        if not response.content:
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedResponseError(f"OPA returned malformed JSON: {exc}") from exc

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        text_body: str | None = None,
        timeout_seconds: float | None = None,
    ) -> Any:
        """Send one request to OPA and return the decoded body.

        Args:
            method: HTTP method.
            path: Path relative to the OPA base URL, starting with '/'.
            json_body: Value to send as a JSON body.
            text_body: Raw text to send as a text/plain body (takes precedence).
            timeout_seconds: Override for the client-wide timeout.

        Returns:
            The decoded response body (dict/list/scalar for JSON, str for text).

        Raises:
            UpstreamError: On non-2xx status, network failure, or timeout.
            MalformedResponseError: If OPA declares JSON but sends something else.
        """
        url = f"{self._opa_url}{path}"
        timeout = timeout_seconds if timeout_seconds is not None else self._timeout_seconds
        headers = {"Accept": "application/json"}
        request_kwargs: dict[str, Any] = {}
        if text_body is not None:
            headers["Content-Type"] = "text/plain"
            request_kwargs["content"] = text_body.encode("utf-8")
        elif json_body is not None or method in ("PUT", "PATCH", "POST"):
            headers["Content-Type"] = "application/json"
            request_kwargs["content"] = json.dumps(json_body).encode("utf-8")

        logger.debug("Calling OPA", method=method, opa_url=url)

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, **request_kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("OPA request timed out", method=method, opa_url=url, timeout_s=timeout)
            raise UpstreamError(f"OPA request timed out after {timeout}s") from exc
        except httpx.RequestError as exc:
            logger.error("OPA request failed", method=method, opa_url=url, error=str(exc))
            raise UpstreamError(f"OPA request error: {exc}") from exc

        if not response.is_success:
            logger.error(
                "OPA returned unexpected status",
                method=method,
                opa_url=url,
                status_code=response.status_code,
                body=response.text[:_LOG_BODY_LIMIT],
            )
            raise UpstreamError(
                f"OPA API Error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        return self._decode(response)

    @staticmethod
    def _data_path(path: str) -> str:
        clean_path = normalize_data_path(path)
        return f"/v1/data/{clean_path}" if clean_path else "/v1/data"

    # ------------------------------------------------------------------
    # Policies
    # ------------------------------------------------------------------

    async def list_policies(self) -> list[PolicyListItem]:
        """List every policy loaded in OPA.

        Returns:
            Normalized policy entries with id, path, and size.

        Raises:
            UpstreamError: If OPA is unreachable or answers non-2xx.
            UnrecognizedShapeError: If the listing has an unknown shape.
        """
        body = await self._request("GET", "/v1/policies")
        policies = decode_policy_list(body)
        logger.debug("Listed OPA policies", shape=classify_policy_list(body).value, count=len(policies))
        return policies

    async def get_policy(self, policy_id: str) -> Policy:
        """Fetch one policy and resolve its Rego source.

        Args:
            policy_id: OPA policy identifier. Sent as-is so ids containing
                slashes address the same path OPA reported them under.

        Returns:
            The policy with its content as a string.

        Raises:
            UpstreamError: Carries OPA's status (404 for an unknown id).
        """
        body = await self._request("GET", policy_path(policy_id))
        return Policy(id=policy_id, content=extract_policy_content(body), path=policy_path(policy_id))

    async def create_policy(self, policy_id: str, content: str) -> None:
        """Create or replace a policy with raw Rego source.

        OPA's PUT is an idempotent upsert, so this also serves as update.

        Args:
            policy_id: OPA policy identifier (URL-encoded on the wire).
            content: Rego source, sent as text/plain.

        Raises:
            UpstreamError: If OPA rejects the policy (e.g. a compile error).
        """
        logger.info("Uploading policy to OPA", policy_id=policy_id, content_length=len(content))
        await self._request("PUT", f"/v1/policies/{quote(policy_id, safe='')}", text_body=content)

    update_policy = create_policy

    async def delete_policy(self, policy_id: str) -> None:
        """Remove a policy from OPA.

        Args:
            policy_id: OPA policy identifier; must be non-blank.

        Raises:
            ValidationError: If the id is empty or whitespace (no request is sent).
            UpstreamError: If OPA answers non-2xx.
        """
        if not policy_id or not policy_id.strip():
            raise ValidationError(f'Invalid policy ID: "{policy_id}"')

        logger.info("Deleting policy from OPA", policy_id=policy_id)
        await self._request("DELETE", f"/v1/policies/{quote(policy_id, safe='')}")

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    async def get_all_data(self) -> Any:
        """Return OPA's whole data document as OPA sent it."""
        return await self._request("GET", "/v1/data")

    async def get_data(self, path: str) -> Any:
        """Return the data document at `path` (leading '/' optional)."""
        return await self._request("GET", self._data_path(path))

    async def put_data(self, path: str, value: Any, timeout_seconds: float | None = None) -> None:
        """Create or overwrite the data document at `path`.

        Args:
            path: Slash-delimited data path; '' addresses the root.
            value: Any JSON value.
            timeout_seconds: Optional override for this call's timeout.
        """
        await self._request("PUT", self._data_path(path), json_body=value, timeout_seconds=timeout_seconds)

    async def delete_data(self, path: str) -> None:
        """Delete the data document at `path`."""
        await self._request("DELETE", self._data_path(path))

    async def patch_data(self, path: str, value: Any) -> None:
        """Send a PATCH with `value` as the body to the data document at `path`."""
        await self._request("PATCH", self._data_path(path), json_body=value)

    async def query_data(self, path: str, input_data: Any) -> Any:
        """Evaluate the document at `path` against `input_data`.

        Returns:
            OPA's raw decision response, i.e. `result` and, when decision
            logging is on, `decision_id`.
        """
        return await self._request("POST", self._data_path(path), json_body={"input": input_data})

    async def compile_policy(self, content: str) -> Any:
        """Ask OPA to compile a query against a single ad-hoc module.

        Raises:
            UpstreamError: With OPA's compile errors in the message.
        """
        body = {
            "query": "data",
            "input": {},
            "unknowns": [],
            "modules": {_COMPILE_MODULE_NAME: content},
        }
        return await self._request("POST", "/v1/compile", json_body=body)

    # ------------------------------------------------------------------
    # Health & metrics
    # ------------------------------------------------------------------

    async def get_health(self) -> Any:
        """Return OPA's /health response as-is."""
        return await self._request("GET", "/health")

    async def get_metrics(self) -> Any:
        """Return OPA's /metrics response as-is (usually Prometheus text)."""
        return await self._request("GET", "/metrics")

    async def health_check(self) -> bool:
        """Check if OPA is reachable and healthy.

        Returns:
            True if OPA answers /health with a 2xx status, False otherwise.
        """
        try:
            await self.get_health()
        except (UpstreamError, ParseError):
            logger.warning("OPA health check failed, OPA not reachable", opa_url=self._opa_url)
            return False
        logger.debug("OPA health check", opa_url=self._opa_url, healthy=True)
        return True
