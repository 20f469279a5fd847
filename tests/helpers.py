"""Shared test doubles for the OPA policy console.

- FakeOPA: an in-memory OPA REST API served through httpx.MockTransport
- make_client: a real OPAClient whose requests go to a handler
- make_event: DocumentEvent notifications for permission documents
"""

import json
from typing import Any

import httpx

from opa_console.adapters.opa_client import OPAClient
from opa_console.core.models import DocumentEvent

OPA_URL = "http://opa.test:8181"


class FakeOPA:
    """In-memory stand-in for the OPA REST API.

    Stores policies as raw Rego text and data as a nested dict. Every request
    is recorded in `requests` so tests can assert on what went over the wire.
    """

    def __init__(self) -> None:
        self.policies: dict[str, str] = {}
        self.data: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/health":
            return httpx.Response(200, json={})
        if path == "/metrics":
            return httpx.Response(200, text="# TYPE http_request_duration_seconds histogram\n")
        if path == "/v1/compile":
            return httpx.Response(200, json={"result": {"queries": [[]]}})
        if path == "/v1/policies":
            listing = [{"id": policy_id, "raw": raw} for policy_id, raw in self.policies.items()]
            return httpx.Response(200, json={"result": listing})
        if path.startswith("/v1/policies/"):
            return self._policy(request, path.removeprefix("/v1/policies/"))
        if path == "/v1/data" or path.startswith("/v1/data/"):
            return self._data(request, path.removeprefix("/v1/data").strip("/"))
        return httpx.Response(404, json={"code": "not_found", "message": path})

    def _policy(self, request: httpx.Request, policy_id: str) -> httpx.Response:
        if request.method == "PUT":
            self.policies[policy_id] = request.content.decode("utf-8")
            return httpx.Response(200, json={})
        if policy_id not in self.policies:
            return httpx.Response(
                404,
                json={"code": "resource_not_found", "message": f"storage_not_found_error: policy id {policy_id!r}"},
            )
        if request.method == "DELETE":
            del self.policies[policy_id]
            return httpx.Response(200, json={})
        return httpx.Response(200, json={"result": {"id": policy_id, "raw": self.policies[policy_id]}})

    def _data(self, request: httpx.Request, data_path: str) -> httpx.Response:
        keys = [key for key in data_path.split("/") if key]
        if request.method == "PUT":
            self._set(keys, json.loads(request.content))
            return httpx.Response(204)
        if request.method == "DELETE":
            parent = self._get(keys[:-1])
            if not keys or not isinstance(parent, dict) or keys[-1] not in parent:
                return httpx.Response(404, json={"code": "resource_not_found", "message": data_path})
            del parent[keys[-1]]
            return httpx.Response(204)
        if request.method == "PATCH":
            return httpx.Response(204)

        node = self._get(keys)
        body: dict[str, Any] = {} if node is None else {"result": node}
        if request.method == "POST":
            body["decision_id"] = "decision-1"
        return httpx.Response(200, json=body)

    def _get(self, keys: list[str]) -> Any:
        node: Any = self.data
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return node

    def _set(self, keys: list[str], value: Any) -> None:
        if not keys:
            self.data = value
            return
        node = self.data
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value


def make_client(handler: Any) -> OPAClient:
    """Create an OPAClient whose requests are served by `handler`."""
    return OPAClient(opa_url=OPA_URL, timeout_seconds=5.0, transport=httpx.MockTransport(handler))


def make_event(
    tenant_id: str = "t1",
    module_id: str = "hrm",
    role_id: str = "Manager",
    data: dict[str, Any] | None = None,
    with_params: bool = True,
) -> DocumentEvent:
    """Create a DocumentEvent for tenant/{t}/module/{m}/role/{r}."""
    document = f"tenant/{tenant_id}/module/{module_id}/role/{role_id}"
    params = {"tenantId": tenant_id, "moduleId": module_id, "roleId": role_id} if with_params else {}
    return DocumentEvent(document=document, params=params, data=data)


