"""Decoding of OPA's policy API responses into stable shapes.

OPA deployments (and proxies in front of them) answer GET /v1/policies with
one of three `result` shapes:

- SINGLE : a mapping carrying an `id`:          {"result": {"id": "a", "raw": "..."}}
- ARRAY  : a list of policy objects:            {"result": [{"id": "a", "raw": "..."}]}
- MAPPING: a mapping of policy id to source:    {"result": {"a": "package a ..."}}

The shapes are tried in that order and the first match wins. Anything else is
rejected with UnrecognizedShapeError instead of degrading to an empty list.
"""

import json
from enum import Enum
from typing import Any

from opa_console.core.models import PolicyListItem
from opa_console.errors import UnrecognizedShapeError

POLICY_PATH_PREFIX = "/v1/policies/"


class PolicyListShape(str, Enum):
    """Tag for the detected `result` shape of a policy listing."""

    SINGLE = "single"
    ARRAY = "array"
    MAPPING = "mapping"


def policy_path(policy_id: str) -> str:
    """Return the OPA REST path for a policy id."""
    return f"{POLICY_PATH_PREFIX}{policy_id}"


def _length(value: Any) -> int:
    if isinstance(value, (str, list)):
        return len(value)
    return 0


def classify_policy_list(body: Any) -> PolicyListShape:
    """Detect which known shape a policy listing response has.

    Args:
        body: Decoded OPA response body.

    Returns:
        The matching PolicyListShape.

    Raises:
        UnrecognizedShapeError: If the body matches none of the known shapes.
    """
    if not isinstance(body, dict) or "result" not in body:
        raise UnrecognizedShapeError(
            f"Unrecognized policy list response: expected an object with a 'result' field, "
            f"got {type(body).__name__}"
        )

    result = body["result"]
    if isinstance(result, dict) and result.get("id"):
        return PolicyListShape.SINGLE
    if isinstance(result, list):
        return PolicyListShape.ARRAY
    if isinstance(result, dict):
        return PolicyListShape.MAPPING

    raise UnrecognizedShapeError(
        f"Unrecognized policy list response: 'result' is {type(result).__name__}"
    )


def decode_policy_list(body: Any) -> list[PolicyListItem]:
    """Normalize a GET /v1/policies response into a list of PolicyListItem.

    Args:
        body: Decoded OPA response body.

    Returns:
        One PolicyListItem per policy, with path /v1/policies/{id}.

    Raises:
        UnrecognizedShapeError: If the body matches none of the known shapes.
    """
    shape = classify_policy_list(body)
    result = body["result"]

    if shape is PolicyListShape.SINGLE:
        policy_id = str(result["id"])
        return [PolicyListItem(id=policy_id, path=policy_path(policy_id), size=_length(result.get("raw")))]

    if shape is PolicyListShape.ARRAY:
        items: list[PolicyListItem] = []
        for index, entry in enumerate(result):
            fields = entry if isinstance(entry, dict) else {}
            policy_id = str(fields.get("id") or fields.get("name") or f"policy-{index}")
            size = _length(fields.get("raw")) or _length(fields.get("content"))
            items.append(PolicyListItem(id=policy_id, path=policy_path(policy_id), size=size))
        return items

    return [
        PolicyListItem(id=policy_id, path=policy_path(policy_id), size=_length(source))
        for policy_id, source in result.items()
        if policy_id is not None and policy_id.strip() != ""
    ]


def extract_policy_content(body: Any) -> str:
    """Resolve the Rego source from a GET /v1/policies/{id} response.

    Resolution order: a plain-text body; `raw`; `result.raw`; a string
    `result`; otherwise the JSON serialization of `result` (or of the whole
    body when `result` is empty).

    Args:
        body: Decoded OPA response body (str for text responses).

    Returns:
        The policy source, always a string.
    """
    if isinstance(body, str):
        return body
    if not isinstance(body, dict):
        return json.dumps(body, indent=2)

    if body.get("raw"):
        return str(body["raw"])

    result = body.get("result")
    if isinstance(result, dict) and result.get("raw"):
        return str(result["raw"])
    if isinstance(result, str):
        return result

    return json.dumps(result or body, indent=2)
