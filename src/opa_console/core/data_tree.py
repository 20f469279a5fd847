"""Helpers for OPA's hierarchical data tree."""

import json
from typing import Any

from opa_console.core.models import DataItem
from opa_console.errors import ParseError


def normalize_data_path(path: str) -> str:
    """Strip one leading slash; everything else is passed through verbatim.

    Args:
        path: Caller-supplied data path, e.g. "/users/alice".

    Returns:
        The path without its leading slash, e.g. "users/alice".
    """
    return path[1:] if path.startswith("/") else path


def _compact_size(value: Any) -> int:
    return len(json.dumps(value, separators=(",", ":"), ensure_ascii=False))


def extract_data_items(all_data: Any) -> list[DataItem]:
    """Flatten OPA's data tree into a list of object/array nodes.

    A top-level `{"result": ...}` envelope is unwrapped first. Nodes are
    emitted depth-first in pre-order; scalar leaves are not emitted.

    Args:
        all_data: The response of GET /v1/data, or any JSON value.

    Returns:
        DataItem entries with slash-delimited paths relative to the root.
    """
    items: list[DataItem] = []

    def walk(node: Any, current_path: str) -> None:
        if isinstance(node, dict):
            entries = list(node.items())
        elif isinstance(node, list):
            entries = [(str(index), value) for index, value in enumerate(node)]
        else:
            return
        for key, value in entries:
            path = f"{current_path}/{key}" if current_path else key
            if isinstance(value, (dict, list)):
                items.append(DataItem(path=path, data=value, size=_compact_size(value)))
                walk(value, path)

    if isinstance(all_data, dict) and all_data.get("result"):
        all_data = all_data["result"]
    walk(all_data, "")
    return items


def parse_json_document(text: str) -> Any:
    """Parse a user-supplied JSON document.

    Raises:
        ParseError: With a short explanation of what is wrong.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        if exc.pos >= len(text.rstrip()):
            hint = "Incomplete JSON: missing closing brackets or quotes"
        else:
            hint = "Syntax error: check for missing commas, quotes, or brackets"
        raise ParseError(f"{hint} (line {exc.lineno}, column {exc.colno})") from exc
