"""Tests for OPA response normalization (core/normalization.py)."""

import json

import pytest

from opa_console.core.normalization import (
    PolicyListShape,
    classify_policy_list,
    decode_policy_list,
    extract_policy_content,
)
from opa_console.errors import UnrecognizedShapeError


class TestDecodePolicyList:
    """The three listing shapes and their priority order."""

    def test_single_object_becomes_one_item(self) -> None:
        body = {"result": {"id": "authz", "raw": "package authz"}}

        items = decode_policy_list(body)

        assert classify_policy_list(body) is PolicyListShape.SINGLE
        assert [item.model_dump() for item in items] == [
            {"id": "authz", "path": "/v1/policies/authz", "size": len("package authz")}
        ]

    def test_single_object_without_raw_has_zero_size(self) -> None:
        items = decode_policy_list({"result": {"id": "authz"}})
        assert items[0].size == 0

    def test_array_uses_id_then_name_then_index(self) -> None:
        body = {
            "result": [
                {"id": "a", "raw": "package a"},
                {"name": "b", "content": "package bb"},
                {"ast": {}},
                {"id": "", "name": ""},
            ]
        }

        items = decode_policy_list(body)

        assert [(item.id, item.path, item.size) for item in items] == [
            ("a", "/v1/policies/a", 9),
            ("b", "/v1/policies/b", 10),
            ("policy-2", "/v1/policies/policy-2", 0),
            ("policy-3", "/v1/policies/policy-3", 0),
        ]

    def test_empty_array_is_an_empty_listing(self) -> None:
        assert decode_policy_list({"result": []}) == []

    def test_mapping_of_ids_filters_blank_keys(self) -> None:
        body = {"result": {"x": "package x", "": "package blank", "   ": "package ws", "y": None}}

        items = decode_policy_list(body)

        assert classify_policy_list(body) is PolicyListShape.MAPPING
        assert [(item.id, item.path, item.size) for item in items] == [
            ("x", "/v1/policies/x", 9),
            ("y", "/v1/policies/y", 0),
        ]

    def test_single_object_check_wins_over_mapping(self) -> None:
        # A mapping that happens to carry an "id" key is read as one policy.
        body = {"result": {"id": "only", "other": "package other"}}
        assert [item.id for item in decode_policy_list(body)] == ["only"]

    @pytest.mark.parametrize(
        "body",
        [
            "package authz",
            ["not", "an", "envelope"],
            {},
            {"result": None},
            {"result": 42},
            {"result": "package authz"},
        ],
    )
    def test_unrecognized_shapes_raise(self, body: object) -> None:
        with pytest.raises(UnrecognizedShapeError):
            decode_policy_list(body)


class TestExtractPolicyContent:
    """Resolution order for a single policy's Rego source."""

    def test_text_body_is_used_verbatim(self) -> None:
        assert extract_policy_content("package example\nallow = true") == "package example\nallow = true"

    def test_top_level_raw(self) -> None:
        assert extract_policy_content({"raw": "package a", "result": {"raw": "package b"}}) == "package a"

    def test_result_raw(self) -> None:
        assert extract_policy_content({"result": {"id": "b", "raw": "package b"}}) == "package b"

    def test_string_result(self) -> None:
        assert extract_policy_content({"result": "package c"}) == "package c"

    def test_falls_back_to_serialized_result(self) -> None:
        body = {"result": {"id": "d", "ast": {"package": {}}}}
        assert json.loads(extract_policy_content(body)) == body["result"]

    def test_falls_back_to_serialized_body_when_result_empty(self) -> None:
        body = {"result": {}, "code": "weird"}
        assert json.loads(extract_policy_content(body)) == body
