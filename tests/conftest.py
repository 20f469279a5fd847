"""Test fixtures for the OPA policy console.

Provides:
- fake_opa / opa_client: a real OPAClient wired to a FakeOPA (tests/helpers.py)
- settings: Settings with a fixed OPA URL
- mock_opa_client: an AsyncMock gateway for router and sync tests
"""

from unittest.mock import AsyncMock

import pytest

from opa_console.adapters.opa_client import OPAClient
from opa_console.core.models import Policy, PolicyListItem
from opa_console.settings import Settings
from tests.helpers import OPA_URL, FakeOPA, make_client


@pytest.fixture()
def fake_opa() -> FakeOPA:
    """Return an empty in-memory OPA."""
    return FakeOPA()


@pytest.fixture()
def opa_client(fake_opa: FakeOPA) -> OPAClient:
    """Return a real OPAClient talking to the in-memory OPA."""
    return make_client(fake_opa)


@pytest.fixture()
def settings() -> Settings:
    """Return settings pointing at the fake OPA URL."""
    return Settings(opa_server_url=OPA_URL)


@pytest.fixture()
def mock_opa_client() -> AsyncMock:
    """Create a mock gateway that simulates a healthy OPA.

    Returns:
        AsyncMock with every gateway method returning a plausible value.
    """
    client = AsyncMock()
    client.list_policies.return_value = [PolicyListItem(id="authz", path="/v1/policies/authz", size=12)]
    client.get_policy.return_value = Policy(id="authz", content="package authz", path="/v1/policies/authz")
    client.create_policy.return_value = None
    client.update_policy.return_value = None
    client.delete_policy.return_value = None
    client.get_all_data.return_value = {"result": {}}
    client.get_data.return_value = {"result": {}}
    client.put_data.return_value = None
    client.delete_data.return_value = None
    client.patch_data.return_value = None
    client.query_data.return_value = {"result": True, "decision_id": "decision-1"}
    client.compile_policy.return_value = {"result": {"queries": [[]]}}
    client.get_health.return_value = {}
    client.get_metrics.return_value = "# metrics"
    client.health_check.return_value = True
    return client
