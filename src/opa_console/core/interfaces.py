"""Abstract interfaces (Protocol classes) for the policy console.

The proxy routes and the permission sync depend on this protocol, never on
the concrete httpx adapter, so both can be exercised against mocks.

Protocols defined:
- IOPAGateway
"""

from typing import Any, Protocol

from opa_console.core.models import Policy, PolicyListItem


class IOPAGateway(Protocol):
    """Contract for the OPA REST API gateway."""

    async def list_policies(self) -> list[PolicyListItem]:
        """List every policy loaded in OPA."""
        ...

    async def get_policy(self, policy_id: str) -> Policy:
        """Fetch one policy with its Rego source."""
        ...

    async def create_policy(self, policy_id: str, content: str) -> None:
        """Create or replace a policy."""
        ...

    async def update_policy(self, policy_id: str, content: str) -> None:
        """Replace a policy (alias of create_policy)."""
        ...

    async def delete_policy(self, policy_id: str) -> None:
        """Remove a policy; rejects a blank id without calling OPA."""
        ...

    async def get_all_data(self) -> Any:
        """Return OPA's whole data document."""
        ...

    async def get_data(self, path: str) -> Any:
        """Return the data document at a path."""
        ...

    async def put_data(self, path: str, value: Any, timeout_seconds: float | None = None) -> None:
        """Create or overwrite the data document at a path."""
        ...

    async def delete_data(self, path: str) -> None:
        """Delete the data document at a path."""
        ...

    async def patch_data(self, path: str, value: Any) -> None:
        """Patch the data document at a path."""
        ...

    async def query_data(self, path: str, input_data: Any) -> Any:
        """Evaluate the document at a path against input."""
        ...

    async def compile_policy(self, content: str) -> Any:
        """Compile a single ad-hoc module."""
        ...

    async def get_health(self) -> Any:
        """Return OPA's health response."""
        ...

    async def get_metrics(self) -> Any:
        """Return OPA's metrics response."""
        ...

    async def health_check(self) -> bool:
        """Return True if OPA is reachable and healthy."""
        ...
