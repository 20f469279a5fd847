"""Adapters: external integrations for the policy console.

Contains:
- opa_client.py: OPA REST API gateway client
"""

__all__: list[str] = []
