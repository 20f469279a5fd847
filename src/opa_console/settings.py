"""Service settings for the OPA policy console.

The OPA base URL is read from OPA_SERVER_URL and has no default: building
Settings without it fails at startup. Everything else uses the OPA_CONSOLE_
prefix and covers:
- Gateway request timeouts
- Permission-sync timeout and target data path
- Logging level and rendering
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the OPA policy console.

    Environment variable prefix: OPA_CONSOLE_ (except OPA_SERVER_URL).
    """

    service_name: str = "opa-policy-console"

    # -------------------------------------------------------------------------
    # OPA (Open Policy Agent) integration
    # -------------------------------------------------------------------------

    opa_server_url: str = Field(
        validation_alias="OPA_SERVER_URL",
        description="OPA REST API base URL, e.g. http://localhost:8181. Required.",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to every proxied OPA call.",
    )

    # -------------------------------------------------------------------------
    # Permission sync
    # -------------------------------------------------------------------------

    sync_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Hard timeout for each permission mirror PUT to OPA.",
    )
    permissions_data_path: str = Field(
        default="permissions",
        description="OPA data path that permission documents are mirrored under.",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    log_level: str = Field(default="INFO", description="Root log level.")
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="structlog renderer: json for production, console for local runs.",
    )

    model_config = SettingsConfigDict(env_prefix="OPA_CONSOLE_", populate_by_name=True)

    @field_validator("opa_server_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("OPA_SERVER_URL must not be empty")
        return value
