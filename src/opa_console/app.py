"""FastAPI application factory for the policy console.

Wires together:
- The OPA gateway client (explicitly configured, never read from os.environ)
- The permission sync that mirrors document changes into OPA
- Exception handlers translating failures into `{"error": ...}` bodies
- The proxy router (/api/opa) and the trigger router (/triggers)
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from opa_console import __version__
from opa_console.adapters.opa_client import OPAClient
from opa_console.api.errors import register_exception_handlers
from opa_console.api.router import router as proxy_router
from opa_console.core.interfaces import IOPAGateway
from opa_console.observability import get_logger
from opa_console.settings import Settings
from opa_console.sync.permission_sync import PermissionSync
from opa_console.sync.routes import router as trigger_router

logger = get_logger(__name__)

API_PREFIX = "/api/opa"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Probe OPA at startup; an unreachable OPA is logged, not fatal.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    settings: Settings = app.state.settings
    is_opa_healthy = await app.state.opa_client.health_check()
    if not is_opa_healthy:
        logger.warning(
            "OPA is not reachable at startup, proxy calls will fail until OPA is available",
            opa_url=settings.opa_server_url,
        )

    logger.info("Policy console startup complete", service=settings.service_name, opa_url=settings.opa_server_url)
    yield
    logger.info("Policy console shutdown complete")


def create_app(settings: Settings, opa_client: IOPAGateway | None = None) -> FastAPI:
    """Build the policy console application.

    Args:
        settings: Loaded service settings.
        opa_client: Optional gateway override (tests inject one backed by a
            mock transport).

    Returns:
        The configured FastAPI application.
    """
    if opa_client is None:
        opa_client = OPAClient(
            opa_url=settings.opa_server_url,
            timeout_seconds=settings.request_timeout_seconds,
        )

    app = FastAPI(title=settings.service_name, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.opa_client = opa_client
    app.state.permission_sync = PermissionSync(
        opa_client=opa_client,
        data_path=settings.permissions_data_path,
        timeout_seconds=settings.sync_timeout_seconds,
    )

    register_exception_handlers(app)
    app.include_router(proxy_router, prefix=API_PREFIX)
    app.include_router(trigger_router)
    return app
