"""HTTP entry point for permission document change notifications.

The document database (or the bridge forwarding its triggers) posts one
notification per change:

    POST /triggers/permissions/created
    POST /triggers/permissions/updated
    POST /triggers/permissions/deleted

with a DocumentEvent body. The endpoint always acknowledges with 202 once the
body is valid: the mirror to OPA is best-effort, and the originating write
must never be failed or retried because OPA is unavailable.
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Request

from opa_console.api.schemas import TriggerAcceptedResponse
from opa_console.core.models import DocumentEvent
from opa_console.sync.permission_sync import PermissionSync

router = APIRouter(prefix="/triggers", tags=["Permission Sync"])

ChangeType = Literal["created", "updated", "deleted"]


def get_permission_sync(request: Request) -> PermissionSync:
    """Return the PermissionSync created at application startup."""
    return request.app.state.permission_sync


@router.post("/permissions/{change_type}", response_model=TriggerAcceptedResponse, status_code=202)
async def permission_changed(
    change_type: ChangeType,
    event: DocumentEvent,
    sync: Annotated[PermissionSync, Depends(get_permission_sync)],
) -> TriggerAcceptedResponse:
    """Mirror one permission document change into OPA.

    Args:
        change_type: created, updated, or deleted.
        event: The change notification.
        sync: Injected PermissionSync.

    Returns:
        Acknowledgement; `synced` reports whether OPA accepted the mirror.
    """
    handlers = {
        "created": sync.on_created,
        "updated": sync.on_updated,
        "deleted": sync.on_deleted,
    }
    synced = await handlers[change_type](event)
    return TriggerAcceptedResponse(synced=synced)
