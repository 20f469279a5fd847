"""Permission sync: mirrors role permission documents into OPA.

Permission documents live in the document database at
tenant/{tenantId}/module/{moduleId}/role/{roleId}. Whenever one is created,
updated, or deleted, the CRUD flags are PUT to OPA's data API at
`{permissions_data_path}` nested as {tenantId: {moduleId: {roleId: ...}}}, where
the role entry is:

    {"permissions": {"create": ..., "read": ..., "update": ..., "delete": ...},
     "updatedAt": ..., "updatedBy": ...}

Deletion overwrites the mirror with all-false flags and updatedBy
"system-delete"; the OPA node itself is kept.

Delivery is best-effort and at-most-once. A failed or timed-out PUT is
logged with full context and absorbed, so the originating document write
never fails because OPA is unavailable. There is no retry queue.
"""

import asyncio
import re
from datetime import UTC, datetime

from opa_console.core.interfaces import IOPAGateway
from opa_console.core.models import (
    CRUDPermissions,
    DocumentEvent,
    OPASyncPayload,
    PermissionDocument,
    SyncAction,
    SyncMetadata,
)
from opa_console.observability import bind_context, clear_context, get_logger

logger = get_logger(__name__)

PERMISSION_DOCUMENT_PATTERN = "tenant/{tenantId}/module/{moduleId}/role/{roleId}"

_DOCUMENT_PATH_RE = re.compile(r"(?:^|/)tenant/(?P<tenantId>[^/]+)/module/(?P<moduleId>[^/]+)/role/(?P<roleId>[^/]+)$")

_DEFAULT_UPDATED_BY = "system"
_DELETE_UPDATED_BY = "system-delete"

# Default sync timeout in seconds, overridden by OPA_CONSOLE_SYNC_TIMEOUT_SECONDS
_DEFAULT_SYNC_TIMEOUT_SECONDS = 10.0


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def match_document_path(document_path: str) -> dict[str, str] | None:
    """Extract tenantId, moduleId, and roleId from a permission document path.

    Args:
        document_path: e.g. "tenant/t1/module/hrm/role/Manager". Fully
            qualified database paths ending in the document path also match.

    Returns:
        The captured params, or None if the path is not a permission document.
    """
    match = _DOCUMENT_PATH_RE.search(document_path)
    return match.groupdict() if match else None


class PermissionSync:
    """Pushes permission document changes to OPA's data API.

    Args:
        opa_client: Gateway implementing IOPAGateway.
        data_path: OPA data path the permission tree lives under.
        timeout_seconds: Deadline for each mirror PUT, covering the whole call
            from connect to response rather than each phase.
    """

    def __init__(
        self,
        opa_client: IOPAGateway,
        data_path: str = "permissions",
        timeout_seconds: float = _DEFAULT_SYNC_TIMEOUT_SECONDS,
    ) -> None:
        self._opa_client = opa_client
        self._data_path = data_path
        self._timeout_seconds = timeout_seconds

    async def on_created(self, event: DocumentEvent) -> bool:
        """Mirror a newly created permission document. Returns True if synced."""
        return await self._handle("create", event)

    async def on_updated(self, event: DocumentEvent) -> bool:
        """Mirror an updated permission document. Returns True if synced."""
        return await self._handle("update", event)

    async def on_deleted(self, event: DocumentEvent) -> bool:
        """Zero out the mirror of a deleted permission document. Returns True if synced."""
        return await self._handle("delete", event)

    def build_payload(
        self,
        action: SyncAction,
        document_path: str,
        params: dict[str, str],
        document: PermissionDocument,
    ) -> OPASyncPayload:
        """Build the sync payload for one document change.

        Args:
            action: create, update, or delete.
            document_path: Path of the changed document.
            params: tenantId, moduleId, and roleId captured from the path.
            document: The document contents (ignored for delete).

        Returns:
            The payload to mirror into OPA.
        """
        now = _utc_now_iso()
        if action == "delete":
            permissions = CRUDPermissions()
            metadata = SyncMetadata(updatedAt=now, updatedBy=_DELETE_UPDATED_BY)
        else:
            permissions = document.permissions()
            metadata = SyncMetadata(
                updatedAt=document.updatedAt or now,
                updatedBy=document.updatedBy or _DEFAULT_UPDATED_BY,
            )

        return OPASyncPayload(
            action=action,
            timestamp=now,
            documentPath=document_path,
            tenantId=params["tenantId"],
            moduleId=params["moduleId"],
            roleId=params["roleId"],
            permissions=permissions,
            metadata=metadata,
        )

    async def _handle(self, action: SyncAction, event: DocumentEvent) -> bool:
        if event.data is None:
            logger.warning("Document snapshot is empty", action=action, document_path=event.document)
            return False

        params = event.params or match_document_path(event.document)
        if not params or not all(params.get(key) for key in ("tenantId", "moduleId", "roleId")):
            logger.warning(
                "Document is not a permission document",
                action=action,
                document_path=event.document,
                expected=PERMISSION_DOCUMENT_PATTERN,
            )
            return False

        bind_context(document_path=event.document)
        try:
            logger.info(
                "Permission document changed",
                action=action,
                tenant=params["tenantId"],
                module=params["moduleId"],
                role=params["roleId"],
            )
            document = PermissionDocument.model_validate(event.data)
            payload = self.build_payload(action, event.document, params, document)
            return await self._push(payload)
        except TimeoutError:
            logger.error(
                "Permission sync to OPA timed out",
                action=action,
                tenant=params.get("tenantId"),
                module=params.get("moduleId"),
                role=params.get("roleId"),
                timeout_s=self._timeout_seconds,
            )
            return False
        except Exception as exc:
            # Sync is best-effort: a failure must never fail the document write.
            logger.error(
                "Failed to sync permissions to OPA",
                action=action,
                tenant=params.get("tenantId"),
                module=params.get("moduleId"),
                role=params.get("roleId"),
                error=str(exc),
            )
            return False
        finally:
            clear_context()

    async def _push(self, payload: OPASyncPayload) -> bool:
        logger.info(
            "Syncing permissions to OPA",
            action=payload.action,
            tenant=payload.tenantId,
            module=payload.moduleId,
            role=payload.roleId,
            data_path=self._data_path,
        )
        async with asyncio.timeout(self._timeout_seconds):
            await self._opa_client.put_data(
                self._data_path,
                payload.to_opa_document(),
                timeout_seconds=self._timeout_seconds,
            )
        logger.info("Synced permissions to OPA", action=payload.action, tenant=payload.tenantId)
        return True
