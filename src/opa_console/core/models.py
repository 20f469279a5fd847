"""Pydantic models for the policy console.

None of these entities are owned by this service; they mirror what lives in
OPA (policies, data nodes) or in the document database (permission documents).

Models:
- PolicyListItem / Policy: normalized views of OPA's policy API
- DataItem: one object node of OPA's data tree, flattened for listing
- CRUDPermissions / PermissionDocument: per-role CRUD flags in the document DB
- DocumentEvent: a document-database change notification
- SyncMetadata / OPASyncPayload: what the permission sync pushes to OPA
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

SyncAction = Literal["create", "update", "delete"]


# ---------------------------------------------------------------------------
# OPA mirrors
# ---------------------------------------------------------------------------


class PolicyListItem(BaseModel):
    """One entry of the normalized policy listing."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="OPA policy identifier")
    path: str = Field(description="OPA REST path of the policy, /v1/policies/{id}")
    size: int = Field(default=0, description="Length of the policy source, 0 when unknown")


class Policy(BaseModel):
    """A single policy with its Rego source."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="OPA policy identifier")
    content: str = Field(description="Rego source text")
    path: str = Field(description="OPA REST path of the policy")


class DataItem(BaseModel):
    """An object or array node found while walking OPA's data tree."""

    path: str = Field(description="Slash-delimited path from the data root")
    data: Any = Field(description="The node's JSON value")
    size: int = Field(description="Length of the node's compact JSON serialization")


# ---------------------------------------------------------------------------
# Document database
# ---------------------------------------------------------------------------


class CRUDPermissions(BaseModel):
    """Create/read/update/delete flags for one role on one module."""

    create: bool = False
    read: bool = False
    update: bool = False
    delete: bool = False


class PermissionDocument(CRUDPermissions):
    """A role permission document stored at tenant/{t}/module/{m}/role/{r}.

    Every field is optional on the wire; missing flags read as False.
    Non-flag fields are accepted whatever their JSON type; updatedAt and
    updatedBy are mirrored as stored.
    """

    model_config = ConfigDict(extra="ignore")

    tenantId: Any = None
    moduleId: Any = None
    roleId: Any = None
    createdAt: Any = None
    updatedAt: Any = None
    updatedBy: Any = None

    def permissions(self) -> CRUDPermissions:
        """Return only the CRUD flags of this document."""
        return CRUDPermissions(create=self.create, read=self.read, update=self.update, delete=self.delete)


class DocumentEvent(BaseModel):
    """A change notification for a single permission document.

    Attributes:
        document: Full document path, e.g. tenant/t1/module/hrm/role/Manager.
        params: Wildcards captured from the document path (tenantId, moduleId,
            roleId). Resolved from `document` when empty.
        data: Document contents after the change; the deleted contents for
            delete events. None when the notification carried no snapshot.
    """

    document: str = Field(min_length=1, description="Full document path")
    params: dict[str, str] = Field(default_factory=dict)
    data: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Permission sync payload
# ---------------------------------------------------------------------------


class SyncMetadata(BaseModel):
    """Provenance carried alongside mirrored permissions."""

    updatedAt: Any
    updatedBy: Any


class OPASyncPayload(BaseModel):
    """Everything known about one permission change before it is mirrored."""

    action: SyncAction
    timestamp: str
    documentPath: str
    tenantId: str
    moduleId: str
    roleId: str
    permissions: CRUDPermissions
    metadata: SyncMetadata

    def to_opa_document(self) -> dict[str, Any]:
        """Nest the payload as {tenant: {module: {role: {...}}}} for OPA's data API."""
        return {
            self.tenantId: {
                self.moduleId: {
                    self.roleId: {
                        "permissions": self.permissions.model_dump(),
                        "updatedAt": self.metadata.updatedAt,
                        "updatedBy": self.metadata.updatedBy,
                    }
                }
            }
        }
