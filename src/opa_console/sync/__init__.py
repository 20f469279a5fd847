"""Permission sync: mirrors permission documents into OPA's data tree.

Modules:
- permission_sync.py: payload construction and best-effort delivery to OPA
- routes.py         : HTTP endpoint receiving document change notifications
"""

from opa_console.sync.permission_sync import PermissionSync, match_document_path

__all__ = ["PermissionSync", "match_document_path"]
