"""
Import all models so SQLAlchemy knows about them.
"""
from scopegrid.models.rbac import (
    Role, Permission, Resource, RolePermission, RoleResource,
    User, PermissionOverride, ResourceOverride,
)
from scopegrid.models.views import View, DEFAULT_VIEW_NAME
from scopegrid.models.audit import AuditLog
from scopegrid.models.business import Site, MasterData

__all__ = [
    "Role", "Permission", "Resource", "RolePermission", "RoleResource",
    "User", "PermissionOverride", "ResourceOverride",
    "View", "DEFAULT_VIEW_NAME",
    "AuditLog",
    "Site", "MasterData",
]
