"""
Access Resolver: role grants + per-user overrides -> effective grant set

Resolution order:
1. seed permissions/resources from the user's role (by catalog id)
2. apply permission overrides (granted -> insert/overwrite, revoked -> remove)
3. apply resource overrides the same way
Output arrays keep insertion order; an overwritten key keeps its original slot.
"""
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from loguru import logger

from scopegrid.core.exceptions import NotFound
from scopegrid.models.rbac import (
    Permission, PermissionOverride, Resource, ResourceOverride,
    RolePermission, RoleResource, User,
)


class GrantState(str, enum.Enum):
    GRANTED = "granted"
    REVOKED = "revoked"

    @classmethod
    def from_flag(cls, granted: Optional[bool]) -> "GrantState":
        return cls.GRANTED if granted is True else cls.REVOKED


@dataclass(frozen=True)
class PermissionGrant:
    key: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "description": self.description}


@dataclass(frozen=True)
class ResourceGrant:
    key: str
    columns: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "columns": list(self.columns)}


@dataclass
class GrantSet:
    permissions: List[PermissionGrant] = field(default_factory=list)
    resources: List[ResourceGrant] = field(default_factory=list)

    @property
    def permission_keys(self) -> List[str]:
        return [grant.key for grant in self.permissions]

    @property
    def resource_keys(self) -> List[str]:
        return [grant.key for grant in self.resources]

    def to_claims(self) -> Dict[str, Any]:
        return {
            "permissions": [grant.to_dict() for grant in self.permissions],
            "resources": [grant.to_dict() for grant in self.resources],
        }


def _permission_grant(permission: Permission) -> PermissionGrant:
    return PermissionGrant(key=permission.key, description=permission.description or "")


def _resource_grant(resource: Resource) -> ResourceGrant:
    return ResourceGrant(key=resource.key, columns=list(resource.columns or []))


class AccessResolver:
    """Pure read: computes what a user may do right now."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, user_id: int) -> GrantSet:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        return self.resolve_for_user(user)

    def resolve_for_user(self, user: User) -> GrantSet:
        permissions: Dict[str, PermissionGrant] = {}
        resources: Dict[str, ResourceGrant] = {}

        if user.role_id is not None:
            role_permissions = (
                self.db.query(Permission)
                .join(RolePermission, RolePermission.permission_id == Permission.id)
                .filter(RolePermission.role_id == user.role_id)
                .order_by(Permission.id)
                .all()
            )
            for permission in role_permissions:
                permissions[permission.key] = _permission_grant(permission)

            role_resources = (
                self.db.query(Resource)
                .join(RoleResource, RoleResource.resource_id == Resource.id)
                .filter(RoleResource.role_id == user.role_id)
                .order_by(Resource.id)
                .all()
            )
            for resource in role_resources:
                resources[resource.key] = _resource_grant(resource)

        permission_overrides = (
            self.db.query(PermissionOverride)
            .filter(PermissionOverride.user_id == user.id)
            .order_by(PermissionOverride.id)
            .all()
        )
        for override in permission_overrides:
            key = override.permission.key
            if GrantState.from_flag(override.granted) is GrantState.GRANTED:
                permissions[key] = _permission_grant(override.permission)
            else:
                permissions.pop(key, None)

        resource_overrides = (
            self.db.query(ResourceOverride)
            .filter(ResourceOverride.user_id == user.id)
            .order_by(ResourceOverride.id)
            .all()
        )
        for override in resource_overrides:
            key = override.resource.key
            if GrantState.from_flag(override.granted) is GrantState.GRANTED:
                resources[key] = _resource_grant(override.resource)
            else:
                resources.pop(key, None)

        grant_set = GrantSet(permissions=list(permissions.values()), resources=list(resources.values()))
        logger.debug(
            f"Resolved access for user {user.id}: "
            f"{len(grant_set.permissions)} permissions, {len(grant_set.resources)} resources"
        )
        return grant_set
