"""
Access Administration Service: suspension, per-user overrides, role catalog
"""
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from loguru import logger

from scopegrid.audit.service import AuditService
from scopegrid.core.exceptions import ExecutionError, NotFound, ScopeGridError, ValidationError
from scopegrid.models.rbac import (
    Permission, PermissionOverride, Resource, ResourceOverride,
    Role, RolePermission, RoleResource, User,
)
from scopegrid.schemas.admin import AccessChange, RoleCreate, RoleGrantsUpdate, RoleResponse
from scopegrid.services.access_resolver import AccessResolver, GrantState


class AccessAdminService:
    """Administrative mutations on users, overrides and roles."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    # ========================================================================
    # Suspension
    # ========================================================================

    def set_suspended(self, user_id: int, suspended: bool, changed_by: str) -> User:
        user = self._get_user(user_id)
        if suspended and user.email == changed_by:
            raise ValidationError("Administrators cannot suspend their own account")

        previous = bool(user.suspended)
        user.suspended = suspended
        self.db.flush()
        self.audit.log(
            table_name="rbac_users",
            action_type="SUSPEND" if suspended else "REINSTATE",
            changed_by=changed_by,
            record_primary_key=user.id,
            old_data={"suspended": previous},
            new_data={"suspended": suspended},
        )
        self.db.commit()
        logger.info(f"User {user.id} {'suspended' if suspended else 'reinstated'} by {changed_by}")
        return user

    # ========================================================================
    # Overrides
    # ========================================================================

    def manage_access(
        self,
        user_id: int,
        permission_changes: List[AccessChange],
        resource_changes: List[AccessChange],
        changed_by: str,
    ) -> Dict[str, Any]:
        """
        Apply a batch of override changes in one transaction.

        `granted` true/false upserts the override, null removes it so the role
        grant applies again. Any invalid id rolls back the whole batch.
        """
        user = self._get_user(user_id)
        applied: Dict[str, List[Dict[str, Any]]] = {"permissions": [], "resources": []}

        try:
            for change in permission_changes:
                permission = self.db.query(Permission).filter(Permission.id == change.id).first()
                if not permission:
                    raise ValidationError(f"Invalid permission id: {change.id}")
                action = self._apply_override(PermissionOverride, "permission_id", user.id, permission.id, change.granted)
                applied["permissions"].append({"key": permission.key, "action": action})

            for change in resource_changes:
                resource = self.db.query(Resource).filter(Resource.id == change.id).first()
                if not resource:
                    raise ValidationError(f"Invalid resource id: {change.id}")
                action = self._apply_override(ResourceOverride, "resource_id", user.id, resource.id, change.granted)
                applied["resources"].append({"key": resource.key, "action": action})

            self.audit.log(
                table_name="rbac_overrides",
                action_type="GRANT",
                changed_by=changed_by,
                record_primary_key=user.id,
                new_data=applied,
            )
            self.db.commit()
        except ScopeGridError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            reference = uuid.uuid4().hex[:12]
            logger.error(f"Access update for user {user_id} failed [ref {reference}]: {e}")
            raise ExecutionError("Error updating user access", detail=f"ref:{reference}")

        logger.info(
            f"Access updated for user {user_id} by {changed_by}: "
            f"{len(applied['permissions'])} permission, {len(applied['resources'])} resource changes"
        )
        return applied

    def _apply_override(self, model, target_field: str, user_id: int, target_id: int, granted: Optional[bool]) -> str:
        target = getattr(model, target_field)
        existing = self.db.query(model).filter(model.user_id == user_id, target == target_id).first()

        if granted is None:
            if existing:
                self.db.delete(existing)
                self.db.flush()
            return "cleared"

        if existing:
            existing.granted = granted
        else:
            self.db.add(model(user_id=user_id, granted=granted, **{target_field: target_id}))
        self.db.flush()
        return GrantState.from_flag(granted).value

    def preview_access(self, user_id: int) -> Dict[str, Any]:
        user = self._get_user(user_id)
        grant_set = AccessResolver(self.db).resolve_for_user(user)
        return {
            "userId": user.id,
            "email": user.email,
            "role": user.role_name,
            "suspended": bool(user.suspended),
            **grant_set.to_claims(),
        }

    # ========================================================================
    # Role Catalog
    # ========================================================================

    def list_roles(self) -> List[RoleResponse]:
        roles = self.db.query(Role).order_by(Role.id).all()
        return [self._to_role_response(role) for role in roles]

    def create_role(self, data: RoleCreate, changed_by: str) -> RoleResponse:
        name = data.name.strip()
        if self.db.query(Role).filter(Role.name == name).first():
            raise ValidationError(f"Role '{name}' already exists")

        permissions = self._load_catalog(Permission, data.permission_ids, "permission")
        resources = self._load_catalog(Resource, data.resource_ids, "resource")

        role = Role(name=name)
        self.db.add(role)
        self.db.flush()
        for permission in permissions:
            self.db.add(RolePermission(role_id=role.id, permission_id=permission.id))
        for resource in resources:
            self.db.add(RoleResource(role_id=role.id, resource_id=resource.id))
        self.db.flush()

        self.audit.log_insert(
            table_name="rbac_roles",
            changed_by=changed_by,
            record_pk=role.id,
            new_data={
                "name": name,
                "permissions": [p.key for p in permissions],
                "resources": [r.key for r in resources],
            },
        )
        self.db.commit()
        self.db.expire(role)
        logger.info(f"Role '{name}' created by {changed_by}")
        return self._to_role_response(role)

    def set_role_grants(self, role_id: int, data: RoleGrantsUpdate, changed_by: str) -> RoleResponse:
        """Replace the role's permission and resource grants."""
        role = self._get_role(role_id)
        old_data = self._to_role_response(role).model_dump()

        permissions = self._load_catalog(Permission, data.permission_ids, "permission")
        resources = self._load_catalog(Resource, data.resource_ids, "resource")

        self.db.query(RolePermission).filter(RolePermission.role_id == role.id).delete()
        self.db.query(RoleResource).filter(RoleResource.role_id == role.id).delete()
        self.db.flush()
        for permission in permissions:
            self.db.add(RolePermission(role_id=role.id, permission_id=permission.id))
        for resource in resources:
            self.db.add(RoleResource(role_id=role.id, resource_id=resource.id))
        self.db.flush()

        self.audit.log_update(
            table_name="rbac_roles",
            changed_by=changed_by,
            record_pk=role.id,
            old_data=old_data,
            new_data={
                "permissions": [p.key for p in permissions],
                "resources": [r.key for r in resources],
            },
        )
        self.db.commit()
        self.db.expire(role)
        logger.info(f"Grants of role '{role.name}' replaced by {changed_by}")
        return self._to_role_response(role)

    def delete_role(self, role_id: int, changed_by: str) -> None:
        role = self._get_role(role_id)
        user_count = self.db.query(User).filter(User.role_id == role.id).count()
        if user_count:
            raise ValidationError(f"Role '{role.name}' is assigned to {user_count} user(s)")

        old_data = self._to_role_response(role).model_dump()
        self.db.delete(role)
        self.db.flush()
        self.audit.log_delete(
            table_name="rbac_roles",
            changed_by=changed_by,
            record_pk=role_id,
            old_data=old_data,
        )
        self.db.commit()
        logger.info(f"Role '{old_data['name']}' deleted by {changed_by}")

    def list_permissions(self) -> List[Dict[str, Any]]:
        permissions = self.db.query(Permission).order_by(Permission.id).all()
        return [{"id": p.id, "key": p.key, "description": p.description} for p in permissions]

    def list_resources(self) -> List[Dict[str, Any]]:
        resources = self.db.query(Resource).order_by(Resource.id).all()
        return [
            {
                "id": r.id,
                "key": r.key,
                "tableName": r.table_name,
                "columns": list(r.columns or []),
                "description": r.description,
            }
            for r in resources
        ]

    # ========================================================================
    # Helpers
    # ========================================================================

    def _get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        return user

    def _get_role(self, role_id: int) -> Role:
        role = self.db.query(Role).filter(Role.id == role_id).first()
        if not role:
            raise NotFound("Role not found")
        return role

    def _load_catalog(self, model, ids: List[int], label: str) -> list:
        if not ids:
            return []
        found = self.db.query(model).filter(model.id.in_(ids)).order_by(model.id).all()
        missing = sorted(set(ids) - {item.id for item in found})
        if missing:
            raise ValidationError(f"Invalid {label} ids: {missing}")
        return found

    def _to_role_response(self, role: Role) -> RoleResponse:
        return RoleResponse(
            id=role.id,
            name=role.name,
            permissions=[rp.permission.key for rp in role.role_permissions if rp.permission],
            resources=[rr.resource.key for rr in role.role_resources if rr.resource],
            user_count=self.db.query(User).filter(User.role_id == role.id).count(),
        )
