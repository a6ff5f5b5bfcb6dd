"""
RBAC Models: Roles, Permissions, Resources (column bundles), Users, Overrides
"""
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, JSON
)
from sqlalchemy.orm import relationship
from scopegrid.database.session import Base


class Role(Base):
    __tablename__ = "rbac_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    role_permissions = relationship(
        "RolePermission", back_populates="role", lazy="selectin",
        cascade="all, delete-orphan", order_by="RolePermission.permission_id",
    )
    role_resources = relationship(
        "RoleResource", back_populates="role", lazy="selectin",
        cascade="all, delete-orphan", order_by="RoleResource.resource_id",
    )
    users = relationship("User", back_populates="role")


class Permission(Base):
    """A route-level capability, e.g. VIEW_SITES_ROUTE."""
    __tablename__ = "rbac_permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True)
    description = Column(String(500), nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow)


class Resource(Base):
    """A named bundle of columns on one business table, e.g. Site_Sales."""
    __tablename__ = "rbac_resources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True)
    table_name = Column(String(200), nullable=False)
    columns = Column(JSON, nullable=False, default=list)  # ordered column names
    description = Column(String(500))
    created_at = Column(DateTime, default=datetime.utcnow)


class RolePermission(Base):
    __tablename__ = "rbac_role_permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(Integer, ForeignKey("rbac_roles.id"), nullable=False)
    permission_id = Column(Integer, ForeignKey("rbac_permissions.id"), nullable=False)
    granted_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    # Relationships
    role = relationship("Role", back_populates="role_permissions")
    permission = relationship("Permission", lazy="selectin")


class RoleResource(Base):
    __tablename__ = "rbac_role_resources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(Integer, ForeignKey("rbac_roles.id"), nullable=False)
    resource_id = Column(Integer, ForeignKey("rbac_resources.id"), nullable=False)
    granted_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("role_id", "resource_id", name="uq_role_resource"),
    )

    # Relationships
    role = relationship("Role", back_populates="role_resources")
    resource = relationship("Resource", lazy="selectin")


class User(Base):
    __tablename__ = "rbac_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=False, unique=True, index=True)
    password_hash = Column(String(500), nullable=False)
    role_id = Column(Integer, ForeignKey("rbac_roles.id"), nullable=False)
    suspended = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    role = relationship("Role", back_populates="users", lazy="selectin")
    permission_overrides = relationship(
        "PermissionOverride", back_populates="user", lazy="selectin",
        cascade="all, delete-orphan", order_by="PermissionOverride.id",
    )
    resource_overrides = relationship(
        "ResourceOverride", back_populates="user", lazy="selectin",
        cascade="all, delete-orphan", order_by="ResourceOverride.id",
    )

    @property
    def role_name(self):
        return self.role.name if self.role else None


class PermissionOverride(Base):
    """Per-user grant or revocation of a single permission, taking precedence over the role."""
    __tablename__ = "rbac_permission_overrides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("rbac_users.id"), nullable=False)
    permission_id = Column(Integer, ForeignKey("rbac_permissions.id"), nullable=False)
    granted = Column(Boolean, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "permission_id", name="uq_user_permission_override"),
    )

    # Relationships
    user = relationship("User", back_populates="permission_overrides")
    permission = relationship("Permission", lazy="selectin")


class ResourceOverride(Base):
    """Per-user grant or revocation of a single resource bundle."""
    __tablename__ = "rbac_resource_overrides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("rbac_users.id"), nullable=False)
    resource_id = Column(Integer, ForeignKey("rbac_resources.id"), nullable=False)
    granted = Column(Boolean, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "resource_id", name="uq_user_resource_override"),
    )

    # Relationships
    user = relationship("User", back_populates="resource_overrides")
    resource = relationship("Resource", lazy="selectin")
