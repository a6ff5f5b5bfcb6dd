"""
FastAPI Security Dependencies: Authentication, Role Checks, Resource Access Gate
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError as PayloadError
from sqlalchemy.orm import Session
from loguru import logger

from scopegrid.core.exceptions import Forbidden, Unauthenticated
from scopegrid.database.session import get_db
from scopegrid.models.rbac import User
from scopegrid.schemas.auth import TokenPayload
from scopegrid.security.jwt_handler import verify_access_token
from scopegrid.services.resource_registry import (
    ResourceHandler, ResourceRegistry, get_resource_registry,
)

bearer_scheme = HTTPBearer(auto_error=False)

SUSPENDED_MESSAGE = "Account temporarily suspended, please contact administrator"


# ============================================================================
# Credential
# ============================================================================

def parse_credential(token: Optional[str]) -> TokenPayload:
    """Verify signature, expiry and type, then the claim shape."""
    if not token:
        raise Unauthenticated("Unauthorized")
    payload = verify_access_token(token)
    if not payload:
        raise Unauthenticated("Invalid or expired token")
    try:
        return TokenPayload.model_validate(payload)
    except PayloadError:
        raise Unauthenticated("Invalid token payload")


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenPayload:
    return parse_credential(credentials.credentials if credentials else None)


def load_active_user(db: Session, user_id: int) -> User:
    """Live lookup: the credential may outlive the account or its suspension state."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthenticated("User not found")
    if user.suspended:
        raise Forbidden(SUSPENDED_MESSAGE)
    return user


# ============================================================================
# Get Current User
# ============================================================================

async def get_current_user(
    payload: TokenPayload = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> User:
    """Extract and validate current user from JWT token."""
    return load_active_user(db, payload.user_id)


# ============================================================================
# RBAC: Role Check Dependency
# ============================================================================

class RequireRoles:
    """Dependency that checks the live user holds one of the allowed roles."""

    def __init__(self, allowed_roles: List[str]):
        self.allowed_roles = allowed_roles

    async def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role_name not in self.allowed_roles:
            raise Forbidden(f"Insufficient role. Required: {self.allowed_roles}")
        return current_user


require_admin = RequireRoles(["admin"])


# ============================================================================
# Resource Access Gate
# ============================================================================

@dataclass
class ResourceAccess:
    """What the caller may read on one resource, derived from the credential."""
    user_id: int
    email: str
    resource: str
    handler: ResourceHandler
    permitted_columns: List[str] = field(default_factory=list)
    column_types: Dict[str, str] = field(default_factory=dict)


def authorize_resource(
    payload: TokenPayload,
    resource: str,
    db: Session,
    registry: ResourceRegistry,
) -> ResourceAccess:
    handler = registry.get(resource)

    if handler.required_permission not in payload.permission_keys:
        raise Forbidden("Access denied: missing permission")

    # Every matching bundle contributes; columns keep first-seen order
    grants = [claim for claim in payload.resources if handler.matches_grant(claim.key)]
    if not grants:
        raise Forbidden("Access denied: missing resource permission")

    table_columns = set(handler.column_names)
    permitted: List[str] = []
    for grant in grants:
        for column in grant.columns:
            if column in table_columns and column not in permitted:
                permitted.append(column)
    if not permitted:
        raise Forbidden("Access denied: no readable columns")

    load_active_user(db, payload.user_id)

    logger.debug(
        f"User {payload.user_id} reading '{handler.table_id}' through "
        f"{', '.join(grant.key for grant in grants)} ({len(permitted)} columns)"
    )
    return ResourceAccess(
        user_id=payload.user_id,
        email=payload.email,
        resource=handler.table_id,
        handler=handler,
        permitted_columns=permitted,
        column_types=handler.column_types(permitted),
    )


async def get_resource_access(
    resource: str,
    payload: TokenPayload = Depends(get_token_payload),
    db: Session = Depends(get_db),
    registry: ResourceRegistry = Depends(get_resource_registry),
) -> ResourceAccess:
    """Gate for every data-reading route carrying a `{resource}` path segment."""
    return authorize_resource(payload, resource, db, registry)
