"""
Authentication Service: Sign-up, Sign-in, Credential Issuance
"""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
from loguru import logger

from scopegrid.audit.service import AuditService
from scopegrid.core.config import get_settings
from scopegrid.core.exceptions import Forbidden, Unauthenticated, ValidationError
from scopegrid.models.rbac import Role, User
from scopegrid.schemas.auth import SigninRequest, SignupRequest, SignupResponse, TokenResponse
from scopegrid.security.jwt_handler import create_access_token
from scopegrid.security.password import hash_password, verify_password
from scopegrid.services.access_resolver import AccessResolver, GrantSet

settings = get_settings()


def build_credential_payload(user: User, grant_set: GrantSet) -> Dict[str, Any]:
    """Claims carried by the bearer credential (iat/exp/type are added on signing)."""
    return {
        "email": user.email,
        "userId": user.id,
        "role": user.role_name,
        **grant_set.to_claims(),
    }


class AuthService:
    """Handles account creation and login."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)
        self.resolver = AccessResolver(db)

    # ========================================================================
    # Sign-up
    # ========================================================================

    def signup(self, data: SignupRequest, ip_address: Optional[str] = None) -> SignupResponse:
        if len(data.password) < settings.PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")

        email = data.email.lower()
        if self.db.query(User).filter(User.email == email).first():
            raise ValidationError("Email already in use")

        role = self.db.query(Role).filter(Role.id == data.role_id).first()
        if not role:
            raise ValidationError("Invalid roleId")

        user = User(
            name=data.name.strip(),
            email=email,
            password_hash=hash_password(data.password),
            role_id=role.id,
        )
        self.db.add(user)
        self.db.flush()

        self.audit.log_insert(
            table_name="rbac_users",
            changed_by=email,
            record_pk=user.id,
            new_data={"name": user.name, "email": user.email, "role": role.name},
            ip_address=ip_address,
        )
        self.db.commit()
        logger.info(f"User registered: {email} (role {role.name})")

        return SignupResponse(user_id=user.id, name=user.name, email=user.email)

    # ========================================================================
    # Sign-in
    # ========================================================================

    def authenticate(self, login: SigninRequest) -> TokenResponse:
        """Verify credentials and issue a bearer token carrying the resolved grants."""
        user = self.db.query(User).filter(User.email == login.email.lower()).first()

        if not user or not verify_password(login.password, user.password_hash):
            logger.warning(f"Failed sign-in for {login.email}")
            raise Unauthenticated("Invalid credentials")

        if user.suspended:
            raise Forbidden("Account temporarily suspended, please contact administrator")

        token = self.issue_credential(user)
        logger.info(f"User signed in: {user.email}")
        return TokenResponse(
            token=token,
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    def issue_credential(self, user: User) -> str:
        grant_set = self.resolver.resolve_for_user(user)
        return create_access_token(build_credential_payload(user, grant_set))
