"""
Auth Pydantic Schemas: sign-up, sign-in, credential payload
"""
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field


# ============================================================================
# Requests
# ============================================================================

class SignupRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role_id: int = Field(..., alias="roleId")

    class Config:
        populate_by_name = True


class SigninRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


# ============================================================================
# Responses
# ============================================================================

class SignupResponse(BaseModel):
    success: bool = True
    message: str = "User created successfully"
    user_id: int = Field(..., serialization_alias="userId")
    name: str
    email: str


class TokenResponse(BaseModel):
    success: bool = True
    message: str = "User logged in successfully"
    token: str
    token_type: str = "bearer"
    expires_in: int


# ============================================================================
# Credential payload
# ============================================================================

class PermissionClaim(BaseModel):
    key: str
    description: str = ""


class ResourceClaim(BaseModel):
    key: str
    columns: List[str] = []


class TokenPayload(BaseModel):
    email: str
    user_id: int = Field(..., alias="userId")
    role: Optional[str] = None
    permissions: List[PermissionClaim] = []
    resources: List[ResourceClaim] = []
    iat: Optional[int] = None
    exp: int

    class Config:
        populate_by_name = True

    @property
    def permission_keys(self) -> List[str]:
        return [claim.key for claim in self.permissions]
