"""
Admin Pydantic Schemas: suspension, override management, role catalog
"""
from typing import List, Optional
from pydantic import BaseModel, Field, StrictInt


# ============================================================================
# User Access
# ============================================================================

class UserIdRequest(BaseModel):
    user_id: StrictInt = Field(..., alias="userId")

    class Config:
        populate_by_name = True


class AccessChange(BaseModel):
    """`granted` true/false upserts the override; null (or absent) removes it."""
    id: StrictInt
    granted: Optional[bool] = None


class ManageAccessRequest(BaseModel):
    user_id: StrictInt = Field(..., alias="userId")
    permissions: List[AccessChange]
    resources: List[AccessChange]

    class Config:
        populate_by_name = True


# ============================================================================
# Role Catalog
# ============================================================================

class RoleCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    permission_ids: List[StrictInt] = Field(default_factory=list, alias="permissionIds")
    resource_ids: List[StrictInt] = Field(default_factory=list, alias="resourceIds")

    class Config:
        populate_by_name = True


class RoleGrantsUpdate(BaseModel):
    permission_ids: List[StrictInt] = Field(..., alias="permissionIds")
    resource_ids: List[StrictInt] = Field(..., alias="resourceIds")

    class Config:
        populate_by_name = True


class RoleResponse(BaseModel):
    id: int
    name: str
    permissions: List[str] = []
    resources: List[str] = []
    user_count: int = 0
