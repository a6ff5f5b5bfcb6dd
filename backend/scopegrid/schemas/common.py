"""
Common Response Schemas
"""
from typing import Optional, Any, List
from pydantic import BaseModel


class APIResponse(BaseModel):
    success: bool = True
    message: str = "OK"
    data: Optional[Any] = None


class HealthResponse(BaseModel):
    status: str
    database: str
    version: str
    resources: List[str] = []
