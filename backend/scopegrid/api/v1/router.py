"""
API v1 Router - Aggregates all endpoint routers
"""
from fastapi import APIRouter

# Auth & administration
from scopegrid.api.v1.endpoints.auth import router as auth_router
from scopegrid.api.v1.endpoints.admin import router as admin_router
from scopegrid.api.v1.endpoints.roles import router as roles_router

# Permission-scoped reads
from scopegrid.api.v1.endpoints.views import router as views_router
from scopegrid.api.v1.endpoints.data import router as data_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth_router)
api_router.include_router(admin_router)
api_router.include_router(roles_router)

api_router.include_router(views_router)
api_router.include_router(data_router)
