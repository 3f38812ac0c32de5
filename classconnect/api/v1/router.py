"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from classconnect.api.v1.dependencies.
"""

from fastapi import APIRouter

from classconnect.api.v1.endpoints import auth, health, representatives

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(representatives.router, prefix="/reps", tags=["representatives"])
