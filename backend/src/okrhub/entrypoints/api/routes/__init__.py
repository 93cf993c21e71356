"""API route modules."""

from fastapi import APIRouter

from okrhub.entrypoints.api.routes.auth import router as auth_router
from okrhub.entrypoints.api.routes.dashboard import router as dashboard_router
from okrhub.entrypoints.api.routes.key_results import router as key_results_router
from okrhub.entrypoints.api.routes.objectives import router as objectives_router
from okrhub.entrypoints.api.routes.teams import router as teams_router
from okrhub.entrypoints.api.routes.users import router as users_router

# Create main API router
api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(teams_router)
api_router.include_router(objectives_router)
api_router.include_router(key_results_router)
api_router.include_router(dashboard_router)

__all__ = ["api_router"]
