"""Top-level API router."""

from fastapi import APIRouter

from resource_billing.api.routes.billing import router as billing_router
from resource_billing.api.routes.health import router as health_router
from resource_billing.api.routes.leaves import router as leaves_router
from resource_billing.api.routes.me import router as me_router
from resource_billing.api.routes.projects import router as projects_router
from resource_billing.api.routes.resources import router as resources_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(me_router)
api_router.include_router(resources_router)
api_router.include_router(projects_router)
api_router.include_router(leaves_router)
api_router.include_router(billing_router)
