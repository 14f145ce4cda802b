from fastapi import APIRouter

from pagesmith.api.routes import deployments, health

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(deployments.router, tags=["deployments"])
