from fastapi import APIRouter
from ista_explorer.api.endpoints import query, dashboard

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(query.router)
api_router.include_router(dashboard.router)
