"""API v1 aggregated router.

All v1 endpoints are registered here and mounted under /api/v1 in main.py.
This makes it trivial to add /api/v2 later without touching existing routes.
"""

from fastapi import APIRouter

from api.routes import health, node_categories, simulations

api_v1_router = APIRouter()

# Health
api_v1_router.include_router(
    health.router,
    tags=["Health"],
)

# Simulations
api_v1_router.include_router(
    simulations.router,
    prefix="/simulations",
    tags=["Simulations"],
)

# Node categories
api_v1_router.include_router(
    node_categories.router,
    prefix="/node-categories",
    tags=["Node Categories"],
)
