"""Main API router aggregation.

Every route under the API prefix counts against the general-traffic
admission class; generation routes add their own class on top.
"""

from fastapi import APIRouter, Depends

from app.api.deps import RequireAdmission
from app.api.routes import dreams, generation, health, stats
from app.middleware.rate_limit import GENERAL_TRAFFIC

api_router = APIRouter(dependencies=[Depends(RequireAdmission(GENERAL_TRAFFIC))])

api_router.include_router(health.router, tags=["health"])
api_router.include_router(dreams.router, tags=["dreams"])
api_router.include_router(stats.router, tags=["stats"])
api_router.include_router(generation.router, tags=["generation"])
