from fastapi import APIRouter

from sales_challenge.api.routes import admin, bestof, challenges, entries, health, phases, votes

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(phases.router, prefix="/phases", tags=["phases"])
api_router.include_router(challenges.router, prefix="/challenges", tags=["challenges"])
api_router.include_router(votes.router, prefix="/challenges", tags=["votes"])
api_router.include_router(entries.router, tags=["entries"])
api_router.include_router(bestof.router, prefix="/bestof", tags=["bestof"])
api_router.include_router(admin.router, tags=["admin"])
