from fastapi import APIRouter
from exoatlas.api.endpoints import auth, stars, planets, stats

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(stars.router, prefix="/stars", tags=["stars"])
api_router.include_router(planets.router, prefix="/planets", tags=["planets"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
