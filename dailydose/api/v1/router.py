from fastapi import APIRouter
from .schedules import router as schedules_router
from .standups import router as standups_router

api_router = APIRouter()

# Include all sub-routers
api_router.include_router(standups_router, prefix="/standups", tags=["standups"])
api_router.include_router(schedules_router, prefix="/schedules", tags=["schedules"])
