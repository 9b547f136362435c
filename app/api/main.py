"""API router setup."""
from fastapi import APIRouter

from app.api.routes import availability, blocks, exceptions, professionals, schedule

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(professionals.router)
api_router.include_router(schedule.router)
api_router.include_router(exceptions.router)
api_router.include_router(blocks.router)
api_router.include_router(availability.router)
