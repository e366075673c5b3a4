from __future__ import annotations

from fastapi import APIRouter

from src.api.admin import router as admin_router
from src.api.health import router as health_router
from src.api.rider_requests import router as rider_requests_router
from src.api.supervisors import router as supervisors_router


api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(supervisors_router)
api_router.include_router(admin_router)
api_router.include_router(rider_requests_router)
