from fastapi import APIRouter

from app.api.v1.endpoints import rubric, scripts, health

router = APIRouter(prefix="/api/v1")

router.include_router(rubric.router)
router.include_router(scripts.router)
router.include_router(health.router)
