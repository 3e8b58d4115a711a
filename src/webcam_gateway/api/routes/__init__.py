from fastapi import APIRouter

from webcam_gateway.api.routes.images import router as images_router

router = APIRouter()
router.include_router(images_router)

__all__ = ["router"]
