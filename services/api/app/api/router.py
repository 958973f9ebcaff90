"""API router - aggregates all /api endpoints."""

from fastapi import APIRouter

from app.api.urls import router as urls_router

router = APIRouter(prefix="/api")

# Include sub-routers
router.include_router(urls_router)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
