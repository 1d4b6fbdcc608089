"""Trip tracking package."""

from fastapi import APIRouter

from tracking.api import trip

router = APIRouter()
router.include_router(trip.router, tags=["trip"])

__all__ = ["router"]
