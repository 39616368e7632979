"""Streak routes."""

from fastapi import APIRouter, Request

from ...services.streak import StreakService

router = APIRouter(prefix="/streak", tags=["streak"])


def get_service(request: Request) -> StreakService:
    return StreakService(request.app.state.db_path, clock=request.app.state.clock)


@router.get("")
async def get_streak(request: Request):
    """Current streak, status and display message."""
    result = await get_service(request).current_streak()
    data = result.to_dict()
    data["emoji"] = result.get_emoji()
    return data


@router.get("/achievements")
async def get_achievements(request: Request):
    """Unlocked achievements and lifetime totals."""
    return await get_service(request).achievements()
