from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core.exceptions import NotFoundError, PersistenceError
from dashboard.dependencies import get_habit_service
from services.habit_service import HabitService
from shared.models import AnalyticsResponse

router = APIRouter(prefix="/api", tags=["analytics"])


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    user_id: Optional[str] = Query(None, alias="userId"),
    habit_service: HabitService = Depends(get_habit_service),
):
    """
    Habits of a user with reconstructed check history and summary
    """
    if not user_id:
        raise HTTPException(status_code=400, detail="userId is required")
    if not user_id.lstrip("-").isdigit():
        raise HTTPException(status_code=400, detail="userId must be an integer")

    try:
        habits = habit_service.get_analytics(int(user_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load user data: {e}")

    return {"userId": int(user_id), "habits": habits}
