"""Dashboard and gamification endpoints."""

from fastapi import APIRouter, Depends

from eduportal.core import dashboards
from eduportal.db import practice_repository
from eduportal.db.profiles_repository import ProfileRecord
from eduportal.web.dependencies import get_current_user, require_admin, require_student
from eduportal.web.schemas import (
    AdminDashboardResponse,
    LeaderboardEntry,
    StudentDashboardResponse,
)

router = APIRouter(tags=["dashboard"])


@router.get(
    "/api/dashboard/admin",
    response_model=AdminDashboardResponse,
    dependencies=[Depends(require_admin)],
)
async def admin_dashboard() -> AdminDashboardResponse:
    return AdminDashboardResponse.model_validate(dashboards.admin_dashboard())


@router.get("/api/dashboard/student", response_model=StudentDashboardResponse)
async def student_dashboard(
    user: ProfileRecord = Depends(require_student),
) -> StudentDashboardResponse:
    """XP, level and test figures of the caller."""
    return StudentDashboardResponse.model_validate(dashboards.student_dashboard(user.id))


@router.get(
    "/api/gamification/leaderboard",
    response_model=list[LeaderboardEntry],
    dependencies=[Depends(get_current_user)],
)
async def leaderboard(limit: int = 10) -> list[LeaderboardEntry]:
    return [
        LeaderboardEntry(student_id=sid, name=name, xp=xp, level=dashboards.level_for(xp))
        for sid, name, xp in practice_repository.list_top_students(max(1, min(limit, 100)))
    ]
