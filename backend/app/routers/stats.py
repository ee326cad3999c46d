"""Stats and achievement routes."""

from fastapi import APIRouter, HTTPException

from app.dependencies import SyncServiceDep, WorkspaceServiceDep
from app.models import AchievementUnlock, StatsChanged, UserStats

router = APIRouter()


@router.get("/{email}/stats", response_model=UserStats | None)
async def get_stats(email: str, service: SyncServiceDep):
    return await service.get_stats(email)


@router.put("/{email}/stats", status_code=202)
async def save_stats(email: str, body: UserStats, service: SyncServiceDep):
    await service.save_stats(body, email)
    return {"status": "saved"}


@router.post("/{email}/achievements", response_model=StatsChanged)
async def unlock_achievement(
    email: str,
    body: AchievementUnlock,
    workspace: WorkspaceServiceDep,
):
    try:
        return await workspace.unlock_achievement(email, body.achievement_id)
    except LookupError as exc:
        raise HTTPException(404, str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
