"""Inspiration board routes."""

from fastapi import APIRouter

from app.dependencies import SyncServiceDep, WorkspaceServiceDep
from app.models import InspirationChanged, InspirationItem

router = APIRouter()


@router.get("/{email}/inspiration", response_model=list[InspirationItem] | None)
async def get_inspiration(email: str, service: SyncServiceDep):
    return await service.get_inspiration(email)


@router.put("/{email}/inspiration", status_code=202)
async def save_inspiration(email: str, body: list[InspirationItem], service: SyncServiceDep):
    await service.save_inspiration(body, email)
    return {"status": "saved", "count": len(body)}


@router.post("/{email}/inspiration", response_model=InspirationChanged)
async def upsert_inspiration_item(
    email: str,
    body: InspirationItem,
    workspace: WorkspaceServiceDep,
):
    return await workspace.save_inspiration_item(email, body)


@router.delete("/{email}/inspiration/{item_id}")
async def delete_inspiration_item(email: str, item_id: str, workspace: WorkspaceServiceDep):
    await workspace.delete_inspiration_item(email, item_id)
    return {"status": "deleted", "id": item_id}
