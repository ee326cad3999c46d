"""Folder routes."""

from fastapi import APIRouter, HTTPException

from app.dependencies import SyncServiceDep, WorkspaceServiceDep
from app.models import Folder, FolderChanged, FolderCreate, FolderReorder, FolderUpdate

router = APIRouter()


@router.get("/{email}/folders", response_model=list[Folder] | None)
async def get_folders(email: str, service: SyncServiceDep):
    return await service.get_folders(email)


@router.put("/{email}/folders", status_code=202)
async def save_folders(email: str, body: list[Folder], service: SyncServiceDep):
    await service.save_folders(body, email)
    return {"status": "saved", "count": len(body)}


@router.post("/{email}/folders", response_model=FolderChanged, status_code=201)
async def create_folder(email: str, body: FolderCreate, workspace: WorkspaceServiceDep):
    try:
        return await workspace.create_folder(email, body)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc


@router.put("/{email}/folders/{folder_id}", response_model=Folder)
async def update_folder(
    email: str,
    folder_id: str,
    body: FolderUpdate,
    workspace: WorkspaceServiceDep,
):
    folder = await workspace.update_folder(email, folder_id, body)
    if not folder:
        raise HTTPException(404, "Folder not found")
    return folder


@router.post("/{email}/folders/reorder", response_model=list[Folder])
async def reorder_folders(email: str, body: FolderReorder, workspace: WorkspaceServiceDep):
    try:
        return await workspace.reorder_folders(email, body.from_index, body.to_index)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
