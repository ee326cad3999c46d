"""Workspace load, editor settings and session routes."""

from fastapi import APIRouter

from app.dependencies import SyncServiceDep, WorkspaceServiceDep
from app.models import EditorSettings, EditorSettingsChanged, Workspace

router = APIRouter()


@router.get("/{email}/workspace", response_model=Workspace)
async def load_workspace(email: str, workspace: WorkspaceServiceDep):
    return await workspace.load(email)


@router.get("/{email}/editor-settings", response_model=EditorSettings | None)
async def get_editor_settings(email: str, service: SyncServiceDep):
    return await service.get_editor_settings(email)


@router.put("/{email}/editor-settings", response_model=EditorSettingsChanged)
async def update_editor_settings(
    email: str,
    body: EditorSettings,
    workspace: WorkspaceServiceDep,
):
    return await workspace.update_editor_settings(email, body)


@router.post("/{email}/logout")
async def logout(email: str, workspace: WorkspaceServiceDep):
    dropped = await workspace.end_session(email)
    return {"status": "logged_out", "email": email.strip().lower(), "dropped_writes": dropped}
