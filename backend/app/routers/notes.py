"""Note routes."""

from fastapi import APIRouter, HTTPException

from app.dependencies import SyncServiceDep, WorkspaceServiceDep
from app.models import Note, NoteChanged, NoteCreate, NoteMove, NoteUpdate

router = APIRouter()


@router.get("/{email}/notes", response_model=list[Note] | None)
async def get_notes(email: str, service: SyncServiceDep):
    return await service.get_notes(email)


@router.put("/{email}/notes", status_code=202)
async def save_note(email: str, body: Note, service: SyncServiceDep):
    await service.save_note(body, email)
    return {"status": "saved", "id": body.id}


@router.post("/{email}/notes", response_model=NoteChanged, status_code=201)
async def create_note(email: str, body: NoteCreate, workspace: WorkspaceServiceDep):
    return await workspace.create_note(email, body)


@router.put("/{email}/notes/{note_id}", response_model=NoteChanged)
async def update_note(
    email: str,
    note_id: str,
    body: NoteUpdate,
    workspace: WorkspaceServiceDep,
):
    result = await workspace.update_note(email, note_id, body)
    if not result:
        raise HTTPException(404, "Note not found")
    return result


@router.post("/{email}/notes/{note_id}/move", response_model=Note)
async def move_note(
    email: str,
    note_id: str,
    body: NoteMove,
    workspace: WorkspaceServiceDep,
):
    try:
        note = await workspace.move_note(email, note_id, body.folder_id)
    except LookupError as exc:
        raise HTTPException(404, str(exc)) from exc
    if not note:
        raise HTTPException(404, "Note not found")
    return note


@router.delete("/{email}/notes/{note_id}")
async def delete_note(email: str, note_id: str, workspace: WorkspaceServiceDep):
    await workspace.delete_note(email, note_id)
    return {"status": "deleted", "id": note_id}
