"""
Dependency injection for FastAPI routes.

Provides typed service dependencies that enable IDE navigation (Ctrl+Click).
"""

from typing import Annotated
from fastapi import Request, Depends

from app.services.sync import SyncService
from app.services.workspace import WorkspaceService


def get_sync_service(request: Request) -> SyncService:
    return request.app.state.sync_service


def get_workspace_service(request: Request) -> WorkspaceService:
    return request.app.state.workspace_service


SyncServiceDep = Annotated[SyncService, Depends(get_sync_service)]
WorkspaceServiceDep = Annotated[WorkspaceService, Depends(get_workspace_service)]
