"""Remote store configuration endpoints."""

from fastapi import APIRouter, HTTPException

from app.dependencies import SyncServiceDep
from app.errors import ConfigInvalidError
from app.models import ConfigStatus, ConnectionTested, RemoteConfigUpdate

router = APIRouter()


@router.get("/config", response_model=ConfigStatus)
async def get_config(service: SyncServiceDep):
    return service.config_status()


@router.put("/config", response_model=ConfigStatus)
async def save_config(body: RemoteConfigUpdate, service: SyncServiceDep):
    try:
        return await service.save_config(body.url, body.key)
    except ConfigInvalidError as exc:
        raise HTTPException(400, str(exc)) from exc


@router.delete("/config", response_model=ConfigStatus)
async def clear_config(service: SyncServiceDep):
    return await service.clear_config()


@router.post("/test", response_model=ConnectionTested)
async def test_connection(service: SyncServiceDep):
    return await service.test_connection()
