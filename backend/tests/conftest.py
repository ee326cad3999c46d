from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from app.config import Settings
from app.database.db import LocalCache
from app.services.coalescer import WriteCoalescer
from app.services.config_store import ConfigStore
from app.services.remote import ConnectionManager
from app.services.sync import SyncService
from app.services.workspace import WorkspaceService

REMOTE_URL = "https://remote.test"
REMOTE_KEY = "anon-key"
DEBOUNCE = 0.05

_RESERVED_PARAMS = {"select", "limit", "on_conflict"}


class FakeRemote:
    """In-memory PostgREST endpoint served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, dict]] = {}
        self.requests: list[httpx.Request] = []
        self.fail_status: int | None = None
        self.fail_times: int | None = None
        self.raise_connect_error = False

    def rows(self, table: str) -> list[dict]:
        return list(self.tables.get(table, {}).values())

    def seed(self, table: str, *rows: dict, key: str = "id") -> None:
        bucket = self.tables.setdefault(table, {})
        for row in rows:
            bucket[str(row[key])] = dict(row)

    def writes(self, method: str, table: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path == f"/rest/v1/{table}"
        ]

    def _failing(self) -> bool:
        if self.fail_status is None:
            return False
        if self.fail_times is None:
            return True
        if self.fail_times <= 0:
            return False
        self.fail_times -= 1
        return True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_connect_error:
            raise httpx.ConnectError("connection refused", request=request)
        if self._failing():
            return httpx.Response(self.fail_status, json={"message": "unavailable"})

        table = request.url.path.rsplit("/", 1)[-1]
        params = request.url.params
        filters = {
            k: v[3:] for k, v in params.multi_items()
            if k not in _RESERVED_PARAMS and v.startswith("eq.")
        }
        bucket = self.tables.setdefault(table, {})

        def matches(row: dict) -> bool:
            return all(str(row.get(col)) == val for col, val in filters.items())

        if request.method == "GET":
            found = [row for row in bucket.values() if matches(row)]
            if "limit" in params:
                found = found[: int(params["limit"])]
            select = params.get("select", "*")
            if select != "*":
                cols = select.split(",")
                found = [{c: row.get(c) for c in cols} for row in found]
            return httpx.Response(200, json=found)

        if request.method == "POST":
            payload = json.loads(request.content)
            conflict = params.get("on_conflict", "id")
            for row in payload if isinstance(payload, list) else [payload]:
                key = str(row[conflict])
                bucket[key] = {**bucket.get(key, {}), **row}
            return httpx.Response(201)

        if request.method == "DELETE":
            for key in [k for k, row in bucket.items() if matches(row)]:
                del bucket[key]
            return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        LOCAL_CACHE_PATH=str(tmp_path / "cache.db"),
        DEFAULT_REMOTE_URL="",
        DEFAULT_REMOTE_KEY="",
        SYNC_DEBOUNCE_SECONDS=DEBOUNCE,
        REMOTE_MAX_RETRIES=0,
        REMOTE_RETRY_BASE_SECONDS=0.0,
        REMOTE_TIMEOUT_SECONDS=2.0,
    )


@pytest.fixture
def cache(settings: Settings):
    local = LocalCache(settings.LOCAL_CACHE_PATH)
    local.init_db()
    yield local
    local.close()


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def config_store(cache: LocalCache, settings: Settings) -> ConfigStore:
    return ConfigStore(cache, settings=settings)


@pytest.fixture
def connections(config_store: ConfigStore, settings: Settings, fake_remote: FakeRemote) -> ConnectionManager:
    return ConnectionManager(
        config_store,
        settings=settings,
        transport=httpx.MockTransport(fake_remote.handler),
    )


@pytest_asyncio.fixture
async def sync(cache, config_store, connections):
    coalescer = WriteCoalescer(delay=DEBOUNCE)
    service = SyncService(
        cache=cache,
        config_store=config_store,
        connections=connections,
        coalescer=coalescer,
    )
    yield service
    await coalescer.shutdown()
    await connections.aclose()


@pytest.fixture
def workspace(sync: SyncService, settings: Settings) -> WorkspaceService:
    return WorkspaceService(sync, settings=settings)


@pytest.fixture
def configured(config_store: ConfigStore) -> None:
    config_store.save(REMOTE_URL, REMOTE_KEY)
