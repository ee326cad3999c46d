from __future__ import annotations

import httpx
import pytest

from app.errors import RemoteUnreachableError
from app.services.remote import ConnectionManager, RemoteStore

from conftest import REMOTE_KEY, REMOTE_URL, FakeRemote


def _store(fake_remote: FakeRemote, settings, **overrides) -> RemoteStore:
    return RemoteStore(
        REMOTE_URL,
        REMOTE_KEY,
        settings=settings.model_copy(update=overrides) if overrides else settings,
        transport=httpx.MockTransport(fake_remote.handler),
    )


@pytest.mark.asyncio
async def test_select_sends_key_headers_and_eq_filters(fake_remote, settings) -> None:
    fake_remote.seed(
        "folders",
        {"id": "f1", "user_email": "ada@example.com", "name": "Drafts"},
        {"id": "f2", "user_email": "bob@example.com", "name": "Other"},
    )
    store = _store(fake_remote, settings)

    rows = await store.select("folders", filters={"user_email": "ada@example.com"})

    assert [r["id"] for r in rows] == ["f1"]
    request = fake_remote.requests[-1]
    assert request.url.path == "/rest/v1/folders"
    assert request.url.params["user_email"] == "eq.ada@example.com"
    assert request.headers["apikey"] == REMOTE_KEY
    assert request.headers["authorization"] == f"Bearer {REMOTE_KEY}"
    assert request.headers["x-application-name"] == "beyond-words"
    await store.aclose()


@pytest.mark.asyncio
async def test_upsert_requests_merge_duplicates(fake_remote, settings) -> None:
    store = _store(fake_remote, settings)

    await store.upsert("user_stats", {"user_email": "ada@example.com", "stats_json": "{}"}, on_conflict="user_email")
    await store.upsert("user_stats", {"user_email": "ada@example.com", "stats_json": "{\"points\": 1}"}, on_conflict="user_email")

    assert fake_remote.rows("user_stats") == [
        {"user_email": "ada@example.com", "stats_json": "{\"points\": 1}"}
    ]
    request = fake_remote.writes("POST", "user_stats")[-1]
    assert "resolution=merge-duplicates" in request.headers["prefer"]
    assert request.url.params["on_conflict"] == "user_email"
    await store.aclose()


@pytest.mark.asyncio
async def test_delete_requires_filter(fake_remote, settings) -> None:
    store = _store(fake_remote, settings)
    with pytest.raises(ValueError):
        await store.delete("notes", {})
    await store.aclose()


@pytest.mark.asyncio
async def test_transient_status_is_retried(fake_remote, settings) -> None:
    fake_remote.fail_status = 503
    fake_remote.fail_times = 1
    store = _store(fake_remote, settings, REMOTE_MAX_RETRIES=2)

    rows = await store.select("notes")

    assert rows == []
    assert len(fake_remote.requests) == 2
    await store.aclose()


@pytest.mark.asyncio
async def test_retry_warning_names_operation_and_attempt(fake_remote, settings, caplog) -> None:
    fake_remote.fail_status = 503
    fake_remote.fail_times = 1
    store = _store(fake_remote, settings, REMOTE_MAX_RETRIES=2)

    await store.select("notes")

    assert "Remote select notes failed (attempt 1/3)" in caplog.text
    assert "Retrying in 0.00s" in caplog.text
    await store.aclose()


@pytest.mark.asyncio
async def test_client_error_is_not_retried(fake_remote, settings) -> None:
    fake_remote.fail_status = 401
    store = _store(fake_remote, settings, REMOTE_MAX_RETRIES=2)

    with pytest.raises(RemoteUnreachableError) as info:
        await store.select("notes")

    assert info.value.status_code == 401
    assert len(fake_remote.requests) == 1
    await store.aclose()


@pytest.mark.asyncio
async def test_transport_error_becomes_remote_unreachable(fake_remote, settings) -> None:
    fake_remote.raise_connect_error = True
    store = _store(fake_remote, settings)

    with pytest.raises(RemoteUnreachableError):
        await store.upsert("notes", {"id": "n1"})
    await store.aclose()


def test_remote_store_rejects_invalid_url(settings) -> None:
    with pytest.raises(ValueError):
        RemoteStore("not a url", REMOTE_KEY, settings=settings)


def test_get_returns_none_when_unconfigured(connections: ConnectionManager) -> None:
    assert connections.get() is None
    assert connections.is_connected is False


@pytest.mark.asyncio
async def test_get_reuses_one_client_until_config_changes(connections, config_store) -> None:
    config_store.save(REMOTE_URL, REMOTE_KEY)

    first = connections.get()
    assert first is not None
    assert connections.get() is first

    config_store.save("https://other.test", "other-key")
    second = connections.get()

    assert second is not first
    assert second.url == "https://other.test"
    await connections.aclose()
    assert first.is_closed


@pytest.mark.asyncio
async def test_clear_config_drops_client(connections, config_store) -> None:
    config_store.save(REMOTE_URL, REMOTE_KEY)
    assert connections.get() is not None

    config_store.clear()

    assert connections.is_connected is False
    assert connections.get() is None
    await connections.aclose()


@pytest.mark.asyncio
async def test_test_connection_rebuilds_and_pings(connections, config_store, fake_remote) -> None:
    config_store.save(REMOTE_URL, REMOTE_KEY)
    before = connections.get()

    result = await connections.test_connection()

    assert result.success is True
    assert connections.get() is not before
    ping = fake_remote.requests[-1]
    assert ping.url.path == "/rest/v1/notes"
    assert ping.url.params["select"] == "id"
    assert ping.url.params["limit"] == "1"
    await connections.aclose()


@pytest.mark.asyncio
async def test_test_connection_reports_failure(connections, config_store, fake_remote) -> None:
    config_store.save(REMOTE_URL, REMOTE_KEY)
    fake_remote.fail_status = 401

    result = await connections.test_connection()

    assert result.success is False
    assert "401" in result.error
    await connections.aclose()


@pytest.mark.asyncio
async def test_test_connection_unconfigured(connections) -> None:
    result = await connections.test_connection()
    assert result.success is False
    assert result.error
