"""
Remote store integration.

RemoteStore is the transport layer for a PostgREST-compatible endpoint.
ConnectionManager owns the single live RemoteStore for the effective
configuration and rebuilds it whenever that configuration changes.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from app.config import Settings, settings as default_settings
from app.errors import RemoteUnreachableError
from app.logging import get_logger
from app.models import ConnectionTested
from app.services.config_store import ConfigStore, is_valid_url

logger = get_logger('services.remote')
_T = TypeVar("_T")

PING_TABLE = "notes"


class RemoteStore:
    """Client for one remote endpoint, authenticated by a static API key.

    No session is kept: cookies are dropped after every response and nothing
    is refreshed in the background.
    """

    def __init__(
        self,
        url: str,
        key: str,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not is_valid_url(url):
            raise ValueError(f"Invalid remote URL: {url!r}")
        self.settings = settings or default_settings
        self.url = url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self.url}/rest/v1",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
                "x-application-name": self.settings.REMOTE_APPLICATION_NAME,
            },
            timeout=self.settings.REMOTE_TIMEOUT_SECONDS,
            follow_redirects=False,
            transport=transport,
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    def _is_transient_error(self, error: Exception) -> bool:
        if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
            return True
        if isinstance(error, RemoteUnreachableError):
            if error.status_code is None:
                return True
            return error.status_code == 429 or error.status_code >= 500
        return False

    async def _run_with_retry(
        self,
        operation_name: str,
        operation: Callable[[], Awaitable[_T]],
    ) -> _T:
        max_retries = max(int(self.settings.REMOTE_MAX_RETRIES), 0)
        total_attempts = max_retries + 1
        base_delay = max(float(self.settings.REMOTE_RETRY_BASE_SECONDS), 0.0)
        max_delay = max(float(self.settings.REMOTE_RETRY_MAX_SECONDS), base_delay)

        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as error:
                should_retry = attempt < total_attempts and self._is_transient_error(error)
                if not should_retry:
                    raise

                delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
                logger.warning(
                    f"Remote {operation_name} failed (attempt {attempt}/{total_attempts}): "
                    f"{error}. Retrying in {delay:.2f}s"
                )
                if delay > 0:
                    await asyncio.sleep(delay)
                attempt += 1

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method, f"/{table}", params=params, json=json, headers=headers,
            )
        except httpx.TimeoutException as e:
            raise RemoteUnreachableError(f"{method} {table} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise RemoteUnreachableError(f"{method} {table} failed: {e}") from e
        finally:
            self._client.cookies.clear()

        if response.status_code >= 400:
            raise RemoteUnreachableError(
                f"{method} {table} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _eq_filters(filters: dict[str, Any] | None) -> dict[str, str]:
        return {column: f"eq.{value}" for column, value in (filters or {}).items()}

    # ── Rows ──

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        limit: int | None = None,
    ) -> list[dict]:
        params: dict[str, Any] = {"select": columns, **self._eq_filters(filters)}
        if limit is not None:
            params["limit"] = limit

        async def _op() -> list[dict]:
            response = await self._request("GET", table, params=params)
            data = response.json()
            if not isinstance(data, list):
                raise RemoteUnreachableError(f"GET {table} returned a non-list payload")
            return data

        return await self._run_with_retry(f"select {table}", _op)

    async def select_one(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
    ) -> dict | None:
        rows = await self.select(table, filters=filters, columns=columns, limit=1)
        return rows[0] if rows else None

    async def upsert(
        self,
        table: str,
        rows: dict | list[dict],
        on_conflict: str | None = None,
    ) -> None:
        params = {"on_conflict": on_conflict} if on_conflict else None
        headers = {"Prefer": "resolution=merge-duplicates,return=minimal"}

        async def _op() -> None:
            await self._request("POST", table, params=params, json=rows, headers=headers)

        await self._run_with_retry(f"upsert {table}", _op)

    async def delete(self, table: str, filters: dict[str, Any]) -> None:
        if not filters:
            raise ValueError("Refusing to delete without a filter")
        params = self._eq_filters(filters)

        async def _op() -> None:
            await self._request("DELETE", table, params=params)

        await self._run_with_retry(f"delete {table}", _op)

    async def ping(self) -> None:
        await self._request("GET", PING_TABLE, params={"select": "id", "limit": 1})


class ConnectionManager:
    """Holds at most one live RemoteStore for the current configuration."""

    def __init__(
        self,
        config_store: ConfigStore,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config_store = config_store
        self.settings = settings or default_settings
        self.transport = transport
        self._client: RemoteStore | None = None
        self._closing: set[asyncio.Task] = set()
        config_store.subscribe(self.invalidate)

    @property
    def is_configured(self) -> bool:
        return self.config_store.is_configured()

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def get(self) -> RemoteStore | None:
        if self._client is not None:
            return self._client
        if not self.config_store.is_configured():
            return None

        config = self.config_store.load()
        try:
            self._client = RemoteStore(
                config.url,
                config.key,
                settings=self.settings,
                transport=self.transport,
            )
        except Exception as e:
            logger.warning(f"Invalid remote configuration: {e}")
            return None
        logger.info(f"Remote client created for {config.url}")
        return self._client

    def invalidate(self) -> None:
        """Detach the live client so the next get() builds a fresh one."""
        client, self._client = self._client, None
        if client is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to close on; an idle client holds no open sockets.
            return
        task = loop.create_task(client.aclose())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def test_connection(self) -> ConnectionTested:
        self.invalidate()
        client = self.get()
        if client is None:
            return ConnectionTested(success=False, error="Remote store is not configured")
        try:
            await client.ping()
        except Exception as e:
            logger.warning(f"Connection test failed: {e}")
            return ConnectionTested(success=False, error=str(e))
        return ConnectionTested(success=True)

    async def aclose(self) -> None:
        self.invalidate()
        if self._closing:
            await asyncio.gather(*self._closing, return_exceptions=True)
