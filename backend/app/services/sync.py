"""
Sync facade: the only persistence interface the rest of the app uses.

Reads prefer a fresh remote snapshot and fall back to the local cache.
Writes land in the local cache immediately and reach the remote store later
through the write coalescer. Nothing here raises past the facade except
ConfigInvalidError from save_config.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from app.database.db import LocalCache
from app.errors import SerializationError
from app.logging import get_logger
from app.models import (
    Collection,
    ConfigStatus,
    ConnectionTested,
    EditorSettings,
    Folder,
    InspirationItem,
    Note,
    UserStats,
    normalize_email,
    now_ms,
)
from app.services.coalescer import WriteCoalescer
from app.services.config_store import ConfigStore
from app.services.remote import ConnectionManager, RemoteStore

logger = get_logger("services.sync")

_T = TypeVar("_T")
_M = TypeVar("_M", bound=BaseModel)


def _parse_ms(raw: Any) -> int:
    if raw is None or raw == "":
        return now_ms()
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return now_ms()


def _row_to_note(row: dict) -> Note:
    return Note(
        id=str(row["id"]),
        folder_id=row.get("folder_id") or "",
        title=row.get("title") or "",
        content=row.get("content") or "",
        updated_at=_parse_ms(row.get("updated_at")),
        target_word_count=row.get("target_word_count"),
    )


def _note_to_row(note: Note, email: str) -> dict:
    return {
        "id": note.id,
        "user_email": email,
        "folder_id": note.folder_id,
        "title": note.title,
        "content": note.content,
        "updated_at": note.updated_at,
        "target_word_count": note.target_word_count,
    }


def _row_to_folder(row: dict) -> Folder:
    return Folder(id=str(row["id"]), name=row.get("name") or "", color=row.get("color"))


def _folder_to_row(folder: Folder, email: str) -> dict:
    return {"id": folder.id, "user_email": email, "name": folder.name, "color": folder.color}


def _row_to_inspiration(row: dict) -> InspirationItem:
    return InspirationItem(
        id=str(row["id"]),
        type=row["type"],
        content=row.get("content") or "",
        title=row.get("title"),
        snippet=row.get("snippet"),
        created_at=_parse_ms(row.get("created_at")),
        x=row.get("x"),
        y=row.get("y"),
    )


def _inspiration_to_row(item: InspirationItem, email: str) -> dict:
    return {
        "id": item.id,
        "user_email": email,
        "type": item.type.value,
        "content": item.content,
        "title": item.title,
        "snippet": item.snippet,
        "created_at": item.created_at,
        "x": item.x,
        "y": item.y,
    }


def _row_to_stats(row: dict) -> UserStats:
    blob = row.get("stats_json")
    if isinstance(blob, str):
        blob = json.loads(blob)
    return UserStats.model_validate(blob)


class SyncService:
    """Local-first reads and writes for notes, folders, inspiration and stats."""

    def __init__(
        self,
        cache: LocalCache,
        config_store: ConfigStore,
        connections: ConnectionManager,
        coalescer: WriteCoalescer,
    ):
        self.cache = cache
        self.config_store = config_store
        self.connections = connections
        self.coalescer = coalescer

    # ── Configuration ──

    def is_configured(self) -> bool:
        return self.config_store.is_configured()

    def config_status(self) -> ConfigStatus:
        config = self.config_store.load()
        return ConfigStatus(
            configured=self.config_store.is_configured(),
            url=config.url,
            is_override=config.is_override,
        )

    async def save_config(self, url: str, key: str) -> ConfigStatus:
        self.config_store.save(url, key)
        return self.config_status()

    async def clear_config(self) -> ConfigStatus:
        self.config_store.clear()
        return self.config_status()

    async def test_connection(self) -> ConnectionTested:
        return await self.connections.test_connection()

    # ── Tier helpers ──

    def _remote(self) -> RemoteStore | None:
        if not self.config_store.is_configured():
            return None
        return self.connections.get()

    async def _fetch_remote(
        self,
        label: str,
        fetch: Callable[[RemoteStore], Awaitable[_T]],
    ) -> _T | None:
        client = self._remote()
        if client is None:
            return None
        try:
            return await fetch(client)
        except Exception as e:
            logger.warning(f"Remote {label} load skipped (using local): {e}")
            return None

    async def _remote_rows(
        self,
        label: str,
        table: str,
        email: str,
        mapper: Callable[[dict], _M],
    ) -> list[_M] | None:
        rows = await self._fetch_remote(
            label, lambda client: client.select(table, filters={"user_email": email})
        )
        if rows is None:
            return None
        try:
            return [mapper(row) for row in rows]
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            logger.warning(f"Remote {label} rows unusable (using local): {e}")
            return None

    def _local_list(self, email: str, collection: Collection, model: type[_M]) -> list[_M] | None:
        raw = self.cache.read(email, collection)
        if raw is None:
            return None
        try:
            if not isinstance(raw, list):
                raise SerializationError(f"expected a list, got {type(raw).__name__}")
            return [model.model_validate(item) for item in raw]
        except (SerializationError, ValidationError) as e:
            logger.error(f"Local {collection.value} snapshot unusable for {email}: {e}")
            return None

    def _local_model(self, email: str, collection: Collection, model: type[_M]) -> _M | None:
        raw = self.cache.read(email, collection)
        if raw is None:
            return None
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Local {collection.value} snapshot unusable for {email}: {e}")
            return None

    @staticmethod
    def _prefer_remote(remote: list[_M] | None, local: list[_M] | None) -> list[_M] | None:
        if remote:
            return remote
        if local is not None:
            return local
        return remote

    def _schedule(self, key: str, perform_write: Callable[[], Awaitable[None]]) -> None:
        if not self.config_store.is_configured():
            return
        self.coalescer.schedule(key, perform_write)

    async def _delete_remote(self, label: str, table: str, filters: dict) -> None:
        client = self._remote()
        if client is None:
            return
        try:
            await client.delete(table, filters)
        except Exception as e:
            logger.warning(f"Remote {label} delete failed: {e}")

    # ── Local peeks (no network) ──

    def peek_notes(self, user_id: str) -> list[Note] | None:
        return self._local_list(normalize_email(user_id), Collection.NOTES, Note)

    def peek_folders(self, user_id: str) -> list[Folder] | None:
        return self._local_list(normalize_email(user_id), Collection.FOLDERS, Folder)

    def peek_inspiration(self, user_id: str) -> list[InspirationItem] | None:
        return self._local_list(normalize_email(user_id), Collection.INSPIRATION, InspirationItem)

    def peek_stats(self, user_id: str) -> UserStats | None:
        return self._local_model(normalize_email(user_id), Collection.STATS, UserStats)

    # ── Notes ──

    async def get_notes(self, user_id: str) -> list[Note] | None:
        email = normalize_email(user_id)
        remote = await self._remote_rows("notes", "notes", email, _row_to_note)
        return self._prefer_remote(remote, self._local_list(email, Collection.NOTES, Note))

    async def save_note(self, note: Note, user_id: str) -> None:
        email = normalize_email(user_id)
        self.cache.upsert(email, Collection.NOTES, note.model_dump(mode="json"))
        self._schedule(f"notes:{email}:{note.id}", lambda: self._push_note(email, note.id))

    async def _push_note(self, email: str, note_id: str) -> None:
        notes = self._local_list(email, Collection.NOTES, Note) or []
        note = next((n for n in notes if n.id == note_id), None)
        client = self._remote()
        if note is None or client is None:
            return
        await client.upsert("notes", _note_to_row(note, email))
        logger.debug(f"Pushed note {note_id} for {email}")

    async def delete_note(self, note_id: str, user_id: str) -> None:
        email = normalize_email(user_id)
        self.cache.remove(email, Collection.NOTES, note_id)
        await self.coalescer.settle(f"notes:{email}:{note_id}")
        await self._delete_remote("note", "notes", {"id": note_id, "user_email": email})

    # ── Folders ──

    async def get_folders(self, user_id: str) -> list[Folder] | None:
        email = normalize_email(user_id)
        remote = await self._remote_rows("folders", "folders", email, _row_to_folder)
        return self._prefer_remote(remote, self._local_list(email, Collection.FOLDERS, Folder))

    async def save_folders(self, folders: list[Folder], user_id: str) -> None:
        email = normalize_email(user_id)
        self.cache.write(email, Collection.FOLDERS, [f.model_dump(mode="json") for f in folders])
        self._schedule(f"folders:{email}", lambda: self._push_folders(email))

    async def _push_folders(self, email: str) -> None:
        folders = self._local_list(email, Collection.FOLDERS, Folder)
        client = self._remote()
        if not folders or client is None:
            return
        await client.upsert("folders", [_folder_to_row(f, email) for f in folders])

    # ── Inspiration ──

    async def get_inspiration(self, user_id: str) -> list[InspirationItem] | None:
        email = normalize_email(user_id)
        remote = await self._remote_rows("inspiration", "inspiration", email, _row_to_inspiration)
        return self._prefer_remote(
            remote, self._local_list(email, Collection.INSPIRATION, InspirationItem)
        )

    async def save_inspiration(self, items: list[InspirationItem], user_id: str) -> None:
        email = normalize_email(user_id)
        self.cache.write(email, Collection.INSPIRATION, [i.model_dump(mode="json") for i in items])
        self._schedule(f"inspiration:{email}", lambda: self._push_inspiration(email))

    async def _push_inspiration(self, email: str) -> None:
        items = self._local_list(email, Collection.INSPIRATION, InspirationItem)
        client = self._remote()
        if not items or client is None:
            return
        await client.upsert("inspiration", [_inspiration_to_row(i, email) for i in items])

    async def delete_inspiration(self, item_id: str, user_id: str) -> None:
        email = normalize_email(user_id)
        self.cache.remove(email, Collection.INSPIRATION, item_id)
        await self.coalescer.wait_inflight(f"inspiration:{email}")
        await self._delete_remote(
            "inspiration", "inspiration", {"id": item_id, "user_email": email}
        )

    # ── Stats ──

    async def get_stats(self, user_id: str) -> UserStats | None:
        email = normalize_email(user_id)
        row = await self._fetch_remote(
            "stats",
            lambda client: client.select_one(
                "user_stats", filters={"user_email": email}, columns="stats_json"
            ),
        )
        if row and row.get("stats_json"):
            try:
                return _row_to_stats(row)
            except (TypeError, ValueError, ValidationError) as e:
                logger.warning(f"Remote stats unusable (using local): {e}")
        return self._local_model(email, Collection.STATS, UserStats)

    async def save_stats(self, stats: UserStats, user_id: str) -> None:
        email = normalize_email(user_id)
        self.cache.write(email, Collection.STATS, stats.model_dump(mode="json"))
        self._schedule(f"stats:{email}", lambda: self._push_stats(email))

    async def _push_stats(self, email: str) -> None:
        stats = self._local_model(email, Collection.STATS, UserStats)
        client = self._remote()
        if stats is None or client is None:
            return
        await client.upsert(
            "user_stats",
            {"user_email": email, "stats_json": stats.model_dump_json()},
            on_conflict="user_email",
        )

    # ── Editor settings (local only) ──

    async def get_editor_settings(self, user_id: str) -> EditorSettings | None:
        return self._local_model(normalize_email(user_id), Collection.EDITOR_SETTINGS, EditorSettings)

    async def save_editor_settings(self, editor_settings: EditorSettings, user_id: str) -> None:
        self.cache.write(
            normalize_email(user_id),
            Collection.EDITOR_SETTINGS,
            editor_settings.model_dump(mode="json"),
        )

    # ── Session ──

    def drop_pending(self, user_id: str) -> int:
        """Cancel the user's queued remote writes; other users' writes are untouched."""
        return self.coalescer.cancel_scope(normalize_email(user_id))
