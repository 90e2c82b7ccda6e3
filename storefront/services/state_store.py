from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..db.database import Database
from ..db.models import KeyValueEntry
from ..db.utils import get_db, transaction_scope
from ..exceptions import PersistenceError

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str, Optional[str]], None]


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True)
    return str(value)


def dumps(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, default=_json_default)


class KeyValueBackend(ABC):
    """Durable string-keyed storage shared by every tab of the application."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...


class MemoryBackend(KeyValueBackend):
    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class SqlBackend(KeyValueBackend):
    def __init__(self, database: Database) -> None:
        self.database = database
        self.database.init()

    def get(self, key: str) -> Optional[str]:
        try:
            with get_db(self.database) as session:
                record = session.get(KeyValueEntry, key)
                return record.value if record is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to read {key}: {exc}", key=key) from exc

    def set(self, key: str, value: str) -> None:
        try:
            with transaction_scope(self.database) as session:
                record = session.get(KeyValueEntry, key)
                if record is None:
                    session.add(KeyValueEntry(key=key, value=value))
                else:
                    record.value = value
                    record.updated_at = datetime.now(timezone.utc)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to write {key}: {exc}", key=key) from exc

    def delete(self, key: str) -> None:
        try:
            with transaction_scope(self.database) as session:
                record = session.get(KeyValueEntry, key)
                if record is not None:
                    session.delete(record)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to delete {key}: {exc}", key=key) from exc


class StorageChannel:
    """Delivers change notifications between stores that share a backend.

    A write made through one store is announced to every other attached
    store, never to the writer itself.
    """

    def __init__(self) -> None:
        self._stores: list[PersistentStore] = []

    def attach(self, store: "PersistentStore") -> None:
        if store not in self._stores:
            self._stores.append(store)

    def detach(self, store: "PersistentStore") -> None:
        if store in self._stores:
            self._stores.remove(store)

    def publish(self, origin: "PersistentStore", key: str, value: Optional[str]) -> None:
        for store in list(self._stores):
            if store is origin:
                continue
            store.notify_external_change(key, value)


class PersistentStore:
    """Get/set/remove over a durable backend with external-change subscriptions.

    Read and write failures are logged and swallowed: callers keep their
    in-memory state authoritative when the backend misbehaves.
    """

    def __init__(self, backend: KeyValueBackend, *, channel: Optional[StorageChannel] = None) -> None:
        self.backend = backend
        self.channel = channel
        self._subscribers: dict[str, list[ChangeCallback]] = {}
        if channel is not None:
            channel.attach(self)

    def get(self, key: str) -> Optional[str]:
        try:
            return self.backend.get(key)
        except PersistenceError as exc:
            logger.warning("Store read failed for %s: %s", key, exc.with_trace())
            return None

    def set(self, key: str, value: str) -> bool:
        try:
            self.backend.set(key, value)
        except PersistenceError as exc:
            logger.warning("Store write failed for %s: %s", key, exc.with_trace())
            return False
        self._publish(key, value)
        return True

    def remove(self, key: str) -> bool:
        try:
            self.backend.delete(key)
        except PersistenceError as exc:
            logger.warning("Store delete failed for %s: %s", key, exc.with_trace())
            return False
        self._publish(key, None)
        return True

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed JSON stored under %s", key)
            return default

    def set_json(self, key: str, payload: Any) -> bool:
        try:
            raw = dumps(payload)
        except (TypeError, ValueError) as exc:
            logger.warning("Cannot serialize value for %s: %s", key, exc)
            return False
        return self.set(key, raw)

    def on_external_change(self, key: str, callback: ChangeCallback) -> Callable[[], None]:
        callbacks = self._subscribers.setdefault(key, [])
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def notify_external_change(self, key: str, value: Optional[str]) -> None:
        for callback in list(self._subscribers.get(key, [])):
            try:
                callback(key, value)
            except Exception:
                logger.exception("External change handler failed for %s", key)

    def close(self) -> None:
        if self.channel is not None:
            self.channel.detach(self)
        self._subscribers.clear()

    def _publish(self, key: str, value: Optional[str]) -> None:
        if self.channel is not None:
            self.channel.publish(self, key, value)


__all__ = [
    "ChangeCallback",
    "dumps",
    "KeyValueBackend",
    "MemoryBackend",
    "SqlBackend",
    "StorageChannel",
    "PersistentStore",
]
