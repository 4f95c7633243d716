# =============================================
# File: giftbot/services/persistence.py
# Purpose: Key-value stores (memory / JSON file / SQL) and the chat persistence adapter
# =============================================
from __future__ import annotations
import json
import os
import threading
from typing import Callable, Dict, List, Literal, Optional, Protocol

from loguru import logger
from pydantic import TypeAdapter, ValidationError
from sqlmodel import Session

from giftbot.db.models import KVEntry, utcnow
from giftbot.services.messages import Message

HISTORY_KEY = "chatHistory"
FEEDBACK_KEY = "product-feedback"

Verdict = Literal["like", "dislike"]

_HISTORY_ADAPTER = TypeAdapter(List[Message])
_FEEDBACK_ADAPTER = TypeAdapter(Dict[str, Verdict])


class PersistenceCorruptionError(ValueError):
    """Stored value for a key could not be parsed or did not match its schema."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"corrupt value for '{key}': {reason}")
        self.key = key
        self.reason = reason


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class InMemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class JsonFileStore:
    """
    All keys in one JSON object on disk.
    Writes go through a tmp file + os.replace so a crash never leaves half a file.
    An unreadable file is treated as empty and overwritten on the next write.
    """
    def __init__(self, path: str) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._mem: Dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            data = {}
        except (OSError, ValueError) as e:
            logger.warning(f"[store] unreadable store file {self._path}: {e}")
            data = {}
        if not isinstance(data, dict):
            logger.warning(f"[store] store file {self._path} is not a JSON object, ignoring")
            data = {}
        self._mem = {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self) -> None:
        folder = os.path.dirname(self._path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        tmp = self._path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._mem, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self._path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._mem.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._mem[key] = value
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._mem.pop(key, None) is not None:
                self._flush()


class SqlStore:
    """Key-value rows in the kv_entry table (see giftbot.db.models)."""

    def __init__(self, engine) -> None:
        self._engine = engine

    def get(self, key: str) -> Optional[str]:
        with Session(self._engine) as session:
            row = session.get(KVEntry, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with Session(self._engine) as session:
            row = session.get(KVEntry, key)
            if row is None:
                row = KVEntry(key=key, value=value)
            else:
                row.value = value
                row.updated_at = utcnow()
            session.add(row)
            session.commit()

    def remove(self, key: str) -> None:
        with Session(self._engine) as session:
            row = session.get(KVEntry, key)
            if row is not None:
                session.delete(row)
                session.commit()


def store_from_env() -> KeyValueStore:
    """GIFTBOT_STORE = memory | json | sql (default memory)."""
    kind = os.getenv("GIFTBOT_STORE", "memory").strip().lower()
    if kind == "json":
        return JsonFileStore(os.getenv("GIFTBOT_STORE_PATH", os.path.join("data", "giftbot_store.json")))
    if kind == "sql":
        from giftbot.db.repo import init_db
        return SqlStore(init_db())
    if kind != "memory":
        logger.warning(f"[store] unknown GIFTBOT_STORE={kind!r}, using memory")
    return InMemoryStore()


class PersistenceAdapter:
    """
    Loads and saves the two per-session keys:
      - chat history (JSON list of messages)
      - product feedback (JSON object productId -> like|dislike)
    A corrupt value is removed and replaced by its default; the error is logged, never raised.
    """
    def __init__(self, store: KeyValueStore, namespace: str = "") -> None:
        self._store = store
        self._namespace = namespace

    def key(self, name: str) -> str:
        return f"{self._namespace}:{name}" if self._namespace else name

    def _decode(self, name: str, adapter: TypeAdapter):
        key = self.key(name)
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            raise PersistenceCorruptionError(key, f"{e.error_count()} validation error(s)") from e

    def _load(self, name: str, adapter: TypeAdapter, default: Callable[[], object]):
        try:
            value = self._decode(name, adapter)
        except PersistenceCorruptionError as e:
            logger.warning(f"[store] {e}; resetting to default")
            self._store.remove(e.key)
            return default()
        return default() if value is None else value

    def load_history(self, greeting: Callable[[], Message]) -> List[Message]:
        history = self._load(HISTORY_KEY, _HISTORY_ADAPTER, lambda: [greeting()])
        return history or [greeting()]

    def save_history(self, messages: List[Message]) -> None:
        self._store.set(self.key(HISTORY_KEY), _HISTORY_ADAPTER.dump_json(messages).decode("utf-8"))

    def clear_history(self) -> None:
        self._store.remove(self.key(HISTORY_KEY))

    def load_feedback(self) -> Dict[str, Verdict]:
        return dict(self._load(FEEDBACK_KEY, _FEEDBACK_ADAPTER, dict))

    def save_feedback(self, feedback: Dict[str, Verdict]) -> None:
        self._store.set(self.key(FEEDBACK_KEY), json.dumps(feedback, ensure_ascii=False))
