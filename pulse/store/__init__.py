"""
Residency Pulse — Submission Store

Append-only log of submissions behind one interface:

  append(record) -> id     list() -> [record, ...] oldest-first     delete(id) -> bool

Backends:
  FileStore         — one JSON array on disk. append = read, push, rewrite.
                      No lock: two concurrent writers can lose an update.
  RemoteListStore   — KV list under a single key. append = LPUSH (newest at
                      head), list = LRANGE reversed. delete rewrites the whole
                      list in one MULTI/EXEC, serialized by an in-process lock.
  MemoryStore       — process-local list. Gone on restart.

The backend is chosen once by select_store() when the app is built; request
handlers only ever see the resulting instance.
"""
import os
import copy as _copy
import json
import time
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse

from pulse.config import (
    STORE_BACKENDS, STORE_BACKEND, PERSIST_DATA, SUBMISSIONS_PATH,
    KV_URL, KV_TOKEN, KV_KEY,
)
from pulse.errors import BackendConfigurationError, BackendIOError, DecodeError
from pulse.store.kv import KVRestClient

logger = logging.getLogger(__name__)


# ============================================================
# IDS & TIMESTAMPS
# ============================================================
class _IdClock:
    """Millisecond timestamps, bumped so no two ids in a process collide."""

    def __init__(self):
        self._last = 0

    def next(self, now_ms=None) -> str:
        ms = int(time.time() * 1000) if now_ms is None else int(now_ms)
        if ms <= self._last:
            ms = self._last + 1
        self._last = ms
        return str(ms)


_id_clock = _IdClock()


def new_submission_id() -> str:
    return _id_clock.next()


def utc_timestamp() -> str:
    """ISO-8601 UTC instant, millisecond precision, "Z" suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _prepare(record: dict) -> dict:
    rec = dict(record)
    if not rec.get("id"):
        rec["id"] = new_submission_id()
    if not rec.get("timestamp"):
        rec["timestamp"] = utc_timestamp()
    return rec


# ============================================================
# DECODING
# ============================================================
def decode_record(item) -> dict:
    """Accept a stored entry as JSON text, bytes, or an already-decoded mapping."""
    if isinstance(item, (bytes, bytearray)):
        try:
            item = item.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("entry is not valid UTF-8") from e
    if isinstance(item, str):
        try:
            item = json.loads(item)
        except ValueError as e:
            raise DecodeError("entry is not valid JSON") from e
    if not isinstance(item, dict):
        raise DecodeError(f"entry is a {type(item).__name__}, not an object")
    return item


def _decode_all(items, backend: str) -> list:
    records = []
    for pos, item in enumerate(items):
        try:
            records.append(decode_record(item))
        except DecodeError as e:
            logger.warning("Skipping malformed %s entry at position %d: %s", backend, pos, e)
    return records


def _same_id(record, submission_id) -> bool:
    return str(record.get("id")) == str(submission_id)


# ============================================================
# INTERFACE
# ============================================================
class SubmissionStore:
    """Ordered, append-only collection of submissions."""
    backend = "abstract"

    def append(self, record: dict) -> str:
        raise NotImplementedError

    def list(self) -> list:
        raise NotImplementedError

    def delete(self, submission_id: str) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        return self.backend


# ============================================================
# FILE BACKEND
# ============================================================
class FileStore(SubmissionStore):
    backend = "file"

    def __init__(self, path):
        self.path = Path(path)

    def _read(self) -> list:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise BackendIOError(f"Could not read {self.path.name}: {type(e).__name__}") from e
        if not isinstance(data, list):
            raise BackendIOError(f"{self.path.name} does not hold a JSON array")
        return data

    def _write(self, data: list):
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(tmp, self.path)
        except OSError as e:
            raise BackendIOError(f"Could not write {self.path.name}: {type(e).__name__}") from e

    def list(self) -> list:
        return _decode_all(self._read(), self.backend)

    def append(self, record: dict) -> str:
        rec = _prepare(record)
        data = self._read()
        data.append(rec)
        self._write(data)
        return rec["id"]

    def delete(self, submission_id: str) -> bool:
        data = self._read()
        kept = [r for r in data if not (isinstance(r, dict) and _same_id(r, submission_id))]
        if len(kept) == len(data):
            return False
        self._write(kept)
        return True


# ============================================================
# IN-MEMORY BACKEND
# ============================================================
class MemoryStore(SubmissionStore):
    backend = "memory"

    def __init__(self):
        self._records = []

    def list(self) -> list:
        return _copy.deepcopy(self._records)

    def append(self, record: dict) -> str:
        rec = _copy.deepcopy(_prepare(record))
        self._records.append(rec)
        return rec["id"]

    def delete(self, submission_id: str) -> bool:
        before = len(self._records)
        self._records = [r for r in self._records if not _same_id(r, submission_id)]
        return len(self._records) != before


# ============================================================
# REMOTE LIST BACKEND
# ============================================================
def _encode_raw(item) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, (bytes, bytearray)):
        return item.decode("utf-8", errors="replace")
    return json.dumps(item, default=str)


class RemoteListStore(SubmissionStore):
    """Submissions in a KV list; the backend returns newest-first."""
    backend = "kv"

    def __init__(self, client, key: str = KV_KEY):
        self.client = client
        self.key = key
        self._write_lock = threading.Lock()

    def list(self) -> list:
        raw = self.client.lrange(self.key, 0, -1) or []
        return _decode_all(reversed(raw), self.backend)

    def append(self, record: dict) -> str:
        rec = _prepare(record)
        with self._write_lock:
            self.client.lpush(self.key, json.dumps(rec, default=str))
        return rec["id"]

    def delete(self, submission_id: str) -> bool:
        # LREM would need the exact stored bytes, so rewrite the list instead.
        # Entries we cannot decode are carried over untouched.
        with self._write_lock:
            raw = self.client.lrange(self.key, 0, -1) or []
            kept = []
            for item in raw:
                try:
                    rec = decode_record(item)
                except DecodeError:
                    kept.append(item)
                    continue
                if not _same_id(rec, submission_id):
                    kept.append(item)
            if len(kept) == len(raw):
                return False
            self.client.replace_list(self.key, [_encode_raw(k) for k in kept])
        return True


# ============================================================
# BACKEND SELECTION
# ============================================================
def remote_settings(url, token):
    """Validate KV connection parameters.

    Returns (url, token), or None when neither is set. Raises
    BackendConfigurationError when they are present but unusable.
    """
    url = (url or "").strip()
    token = (token or "").strip()
    if not url and not token:
        return None
    if not url:
        raise BackendConfigurationError("KV token is set but the REST URL is empty")
    if not token:
        raise BackendConfigurationError("KV REST URL is set but the token is empty")
    parsed = urlparse(url)
    if parsed.scheme != "https":
        raise BackendConfigurationError(f"KV REST URL must use https, got '{parsed.scheme or 'no scheme'}'")
    if not parsed.hostname:
        raise BackendConfigurationError("KV REST URL has no host")
    return url, token


def _fallback_store(persist, path) -> SubmissionStore:
    return FileStore(path) if persist else MemoryStore()


def select_store(backend=None, url=None, token=None, key=None, persist=None, path=None,
                 client_factory=KVRestClient) -> SubmissionStore:
    """Pick the submission backend once, at startup.

    file/memory are taken as asked. kv/auto prefer the remote list when its
    settings are well-formed; anything malformed is logged and the file
    (PERSIST_DATA) or memory fallback is used instead.
    """
    mode = (backend if backend is not None else STORE_BACKEND).lower().strip()
    url = KV_URL if url is None else url
    token = KV_TOKEN if token is None else token
    key = key or KV_KEY
    persist = PERSIST_DATA if persist is None else persist
    path = path or SUBMISSIONS_PATH

    if mode not in STORE_BACKENDS:
        logger.warning("Unknown STORE_BACKEND '%s', using auto", mode)
        mode = "auto"

    if mode == "file":
        store = FileStore(path)
    elif mode == "memory":
        store = MemoryStore()
    else:
        settings = None
        try:
            settings = remote_settings(url, token)
        except BackendConfigurationError as e:
            logger.warning("Remote store misconfigured (%s); falling back", e)
        else:
            if settings is None and mode == "kv":
                logger.warning("STORE_BACKEND=kv but no KV REST URL/token set; falling back")
        if settings:
            store = RemoteListStore(client_factory(*settings), key)
        else:
            store = _fallback_store(persist, path)

    logger.info("Using %s submission backend", store.describe())
    return store
