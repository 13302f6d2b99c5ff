"""
Saved-jobs persistence.

``PersistenceBridge`` translates saved-set state to and from an external
key-value byte store. Reads never fail (missing or corrupt data is an empty
saved set) and writes are best-effort: failures are logged and counted,
never raised.
"""

import contextlib
import json
import re
import threading
import uuid
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Any, Iterable, List, Optional, Protocol, Sequence

from .errors import PersistenceError
from .logger import get_logger
from .models import Job
from .normalize import normalize

logger = get_logger()

SAVED_JOBS_KEY = "savedJobs"
FORMAT_VERSION = 1

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> None:
        ...


class FileKeyValueStore:
    """One file per key under a directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise PersistenceError(f"Invalid store key: {key!r}")
        return self.root / f"{key}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        # Unique temp name so concurrent writers never share one
        tmp = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(value)
            tmp.replace(path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise PersistenceError(f"Failed to write {path}: {e}") from e


def open_store(path: Path) -> KeyValueStore:
    """SQLite store for ``*.db`` paths, file store otherwise."""
    path = Path(path)
    if path.suffix == ".db":
        from .database import SqliteKeyValueStore
        return SqliteKeyValueStore(path)
    return FileKeyValueStore(path)


def encode_saved(ids: Sequence[str], jobs: Iterable[Job] = ()) -> bytes:
    payload = {
        "version": FORMAT_VERSION,
        "ids": list(ids),
        "jobs": [job.to_dict() for job in jobs],
    }
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def _has_id(raw: dict) -> bool:
    value = raw.get("id")
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, str) and bool(value.strip()))


class PersistenceBridge:
    """
    Best-effort adapter between the saved set and a byte store.

    Every write is tagged with a sequence number when it is requested. Writes
    run one at a time, and a write older than one already started is dropped,
    so the store always ends up with the latest requested state no matter
    how the executor schedules them.

    Args:
        store: Byte store with ``get``/``set``
        key: Key the saved state lives under
        executor: When given, writes are submitted to it and not awaited
    """

    def __init__(self, store: KeyValueStore, key: str = SAVED_JOBS_KEY, executor: Optional[Executor] = None):
        self.store = store
        self.key = key
        self.executor = executor
        self._seq_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._next_seq = 0
        self._started_seq = 0

    def _read(self) -> Any:
        try:
            blob = self.store.get(self.key)
        except Exception as e:
            logger.record_persistence_failure(type(e).__name__)
            logger.error("Failed to read saved jobs", key=self.key, error=str(e))
            return None
        if not blob:
            return None
        try:
            return json.loads(blob.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            logger.record_persistence_failure("CorruptData")
            logger.warning("Saved jobs data is corrupt, starting empty", key=self.key, error=str(e))
            return None

    def load_saved_ids(self) -> List[str]:
        """Saved ids in save order; empty on missing or corrupt data."""
        data = self._read()
        if isinstance(data, dict):
            ids = data.get("ids")
            if not isinstance(ids, list):
                return []
            raw_ids = [i for i in ids if isinstance(i, str) and i]
        elif isinstance(data, list):
            # Legacy format: a bare array of job objects
            raw_ids = [job.id for job in self._legacy_jobs(data)]
        else:
            return []
        return list(dict.fromkeys(raw_ids))

    def load_saved_jobs(self) -> List[Job]:
        """Records stored next to the ids; may cover only some of them."""
        data = self._read()
        if isinstance(data, dict):
            jobs = data.get("jobs")
            if not isinstance(jobs, list):
                return []
            return [Job.from_dict(d) for d in jobs if isinstance(d, dict) and d.get("id")]
        if isinstance(data, list):
            return self._legacy_jobs(data)
        return []

    @staticmethod
    def _legacy_jobs(items: list) -> List[Job]:
        return [normalize(d) for d in items if isinstance(d, dict) and _has_id(d)]

    def store_saved_ids(self, ids: Sequence[str], jobs: Iterable[Job] = ()) -> bool:
        """
        Write the saved state.

        The payload is serialized on the calling thread. With an executor the
        write is queued and True means "queued"; without one it runs inline and
        the return value says whether it succeeded. A queued write superseded
        by a newer one before it starts is skipped. Never raises.
        """
        blob = encode_saved(ids, jobs)
        with self._seq_lock:
            self._next_seq += 1
            seq = self._next_seq
        if self.executor is None:
            return self._write(blob, seq)
        try:
            future = self.executor.submit(self._write, blob, seq)
        except RuntimeError as e:
            logger.record_persistence_failure(type(e).__name__)
            logger.error("Could not queue saved jobs write", key=self.key, error=str(e))
            return False
        future.add_done_callback(self._log_unexpected)
        return True

    def _write(self, blob: bytes, seq: int) -> bool:
        with self._write_lock:
            if seq <= self._started_seq:
                logger.debug("Skipping superseded saved jobs write", key=self.key, seq=seq, latest=self._started_seq)
                return True
            self._started_seq = seq
            try:
                self.store.set(self.key, blob)
            except Exception as e:
                logger.record_persistence_failure(type(e).__name__)
                logger.error("Failed to store saved jobs", key=self.key, error=str(e))
                return False
        logger.debug("Stored saved jobs", key=self.key, size=len(blob), seq=seq)
        return True

    @staticmethod
    def _log_unexpected(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.record_persistence_failure(type(exc).__name__)
            logger.error("Saved jobs write crashed", error=str(exc))
