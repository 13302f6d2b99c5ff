"""
Saved jobs: the live set, the navigation snapshot and the receiving view.

The saved view never holds a reference to the live ``SavedSet``. It gets a
frozen ``SavedSnapshot`` and hands back a ``SavedMerge`` message, which the
owner applies explicitly with ``SavedSet.merge``.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import UnknownJob
from .logger import get_logger
from .models import Job
from .storage import PersistenceBridge

logger = get_logger()


@dataclass(frozen=True)
class SavedSnapshot:
    """Value copy of saved state; ``ids`` and ``records`` pair up one to one."""

    ids: Tuple[str, ...] = ()
    records: Tuple[Job, ...] = ()

    def reconcile(self, ids: Iterable[str]) -> Tuple[Job, ...]:
        """Records whose id is in ``ids``, in snapshot order."""
        keep = set(ids)
        return tuple(job for job in self.records if job.id in keep)

    def record(self, job_id: str) -> Optional[Job]:
        for job in self.records:
            if job.id == job_id:
                return job
        return None


@dataclass(frozen=True)
class SavedMerge:
    """What the saved view sends back on return navigation."""

    base: SavedSnapshot
    saved_ids: Tuple[str, ...]
    apply_for: Optional[Job] = None

    @property
    def removed_ids(self) -> Tuple[str, ...]:
        keep = set(self.saved_ids)
        return tuple(i for i in self.base.ids if i not in keep)


class SavedSet:
    """
    Jobs the user has saved, keyed by id, in save order.

    Every mutation writes through to the persistence bridge when one is
    attached. Ids restored from storage without a record are kept as
    pending until ``resolve`` sees a matching Job.
    """

    def __init__(self, bridge: Optional[PersistenceBridge] = None):
        self.bridge = bridge
        # id -> Job, or None while pending
        self._entries: Dict[str, Optional[Job]] = {}

    @classmethod
    def rehydrate(cls, bridge: PersistenceBridge) -> "SavedSet":
        saved = cls(bridge)
        records = {job.id: job for job in bridge.load_saved_jobs()}
        for job_id in bridge.load_saved_ids():
            saved._entries[job_id] = records.get(job_id)
        logger.info("Restored saved jobs", count=len(saved._entries), pending=len(saved.pending_ids()))
        return saved

    @property
    def count(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._entries

    def contains(self, job_id: str) -> bool:
        return job_id in self._entries

    def ids(self) -> List[str]:
        return list(self._entries)

    def records(self) -> List[Job]:
        return [job for job in self._entries.values() if job is not None]

    def pending_ids(self) -> List[str]:
        return [job_id for job_id, job in self._entries.items() if job is None]

    def toggle(self, job: Job) -> bool:
        """Save an unsaved job or unsave a saved one. Returns the new membership."""
        if job.id in self._entries:
            del self._entries[job.id]
            saved = False
        else:
            self._entries[job.id] = job
            saved = True
        logger.debug("Toggled saved job", job_id=job.id, saved=saved)
        self._flush()
        return saved

    def resolve(self, jobs: Iterable[Job]) -> int:
        """Attach records to pending ids. Returns how many were resolved."""
        pending = set(self.pending_ids())
        if not pending:
            return 0
        resolved = 0
        for job in jobs:
            if job.id in pending:
                self._entries[job.id] = job
                pending.discard(job.id)
                resolved += 1
        if resolved:
            self._flush()
        return resolved

    def snapshot(self) -> SavedSnapshot:
        """Frozen copy for the saved view. Pending ids are left out."""
        records = tuple(self.records())
        return SavedSnapshot(ids=tuple(job.id for job in records), records=records)

    def reconcile(self, ids: Iterable[str]) -> List[Job]:
        """Saved records restricted to ``ids``, in save order."""
        keep = set(ids)
        return [job for job in self.records() if job.id in keep]

    def merge(self, message: SavedMerge) -> None:
        """
        Apply what the saved view did to the snapshot it was given.

        Only ids from that snapshot are touched: removed ones are unsaved,
        kept ones are saved again if they went missing meanwhile.
        """
        keep = set(message.saved_ids)
        changed = False
        for job in message.base.records:
            if job.id in keep and job.id not in self._entries:
                self._entries[job.id] = job
                changed = True
            elif job.id not in keep and job.id in self._entries:
                del self._entries[job.id]
                changed = True
        if changed:
            logger.info("Merged saved view changes", removed=len(message.removed_ids), count=len(self._entries))
            self._flush()

    def _flush(self) -> None:
        if self.bridge is not None:
            self.bridge.store_saved_ids(self.ids(), self.records())


class SavedJobsView:
    """
    The secondary screen's local state.

    Removing a job here only filters what this view shows; the primary
    view's saved set changes once the message from ``close`` is merged.
    """

    def __init__(self, snapshot: SavedSnapshot):
        self.snapshot = snapshot
        self._saved_ids: List[str] = list(snapshot.ids)
        self._apply_for: Optional[Job] = None

    @property
    def saved_ids(self) -> Tuple[str, ...]:
        return tuple(self._saved_ids)

    @property
    def count(self) -> int:
        return len(self._saved_ids)

    def visible_jobs(self) -> Tuple[Job, ...]:
        return self.snapshot.reconcile(self._saved_ids)

    def remove(self, job_id: str) -> None:
        self._saved_ids = [i for i in self._saved_ids if i != job_id]

    def toggle(self, job_id: str) -> bool:
        """Remove, or restore a job that came with the snapshot."""
        if job_id in self._saved_ids:
            self.remove(job_id)
            return False
        if self.snapshot.record(job_id) is None:
            raise UnknownJob(job_id)
        self._saved_ids.append(job_id)
        return True

    def request_apply(self, job_id: str) -> Job:
        job = self.snapshot.record(job_id)
        if job is None:
            raise UnknownJob(job_id)
        self._apply_for = job
        return job

    def close(self) -> SavedMerge:
        return SavedMerge(base=self.snapshot, saved_ids=self.saved_ids, apply_for=self._apply_for)
