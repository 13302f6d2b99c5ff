"""
Session orchestration: one catalog, one saved set, one apply flow at a time.

Refreshes are tagged with a monotonically increasing sequence number. Only
the response for the most recently dispatched refresh is applied, so a
slow, older response can never overwrite a newer listing.

``fetch_for`` does I/O only and may run on a worker thread; ``deliver``
mutates state and must be called by the session's owner.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from .application import ApplicationForm
from .catalog import JobCatalog
from .errors import FetchError, UnknownJob
from .logger import get_logger
from .models import Job
from .normalize import normalize_batch
from .saved import SavedJobsView, SavedMerge, SavedSet
from .storage import PersistenceBridge

logger = get_logger()

Fetcher = Callable[[], Sequence[Any]]


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class RefreshTicket:
    seq: int


@dataclass(frozen=True)
class RefreshResponse:
    ticket: RefreshTicket
    jobs: Sequence[Job] = ()
    error: Optional[FetchError] = None


class JobBoardSession:
    """
    Owner of all mutable client state.

    Args:
        fetcher: Callable returning raw jobs or raising FetchError
        bridge: Saved-jobs persistence; the saved set starts empty without one
        limit: Cap on normalized jobs per refresh
    """

    def __init__(self, fetcher: Fetcher, bridge: Optional[PersistenceBridge] = None, limit: Optional[int] = None):
        self.fetcher = fetcher
        self.limit = limit
        self.catalog = JobCatalog()
        self.saved = SavedSet.rehydrate(bridge) if bridge is not None else SavedSet()
        self.state = LoadState.IDLE
        self.error: Optional[FetchError] = None
        self._latest_seq = 0

    @property
    def can_retry(self) -> bool:
        return self.state == LoadState.ERROR

    def dispatch_refresh(self) -> RefreshTicket:
        self._latest_seq += 1
        self.state = LoadState.LOADING
        return RefreshTicket(self._latest_seq)

    def fetch_for(self, ticket: RefreshTicket) -> RefreshResponse:
        """Run the fetch and normalize the result. Touches no session state."""
        try:
            raw_jobs = self.fetcher()
        except FetchError as e:
            return RefreshResponse(ticket, error=e)
        return RefreshResponse(ticket, jobs=normalize_batch(raw_jobs, limit=self.limit))

    def deliver(self, response: RefreshResponse) -> bool:
        """Apply a refresh response if it belongs to the latest dispatch."""
        if response.ticket.seq != self._latest_seq:
            logger.record_stale_response()
            logger.info("Ignoring stale refresh response", seq=response.ticket.seq, latest=self._latest_seq)
            return False

        if response.error is not None:
            self.catalog.load(())
            self.error = response.error
            self.state = LoadState.ERROR
            logger.warning("No jobs available", error=str(response.error), kind=response.error.kind)
            return True

        self.catalog.load(response.jobs)
        self.saved.resolve(self.catalog.all_jobs)
        self.error = None
        self.state = LoadState.READY
        return True

    def refresh(self) -> bool:
        return self.deliver(self.fetch_for(self.dispatch_refresh()))

    def search(self, text: str) -> List[Job]:
        self.catalog.set_query(text)
        return self.catalog.visible_jobs()

    def job(self, job_id: str) -> Job:
        job = self.catalog.get(job_id)
        if job is None:
            raise UnknownJob(job_id)
        return job

    def toggle_saved(self, job_id: str) -> bool:
        return self.saved.toggle(self.job(job_id))

    def open_saved_view(self) -> SavedJobsView:
        return SavedJobsView(self.saved.snapshot())

    def return_from_saved(self, message: SavedMerge) -> Optional[ApplicationForm]:
        """Merge the saved view's changes; open the apply flow if it asked for one."""
        self.saved.merge(message)
        if message.apply_for is not None:
            return ApplicationForm(message.apply_for)
        return None

    def open_application(self, job_id: str) -> ApplicationForm:
        job = self.catalog.get(job_id)
        if job is None:
            # A saved job may no longer be in the current listing
            job = next((j for j in self.saved.records() if j.id == job_id), None)
        if job is None:
            raise UnknownJob(job_id)
        return ApplicationForm(job)
