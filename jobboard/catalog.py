from typing import Dict, Iterable, List, Optional, Tuple

from .models import Job


def matches_query(job: Job, query: str) -> bool:
    """Case-insensitive substring match on title or company."""
    q = query.lower()
    return q in job.title.lower() or q in job.company.lower()


class JobCatalog:
    """
    The fetched job listing plus the current search text.

    The visible projection is recomputed in full on every ``load`` and
    ``set_query``. That is O(n) per change, which is fine for listings capped
    at a few hundred jobs.
    """

    def __init__(self, jobs: Iterable[Job] = ()):
        self._all: Tuple[Job, ...] = ()
        self._by_id: Dict[str, Job] = {}
        self._query = ""
        self._visible: List[Job] = []
        self.load(jobs)

    @property
    def all_jobs(self) -> Tuple[Job, ...]:
        return self._all

    @property
    def query(self) -> str:
        return self._query

    def load(self, jobs: Iterable[Job]) -> None:
        """Replace the listing wholesale. The search text is kept."""
        self._all = tuple(jobs)
        self._by_id = {}
        for job in self._all:
            self._by_id.setdefault(job.id, job)
        self._recompute()

    def set_query(self, text: str) -> None:
        self._query = text or ""
        self._recompute()

    def visible_jobs(self) -> List[Job]:
        return list(self._visible)

    def get(self, job_id: str) -> Optional[Job]:
        return self._by_id.get(job_id)

    def _recompute(self) -> None:
        if not self._query:
            self._visible = list(self._all)
        else:
            self._visible = [job for job in self._all if matches_query(job, self._query)]

    def __len__(self) -> int:
        return len(self._all)
