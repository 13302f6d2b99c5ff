"""
Pytest configuration and shared fixtures.
"""

import os

# Keep test runs from writing log files into the working directory
os.environ.setdefault("JOBBOARD_LOG_FILE", "0")

import pytest
from typing import Any, Dict, List, Optional

from jobboard.models import Job
from jobboard.storage import PersistenceBridge


class MemoryStore:
    """In-memory byte store that can be told to fail."""

    def __init__(self, data: Optional[Dict[str, bytes]] = None):
        self.data = dict(data or {})
        self.writes = 0
        self.fail_reads = False
        self.fail_writes = False

    def get(self, key: str) -> Optional[bytes]:
        if self.fail_reads:
            raise OSError("disk unavailable")
        return self.data.get(key)

    def set(self, key: str, value: bytes) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.writes += 1
        self.data[key] = value


@pytest.fixture
def raw_batch() -> List[Dict[str, Any]]:
    """Two raw jobs: one nearly empty, one complete."""
    return [
        {"title": "Dev"},
        {"id": "7", "title": "Lead", "company": "Acme", "salary": 55000},
    ]


@pytest.fixture
def sample_jobs() -> List[Job]:
    """Canonical jobs for catalog and saved-set tests."""
    return [
        Job(id="1", title="Backend Engineer", company="Globex", salary="$120000"),
        Job(id="2", title="Frontend Developer", company="Acme Corp"),
        Job(id="3", title="Data Scientist", company="Initech", job_type="Full-time"),
        Job(id="4", title="Mobile Developer", company="Hooli", work_model="Remote"),
    ]


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def bridge(memory_store) -> PersistenceBridge:
    return PersistenceBridge(memory_store)
