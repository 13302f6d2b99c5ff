"""Canonical records shared by the catalog, saved set and application flow."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
import uuid

NO_TITLE = "No Title"
UNKNOWN_COMPANY = "Unknown Company"
NO_SALARY = "Salary not disclosed"
NOT_SPECIFIED = "Not specified"
NO_DESCRIPTION = "No description provided"
NO_LOCATION = "Location not specified"


def new_id() -> str:
    """Fresh random id; never derived from record content."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Job:
    """
    A normalized job posting.

    Set operations (saving, de-duplication) compare jobs by ``id`` only;
    ``==`` compares every field.
    """

    id: str
    title: str = NO_TITLE
    company: str = UNKNOWN_COMPANY
    salary: str = NO_SALARY
    job_type: str = NOT_SPECIFIED
    work_model: str = NOT_SPECIFIED
    seniority: str = NOT_SPECIFIED
    description: Optional[str] = None
    location: Optional[str] = None

    @property
    def display_description(self) -> str:
        return self.description or NO_DESCRIPTION

    @property
    def display_location(self) -> str:
        return self.location or NO_LOCATION

    def to_dict(self) -> Dict[str, Any]:
        """Persisted form, keyed the way the upstream API names fields."""
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "salary": self.salary,
            "jobType": self.job_type,
            "workModel": self.work_model,
            "seniority": self.seniority,
            "description": self.description,
            "location": self.location,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Job":
        """Rebuild a canonical Job from ``to_dict`` output.

        Unlike ``normalize`` this does not format the salary again. Bad or
        missing values fall back to the same defaults.
        """
        def text(key: str, default: Optional[str]) -> Optional[str]:
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            return default

        return cls(
            id=text("id", None) or new_id(),
            title=text("title", NO_TITLE),
            company=text("company", UNKNOWN_COMPANY),
            salary=text("salary", NO_SALARY),
            job_type=text("jobType", NOT_SPECIFIED),
            work_model=text("workModel", NOT_SPECIFIED),
            seniority=text("seniority", NOT_SPECIFIED),
            description=text("description", None),
            location=text("location", None),
        )


@dataclass(frozen=True)
class Application:
    """An accepted mock application."""

    job_id: str
    name: str
    email: str
    phone: str
    cover_letter: str
    id: str = field(default_factory=new_id)
    applied_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
