"""
Normalization of upstream job payloads into canonical Job records.

Each field is decoded through an explicit table of accepted upstream keys
and a default, so a record with missing or malformed values still yields a
fully populated Job.
"""

from typing import Any, Iterable, List, Mapping, Optional, Tuple

from .errors import MalformedResponse
from .logger import get_logger
from .models import (
    Job,
    NO_SALARY,
    NO_TITLE,
    NOT_SPECIFIED,
    UNKNOWN_COMPANY,
    new_id,
)

logger = get_logger()

ENVELOPE_KEYS = ("jobs", "data")

# field -> (upstream keys tried in order, default)
FIELD_TABLE: Tuple[Tuple[str, Tuple[str, ...], Optional[str]], ...] = (
    ("title", ("title", "job_title", "position"), NO_TITLE),
    ("company", ("company", "company_name", "companyName"), UNKNOWN_COMPANY),
    ("job_type", ("jobType", "job_type", "employment_type", "type"), NOT_SPECIFIED),
    ("work_model", ("workModel", "work_model", "remote_type"), NOT_SPECIFIED),
    ("seniority", ("seniority", "seniorityLevel", "seniority_level", "level"), NOT_SPECIFIED),
    ("description", ("description", "summary"), None),
    ("location", ("location", "candidate_required_location", "city"), None),
)
ID_KEYS = ("id", "job_id", "jobId", "_id")
SALARY_KEYS = ("salary", "compensation", "salary_range")


def normalize_text(s: str) -> str:
    """Collapse internal whitespace runs and strip the ends."""
    return " ".join(s.split())


def _first_text(raw: Mapping[str, Any], keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str):
            text = normalize_text(value)
            if text:
                return text
    return None


def _decode_id(raw: Mapping[str, Any]) -> str:
    for key in ID_KEYS:
        value = raw.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return new_id()


def format_salary(value: Any) -> str:
    """Render an upstream salary as a display string.

    Numbers and non-blank strings are prefixed with ``$`` (integral floats
    lose their ``.0``); anything else maps to the sentinel.
    """
    if isinstance(value, bool):
        return NO_SALARY
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return NO_SALARY
        if value.is_integer():
            value = int(value)
        return f"${value}"
    if isinstance(value, int):
        return f"${value}"
    if isinstance(value, str):
        text = normalize_text(value)
        if not text:
            return NO_SALARY
        return text if text.startswith("$") else f"${text}"
    return NO_SALARY


def normalize(raw: Any) -> Job:
    """Convert one raw job into a canonical Job. Never raises."""
    if not isinstance(raw, Mapping):
        raw = {}

    fields = {name: (_first_text(raw, keys) or default) for name, keys, default in FIELD_TABLE}

    salary = NO_SALARY
    for key in SALARY_KEYS:
        if raw.get(key) is not None:
            salary = format_salary(raw[key])
            if salary != NO_SALARY:
                break

    return Job(id=_decode_id(raw), salary=salary, **fields)


def unwrap_envelope(payload: Any) -> List[Any]:
    """
    Extract the list of raw jobs from an upstream response body.

    Accepts a bare list, ``{"jobs": [...]}`` or ``{"data": [...]}``, tried in
    that order.

    Raises:
        MalformedResponse: for any other shape
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in ENVELOPE_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]
        raise MalformedResponse(
            f"No jobs found in the API response (keys: {sorted(str(k) for k in payload)[:10]})"
        )
    raise MalformedResponse(f"Unexpected response type: {type(payload).__name__}")


def normalize_batch(raw_jobs: Iterable[Any], limit: Optional[int] = None) -> List[Job]:
    """
    Normalize a batch of raw jobs, preserving fetch order.

    Non-mapping entries are skipped, and a record whose id repeats an
    earlier one in the batch is dropped so ids stay unique.
    """
    jobs: List[Job] = []
    seen = set()
    skipped = duplicates = 0

    for raw in raw_jobs:
        if limit is not None and len(jobs) >= limit:
            break
        if not isinstance(raw, Mapping):
            skipped += 1
            continue
        job = normalize(raw)
        if job.id in seen:
            duplicates += 1
            continue
        seen.add(job.id)
        jobs.append(job)

    if skipped or duplicates:
        logger.warning("Dropped raw jobs during normalization", skipped=skipped, duplicates=duplicates)
    logger.debug("Normalized job batch", count=len(jobs))
    return jobs
