"""
Application form validation and mock submission.

Validation is fail-fast: the first violated rule is reported, checked in
the order required fields, email, phone, cover letter.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .errors import (
    FormClosed,
    InvalidEmail,
    InvalidPhone,
    MissingCoverLetter,
    MissingField,
    ValidationError,
)
from .logger import get_logger
from .models import Application, Job

logger = get_logger()

PHONE_DIGITS = 11
REQUIRED_FIELDS = ("name", "email", "phone")
EDITABLE_FIELDS = ("name", "email", "phone", "cover_letter")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGITS = re.compile(r"\D")


def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value or "")


@dataclass(frozen=True)
class ApplicationDraft:
    name: str = ""
    email: str = ""
    phone: str = ""
    cover_letter: str = ""

    @property
    def is_empty(self) -> bool:
        return not any((self.name, self.email, self.phone, self.cover_letter))


@dataclass(frozen=True)
class ValidationResult:
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SubmissionResult:
    accepted: bool
    message: str
    error: Optional[ValidationError] = None
    application: Optional[Application] = None


def validate(draft: ApplicationDraft) -> ValidationResult:
    """Check a draft and return the first violated rule, if any."""
    values = {
        "name": draft.name.strip(),
        "email": draft.email.strip(),
        "phone": digits_only(draft.phone),
    }
    for f in REQUIRED_FIELDS:
        if not values[f]:
            return ValidationResult(MissingField(f))

    if not EMAIL_RE.match(values["email"]):
        return ValidationResult(InvalidEmail())

    if len(values["phone"]) != PHONE_DIGITS:
        return ValidationResult(InvalidPhone())

    if not draft.cover_letter.strip():
        return ValidationResult(MissingCoverLetter())

    return ValidationResult()


class FormState(str, Enum):
    EMPTY = "empty"
    EDITING = "editing"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"


class ApplicationForm:
    """Apply flow for a single job. Submitted and cancelled are terminal."""

    def __init__(self, job: Job):
        self.job = job
        self.draft = ApplicationDraft()
        self.state = FormState.EMPTY

    @property
    def closed(self) -> bool:
        return self.state in (FormState.SUBMITTED, FormState.CANCELLED)

    def update(self, field: str, value: str) -> ApplicationDraft:
        """Set one draft field. Phone input keeps digits only, as typed."""
        if self.closed:
            raise FormClosed(f"Application for {self.job.id} is already {self.state.value}")
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown application field: {field}")
        value = value or ""
        if field == "phone":
            value = digits_only(value)
        self.draft = replace(self.draft, **{field: value})
        self.state = FormState.EDITING
        return self.draft

    def set_name(self, value: str) -> ApplicationDraft:
        return self.update("name", value)

    def set_email(self, value: str) -> ApplicationDraft:
        return self.update("email", value)

    def set_phone(self, value: str) -> ApplicationDraft:
        return self.update("phone", value)

    def set_cover_letter(self, value: str) -> ApplicationDraft:
        return self.update("cover_letter", value)

    def validate(self) -> ValidationResult:
        return validate(self.draft)

    def submit(self) -> SubmissionResult:
        """Accept or reject the draft. A rejected draft is left as it was."""
        if self.closed:
            raise FormClosed(f"Application for {self.job.id} is already {self.state.value}")

        result = validate(self.draft)
        if not result.ok:
            self.state = FormState.EDITING
            logger.info("Application rejected", job_id=self.job.id, reason=result.error.code)
            return SubmissionResult(accepted=False, message=str(result.error), error=result.error)

        application = Application(
            job_id=self.job.id,
            name=self.draft.name.strip(),
            email=self.draft.email.strip(),
            phone=digits_only(self.draft.phone),
            cover_letter=self.draft.cover_letter.strip(),
        )
        self.draft = ApplicationDraft()
        self.state = FormState.SUBMITTED
        logger.info("Application submitted", job_id=self.job.id, application_id=application.id)
        return SubmissionResult(
            accepted=True,
            message=f"Application submitted for {self.job.title} at {self.job.company}",
            application=application,
        )

    def cancel(self) -> None:
        if self.closed:
            return
        self.draft = ApplicationDraft()
        self.state = FormState.CANCELLED
