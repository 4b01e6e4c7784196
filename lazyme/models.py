"""Data models for job postings and resumes."""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

MIN_DESCRIPTION_LENGTH = 50


class SiteType(str, Enum):
    LINKEDIN = "linkedin"
    INDEED = "indeed"
    GLASSDOOR = "glassdoor"
    MONSTER = "monster"
    ZIPRECRUITER = "ziprecruiter"
    GENERIC = "generic"


@dataclass(frozen=True)
class JobPosting:
    title: str
    company_name: str
    description: str
    source_url: str = ""
    site_type: SiteType = SiteType.GENERIC
    location: str = ""

    def is_usable(self) -> bool:
        return bool(self.title) and len(self.description or "") >= MIN_DESCRIPTION_LENGTH

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "companyName": self.company_name,
            "description": self.description,
            "sourceUrl": self.source_url,
            "siteType": self.site_type.value,
            "location": self.location,
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TailoredResume:
    company: str
    job_title: str
    job_description: str
    resume_document: str
    created_at: datetime = field(default_factory=_now)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:24])

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "company": self.company,
            "jobTitle": self.job_title,
            "jobDescription": self.job_description,
            "resume": self.resume_document,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TailoredResume":
        return cls(
            id=data["id"],
            company=data.get("company", ""),
            job_title=data.get("jobTitle", ""),
            job_description=data.get("jobDescription", ""),
            resume_document=data.get("resume", ""),
            created_at=datetime.fromisoformat(data["createdAt"]),
        )


@dataclass
class UserRecord:
    email: str
    name: str = ""
    master_document: str = ""
    resumes: list[TailoredResume] = field(default_factory=list)


@dataclass
class ExtractionAttempt:
    """Per-call retry bookkeeping; never persisted."""

    budget_ms: int
    attempt: int = 0
    last_error: str | None = None
    started_at: float = field(default_factory=time.monotonic)

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)

    def remaining_ms(self) -> int:
        return max(0, self.budget_ms - self.elapsed_ms())

    def expired(self) -> bool:
        return self.elapsed_ms() >= self.budget_ms
