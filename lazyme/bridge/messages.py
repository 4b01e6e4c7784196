"""Request/response protocol between the popup side and the coordinator."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from lazyme.errors import ErrorKind, PipelineError
from lazyme.models import JobPosting


# ── Requests ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GetSessionStatus:
    type = "GET_SESSION_STATUS"


@dataclass(frozen=True)
class Logout:
    type = "LOGOUT"


@dataclass(frozen=True)
class GenerateTailoredResume:
    type = "GENERATE_TAILORED_RESUME"
    url: str
    title: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ExtractJobContent:
    type = "EXTRACT_JOB_CONTENT"


@dataclass(frozen=True)
class GetResumeStatus:
    type = "GET_RESUME_STATUS"


@dataclass(frozen=True)
class ClearResumeCache:
    type = "CLEAR_RESUME_CACHE"


Request = Union[
    GetSessionStatus, Logout, GenerateTailoredResume,
    ExtractJobContent, GetResumeStatus, ClearResumeCache,
]


# ── Responses ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SessionStatus:
    is_ready: bool
    is_authenticated: bool = False
    has_token: bool = False
    user_info: dict[str, Any] | None = None


@dataclass(frozen=True)
class ResumeBlob:
    filename: str
    content_type: str
    data: bytes
    source: str
    job_url: str | None = None


@dataclass(frozen=True)
class ResumeGenerated:
    blob: ResumeBlob


@dataclass(frozen=True)
class JobContent:
    job: JobPosting | None
    url: str | None = None


@dataclass(frozen=True)
class ResumeStatus:
    exists: bool
    file_name: str | None = None
    file_size: int = 0
    file_type: str = "text/plain"
    from_cache: bool = False


@dataclass(frozen=True)
class Ack:
    success: bool = True


@dataclass(frozen=True)
class ErrorResponse:
    error: str
    kind: str = ErrorKind.UNKNOWN
    details: dict[str, Any] = field(default_factory=dict)


Response = Union[SessionStatus, ResumeGenerated, JobContent, ResumeStatus, Ack, ErrorResponse]


_SIMPLE: dict[str, type] = {
    cls.type: cls
    for cls in (GetSessionStatus, Logout, ExtractJobContent, GetResumeStatus, ClearResumeCache)
}


def parse_message(payload: dict[str, Any]) -> Request:
    """Typed request from a loose ``{"type": ..., ...}`` payload."""
    if not isinstance(payload, dict):
        raise PipelineError(ErrorKind.INVALID_INPUT, "Message must be an object")
    kind = payload.get("type")
    if kind in _SIMPLE:
        return _SIMPLE[kind]()
    if kind == GenerateTailoredResume.type:
        job = payload.get("jobData") or {}
        url = job.get("url") if isinstance(job, dict) else None
        if not url or not isinstance(url, str):
            raise PipelineError(
                ErrorKind.INVALID_INPUT,
                "LinkedIn job URL is required to generate a resume",
            )
        return GenerateTailoredResume(
            url=url,
            title=job.get("title") or None,
            description=job.get("description") or None,
        )
    raise PipelineError(ErrorKind.INVALID_INPUT, f"Unknown message type: {kind!r}")
