"""Background coordinator: answers typed requests from the popup side."""
from __future__ import annotations

import time
from typing import Any, Callable

import requests

from lazyme.bridge.api import BackendClient
from lazyme.bridge.messages import (
    Ack,
    ClearResumeCache,
    ErrorResponse,
    ExtractJobContent,
    GenerateTailoredResume,
    GetResumeStatus,
    GetSessionStatus,
    JobContent,
    Logout,
    Request,
    Response,
    ResumeGenerated,
    ResumeStatus,
    SessionStatus,
)
from lazyme.bridge.session import SessionManager
from lazyme.errors import ErrorKind, PipelineError
from lazyme.extractors.canonical import (
    is_search_results_url,
    normalize_linkedin_job_url,
    rescan_in_main_world,
)
from lazyme.extractors.in_page import InPageJobExtractor
from lazyme.log import get_logger
from lazyme.models import JobPosting

log = get_logger(__name__)

RESUME_STATUS_MAX_AGE_S = 24 * 60 * 60
READY_POLL_INTERVAL_S = 0.1


class BackgroundCoordinator:
    def __init__(
        self,
        session: SessionManager,
        client: BackendClient,
        *,
        page_provider: Callable[[], Any] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session = session
        self.client = client
        # Returns the active tab's Playwright page, or None.
        self.page_provider = page_provider
        self.clock = clock
        self._status_cache: tuple[float, ResumeStatus] | None = None
        self._handlers: dict[type, Callable[[Any], Response]] = {
            GetSessionStatus: self._session_status,
            Logout: self._logout,
            GenerateTailoredResume: self._generate,
            ExtractJobContent: self._extract,
            GetResumeStatus: self._resume_status,
            ClearResumeCache: self._clear_cache,
        }

    def start(self) -> None:
        self.session.init()
        self.clear_resume_cache()
        log.info("Coordinator ready (authenticated=%s)", self.session.is_authenticated)

    def handle(self, request: Request) -> Response:
        handler = self._handlers[type(request)]
        try:
            return handler(request)
        except PipelineError as exc:
            log.error("%s failed [%s]: %s", request.type, exc.kind, exc.message)
            return ErrorResponse(exc.message, exc.kind, exc.details)
        except requests.RequestException as exc:
            log.error("%s network failure: %s", request.type, exc)
            return ErrorResponse(
                "Network error. Please check your connection and try again.",
                ErrorKind.NETWORK_ERROR,
            )

    # ── handlers ────────────────────────────────────────────────────────

    def _session_status(self, _: GetSessionStatus) -> SessionStatus:
        if not self.session.is_ready:
            return SessionStatus(is_ready=False)
        return SessionStatus(
            is_ready=True,
            is_authenticated=self.session.is_authenticated,
            has_token=bool(self.session.session_token),
            user_info=self.session.user_info,
        )

    def _logout(self, _: Logout) -> Ack:
        self.session.clear()
        self.clear_resume_cache()
        return Ack()

    def _generate(self, request: GenerateTailoredResume) -> ResumeGenerated:
        if not self.session.session_token:
            raise PipelineError(ErrorKind.AUTH_ERROR, "Authentication required to generate resume")
        blob = self.client.generate_resume(
            self.session.session_token,
            {"url": request.url, "title": request.title, "description": request.description},
        )
        log.info("Resume received: %s (%d bytes, %s)", blob.filename, len(blob.data), blob.source)
        return ResumeGenerated(blob)

    def _extract(self, _: ExtractJobContent) -> JobContent:
        page = self.page_provider() if self.page_provider else None
        if page is None:
            return JobContent(job=None)
        extractor = InPageJobExtractor.from_page(page)
        job = extractor.extract_current()
        return JobContent(job=job, url=job.source_url if job else extractor.job_url())

    def _resume_status(self, _: GetResumeStatus) -> ResumeStatus:
        if not self.session.session_token:
            raise PipelineError(ErrorKind.AUTH_ERROR, "No session token available")
        if self._status_cache is not None:
            stamp, status = self._status_cache
            if self.clock() - stamp < RESUME_STATUS_MAX_AGE_S:
                return ResumeStatus(
                    exists=status.exists,
                    file_name=status.file_name,
                    file_size=status.file_size,
                    file_type=status.file_type,
                    from_cache=True,
                )
        data = self.client.resume_status(self.session.session_token)
        status = ResumeStatus(
            exists=bool(data.get("exists")),
            file_name=data.get("fileName"),
            file_size=int(data.get("fileSize") or 0),
            file_type=data.get("fileType") or "text/plain",
        )
        self._status_cache = (self.clock(), status)
        return status

    def _clear_cache(self, _: ClearResumeCache) -> Ack:
        self.clear_resume_cache()
        return Ack()

    def clear_resume_cache(self) -> None:
        self._status_cache = None


def wait_until_ready(
    coordinator: BackgroundCoordinator,
    *,
    interval: float = READY_POLL_INTERVAL_S,
    sleep: Callable[[float], None] = time.sleep,
) -> SessionStatus:
    """Poll GetSessionStatus until the coordinator reports ready; never gives up."""
    while True:
        response = coordinator.handle(GetSessionStatus())
        if isinstance(response, SessionStatus) and response.is_ready:
            return response
        sleep(interval)


def resolve_job_url(
    job_content: JobPosting | dict[str, Any] | None,
    active_url: str | None,
    tab=None,
) -> tuple[str | None, str]:
    """Canonical job URL for generation, and where it came from."""
    if isinstance(job_content, JobPosting):
        content = {"url": job_content.source_url}
    else:
        content = job_content or {}

    candidates = [
        (content.get("url"), "job-content-url"),
        (content.get("rawUrl"), "job-content-raw-url"),
        (content.get("sourceUrl"), "job-content-source-url"),
        (active_url, "active-tab-url"),
    ]
    for value, source in candidates:
        normalized = normalize_linkedin_job_url(value)
        if normalized:
            return normalized, source

    if tab is not None and is_search_results_url(active_url):
        found = rescan_in_main_world(tab)
        if found:
            return found, "dom-extraction"

    return None, "unresolved"
