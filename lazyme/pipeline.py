"""
Resume generation pipeline.

Runs: user lookup → master check → job extraction → tailoring → save → PDF.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from lazyme.errors import ErrorKind, ExtractionError, PipelineError, RenderError
from lazyme.extractors.base import JobExtractorBase
from lazyme.extractors.headless import validate_job_url
from lazyme.latex import quick_validate
from lazyme.log import get_logger
from lazyme.models import MIN_DESCRIPTION_LENGTH, TailoredResume, UserRecord
from lazyme.renderer import RenderResult, render_pdf
from lazyme.store import ResumeStore
from lazyme.tailor import TailoringOrchestrator

log = get_logger(__name__)

Renderer = Callable[[str], RenderResult]

_UNSAFE_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


@dataclass
class GenerationResult:
    resume_id: str
    resume: TailoredResume
    pdf: RenderResult | None
    filename: str


def build_pdf_filename(company: str, title: str) -> str:
    company = _UNSAFE_RE.sub("_", company or "Company")
    title = _UNSAFE_RE.sub("_", title or "Resume")
    return f"resume_{company}_{title}.pdf"


def _load_master(store: ResumeStore, email: str) -> tuple[UserRecord, str]:
    user = store.find_user(email)
    if user is None:
        raise PipelineError(ErrorKind.USER_NOT_FOUND, "User not found")
    if not user.master_document:
        raise PipelineError(
            ErrorKind.MASTER_RESUME_MISSING,
            "Master resume not found. Please create a master resume before generating custom resumes.",
        )
    if not quick_validate(user.master_document):
        raise PipelineError(
            ErrorKind.INVALID_MASTER_RESUME,
            "Master resume contains invalid LaTeX. Please fix your master resume before "
            "generating custom resumes.",
        )
    return user, user.master_document


def _tailor_save_render(
    store: ResumeStore,
    email: str,
    master: str,
    *,
    title: str,
    company: str,
    description: str,
    orchestrator: TailoringOrchestrator,
    renderer: Renderer | None,
) -> GenerationResult:
    document = orchestrator.tailor(master, title, description)

    resume = TailoredResume(
        company=company or "Unknown Company",
        job_title=title,
        job_description=description,
        resume_document=document,
    )
    resume_id = store.append_tailored_resume(email, resume)
    filename = build_pdf_filename(company, title)

    pdf = None
    if renderer is not None:
        try:
            pdf = renderer(document)
        except RenderError as exc:
            log.error("PDF generation failed for saved resume %s: %s", resume_id, exc.message)
            raise PipelineError(
                ErrorKind.PDF_GENERATION_FAILED,
                f"Failed to generate PDF: {exc.message}",
                details={"resumeId": resume_id, "retryable": exc.retryable},
            ) from exc

    log.info("Generated resume %s → %s", resume_id, filename)
    return GenerationResult(resume_id=resume_id, resume=resume, pdf=pdf, filename=filename)


def generate_from_url(
    store: ResumeStore,
    email: str,
    url: str,
    *,
    extractor: JobExtractorBase,
    orchestrator: TailoringOrchestrator,
    renderer: Renderer | None = render_pdf,
    timeout_ms: int | None = None,
) -> GenerationResult:
    _, master = _load_master(store, email)
    url = validate_job_url(url)

    log.info("Step 1: extracting job data from %s", url)
    job = extractor.extract(url, timeout_ms=timeout_ms)
    if job is None or not job.title or job.title == "Unknown Title":
        raise ExtractionError(
            ErrorKind.EXTRACTION_FAILED,
            "We couldn't fetch job details from this link. The job title could not be "
            "extracted. Please verify the URL or enter the details manually.",
        )
    if len(job.description or "") < MIN_DESCRIPTION_LENGTH:
        raise ExtractionError(
            ErrorKind.DESCRIPTION_MISSING,
            "Unable to locate job description. The job posting may require authentication "
            "or the description may be missing. Please enter the details manually.",
        )

    log.info("Step 2: tailoring for %s @ %s", job.title, job.company_name)
    return _tailor_save_render(
        store, email, master,
        title=job.title,
        company=job.company_name,
        description=job.description,
        orchestrator=orchestrator,
        renderer=renderer,
    )


def generate_from_fields(
    store: ResumeStore,
    email: str,
    *,
    title: str,
    company: str,
    description: str,
    orchestrator: TailoringOrchestrator,
    renderer: Renderer | None = render_pdf,
) -> GenerationResult:
    _, master = _load_master(store, email)
    if not (title or "").strip() or not (description or "").strip():
        raise PipelineError(ErrorKind.INVALID_INPUT, "Job title and job description are required.")
    return _tailor_save_render(
        store, email, master,
        title=title.strip(),
        company=(company or "").strip(),
        description=description.strip(),
        orchestrator=orchestrator,
        renderer=renderer,
    )
