"""Backend calls made on behalf of the extension."""
from __future__ import annotations

import base64
import binascii
import json
import re
from datetime import datetime, timezone
from typing import Any
from urllib.parse import unquote, urlparse

import requests

from lazyme.bridge.messages import ResumeBlob
from lazyme.config import api_base_url, load_settings
from lazyme.errors import ErrorKind, PipelineError, display_message, refine_error_text, sanitize_error_text
from lazyme.log import get_logger
from lazyme.retry import retry

log = get_logger(__name__)

ENDPOINTS = {
    "user": "/extension/user",
    "users": "/users",
    "tailored_resume": "/extension/resume/generate-from-linkedin",
}

_DISPOSITION_RE = re.compile(r"filename\*?=(?:UTF-8'')?[\"']?([^\"';]+)[\"']?", re.IGNORECASE)
_SLUG_RE = re.compile(r"[^a-z0-9]+")
_DATA_URL_RE = re.compile(r"^data:.*?;base64,")

__all__ = [
    "BackendClient", "ResumeBlob",
    "build_resume_filename", "decode_base64", "filename_from_disposition",
    "refine_error_text", "sanitize_error_text",
]


def filename_from_disposition(header: str | None) -> str | None:
    if not header or not isinstance(header, str):
        return None
    m = _DISPOSITION_RE.search(header)
    if not m:
        return None
    return unquote(m.group(1))


def _slug(text: str) -> str:
    return _SLUG_RE.sub("-", text.lower().strip()).strip("-")[:60]


def build_resume_filename(job: dict[str, Any] | None, fallback: str = "tailored-resume.pdf") -> str:
    """``<title-slug>-resume.pdf``, else the last URL path segment, else ``fallback``."""
    job = job or {}
    if job.get("title"):
        slug = _slug(str(job["title"]))
        if slug:
            return f"{slug}-resume.pdf"
    if job.get("url"):
        segments = [s for s in urlparse(job["url"]).path.split("/") if s and s != "jobs"]
        if segments:
            slug = _slug(segments[-1])
            if slug:
                return f"{slug}-resume.pdf"
    return fallback


def decode_base64(content: str) -> bytes:
    normalized = _DATA_URL_RE.sub("", content.strip())
    try:
        return base64.b64decode(normalized, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise PipelineError(
            ErrorKind.RESUME_GENERATION_FAILED,
            "Resume generation response carried malformed base64 content",
        ) from exc


def _error_kind(status: int, body: str) -> str:
    if status == 401:
        return ErrorKind.AUTH_ERROR
    try:
        kind = json.loads(body).get("errorType")
    except (ValueError, AttributeError):
        kind = None
    return kind or ErrorKind.RESUME_GENERATION_FAILED


class BackendClient:
    def __init__(
        self,
        settings: dict | None = None,
        *,
        session: requests.Session | None = None,
        timeout: int = 30,
    ) -> None:
        self.settings = settings or load_settings()
        self.base = api_base_url(self.settings)
        self.http = session or requests.Session()
        self.timeout = timeout
        self.cookie_name = self.settings["session"]["cookie_name"]

    @retry(max_attempts=3, base_delay=1.0, retryable=(requests.ConnectionError, requests.Timeout))
    def _get(self, path_or_url: str, **kwargs) -> requests.Response:
        url = path_or_url if path_or_url.startswith("http") else self.base + path_or_url
        return self.http.get(url, timeout=self.timeout, **kwargs)

    # POST is not idempotent; only a refused connection is retried.
    @retry(max_attempts=2, base_delay=1.0, retryable=(requests.ConnectionError,))
    def _post(self, path: str, **kwargs) -> requests.Response:
        return self.http.post(self.base + path, timeout=self.timeout, **kwargs)

    def fetch_user(self, token: str) -> dict[str, Any] | None:
        """User behind ``token``; the extension endpoint first, then /users via cookie."""
        try:
            r = self._get(ENDPOINTS["user"], headers={"Authorization": f"Bearer {token}"})
            if r.ok:
                return r.json()
            log.warning("Extension user API failed: %d", r.status_code)
            r = self._get(ENDPOINTS["users"], headers={"Cookie": f"{self.cookie_name}={token}"})
            if r.ok:
                return r.json()
            log.error("Users API also failed: %d", r.status_code)
        except (requests.RequestException, ValueError) as exc:
            log.error("User lookup failed: %s", exc)
        return None

    def resume_status(self, token: str) -> dict[str, Any]:
        r = self._get(ENDPOINTS["users"], headers={"Cookie": f"{self.cookie_name}={token}"})
        if not r.ok:
            log.error("Users API failed for resume status: %d", r.status_code)
            return {"exists": False}
        user = (r.json() or {}).get("user") or {}
        master = user.get("masterResume")
        if not master:
            return {"exists": False}
        stem = (user.get("email") or "user").split("@")[0]
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        return {
            "exists": True,
            "fileName": f"master_resume_{stem}_{stamp}.txt",
            "fileSize": len(master),
            "fileType": "text/plain",
        }

    def generate_resume(self, token: str, job: dict[str, Any]) -> ResumeBlob:
        """Tailor for ``job["url"]`` and return the PDF, whatever shape it arrives in."""
        if not token:
            raise PipelineError(ErrorKind.AUTH_ERROR, "Authentication required to generate resume")
        url = job.get("url")
        if not url:
            raise PipelineError(ErrorKind.INVALID_INPUT, "LinkedIn job URL is required to generate resume")

        r = self._post(
            ENDPOINTS["tailored_resume"],
            json={"linkedInUrl": url, "url": url},
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/pdf, application/json",
            },
        )
        log.info("Tailored resume response: %d %s", r.status_code, r.headers.get("Content-Type", ""))

        if not r.ok:
            raise PipelineError(_error_kind(r.status_code, r.text), display_message(r.text, r.status_code))

        if "application/pdf" in r.headers.get("Content-Type", ""):
            return ResumeBlob(
                filename=filename_from_disposition(r.headers.get("Content-Disposition"))
                or build_resume_filename(job),
                content_type="application/pdf",
                data=r.content,
                source="api-direct",
                job_url=url,
            )

        try:
            data = r.json()
        except ValueError:
            data = {"error": "Invalid JSON response"}
        payload = (data.get("resume") or data) if isinstance(data, dict) else {}

        if payload.get("downloadUrl"):
            d = self._get(payload["downloadUrl"], headers={"Cookie": f"{self.cookie_name}={token}"})
            if not d.ok:
                raise PipelineError(
                    ErrorKind.RESUME_GENERATION_FAILED,
                    f"Failed to download resume: {d.status_code}",
                )
            return ResumeBlob(
                filename=payload.get("fileName") or build_resume_filename(job),
                content_type=d.headers.get("Content-Type") or "application/pdf",
                data=d.content,
                source="api-download-url",
                job_url=url,
            )

        encoded = payload.get("base64") or payload.get("pdfBase64") or payload.get("data")
        if encoded:
            return ResumeBlob(
                filename=payload.get("fileName") or build_resume_filename(job),
                content_type=payload.get("contentType") or payload.get("mimeType") or "application/pdf",
                data=decode_base64(encoded),
                source="api-base64",
                job_url=url,
            )

        raise PipelineError(
            ErrorKind.RESUME_GENERATION_FAILED,
            "Resume generation response did not include a PDF payload",
        )
