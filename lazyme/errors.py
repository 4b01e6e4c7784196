"""Typed pipeline failures and their user-facing mapping."""
from __future__ import annotations

import json
import re
from typing import Any


class ErrorKind:
    INVALID_INPUT = "invalid_input"
    INVALID_URL = "invalid_url"
    INVALID_URL_FORMAT = "invalid_url_format"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    BROWSER_MISSING = "browser_missing"
    EXTRACTION_FAILED = "extraction_failed"
    DESCRIPTION_MISSING = "description_missing"
    INVALID_MASTER_RESUME = "invalid_master_resume"
    MASTER_RESUME_MISSING = "master_resume_missing"
    INVALID_GENERATED_RESUME = "invalid_generated_resume"
    RESUME_GENERATION_FAILED = "resume_generation_failed"
    PDF_GENERATION_FAILED = "pdf_generation_failed"
    AUTH_ERROR = "auth_error"
    USER_NOT_FOUND = "user_not_found"
    RESUME_NOT_FOUND = "resume_not_found"
    UNKNOWN = "unknown_error"


HTTP_STATUS: dict[str, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.INVALID_URL: 400,
    ErrorKind.INVALID_URL_FORMAT: 400,
    ErrorKind.INVALID_MASTER_RESUME: 400,
    ErrorKind.AUTH_ERROR: 401,
    ErrorKind.MASTER_RESUME_MISSING: 404,
    ErrorKind.USER_NOT_FOUND: 404,
    ErrorKind.RESUME_NOT_FOUND: 404,
    ErrorKind.EXTRACTION_FAILED: 422,
    ErrorKind.DESCRIPTION_MISSING: 422,
    ErrorKind.NETWORK_ERROR: 503,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.BROWSER_MISSING: 500,
    ErrorKind.INVALID_GENERATED_RESUME: 500,
    ErrorKind.RESUME_GENERATION_FAILED: 500,
    ErrorKind.PDF_GENERATION_FAILED: 500,
    ErrorKind.UNKNOWN: 500,
}


class PipelineError(Exception):
    """Failure with a stable ``kind`` discriminant callers can branch on."""

    default_kind = ErrorKind.UNKNOWN

    def __init__(
        self,
        kind: str | None = None,
        message: str = "",
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.kind = kind or self.default_kind
        self.message = message or "An unexpected error occurred. Please try again."
        self.details = details or {}
        super().__init__(self.message)

    @property
    def status(self) -> int:
        return HTTP_STATUS.get(self.kind, 500)

    def to_payload(self) -> dict[str, Any]:
        payload = {"error": self.message, "errorType": self.kind}
        payload.update(self.details)
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind!r}, {self.message!r})"


class ExtractionError(PipelineError):
    default_kind = ErrorKind.EXTRACTION_FAILED


class TailoringError(PipelineError):
    default_kind = ErrorKind.RESUME_GENERATION_FAILED


class AuthError(PipelineError):
    default_kind = ErrorKind.AUTH_ERROR


class RenderError(PipelineError):
    default_kind = ErrorKind.PDF_GENERATION_FAILED

    def __init__(self, message: str = "", *, retryable: bool = False, **kwargs: Any) -> None:
        super().__init__(ErrorKind.PDF_GENERATION_FAILED, message, **kwargs)
        self.retryable = retryable


# ── Display sanitization ─────────────────────────────────────────────────

MAX_ERROR_LENGTH = 200

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_PREFIX_RE = re.compile(r"^(resume generation failed|failed)\s*:\s*", re.IGNORECASE)
_CSS_RE = re.compile(r"\bbody\s*\{", re.IGNORECASE)
_MEDIA_RE = re.compile(r"@media", re.IGNORECASE)


def _strip_markup(text: str) -> str:
    return _WS_RE.sub(" ", _TAG_RE.sub(" ", text)).strip()


def sanitize_error_text(raw: str | None) -> str:
    """Pull a message out of an upstream error body.

    JSON bodies yield their ``error`` or ``message`` field. Whatever comes
    out is stripped of markup and whitespace-collapsed.
    """
    if not raw or not isinstance(raw, str):
        return ""
    trimmed = raw.strip()
    if not trimmed:
        return ""
    try:
        parsed = json.loads(trimmed)
    except ValueError:
        parsed = None
    if isinstance(parsed, str):
        return _strip_markup(parsed)
    if isinstance(parsed, dict):
        for key in ("error", "message"):
            if parsed.get(key):
                return _strip_markup(str(parsed[key]))
    return _strip_markup(trimmed)


def refine_error_text(message: str | None, limit: int = MAX_ERROR_LENGTH) -> str:
    """Collapse repeated "failed:" prefixes, cut trailing CSS, bound length."""
    if not message:
        return ""
    result = message.strip()
    while _PREFIX_RE.match(result):
        result = _PREFIX_RE.sub("", result, count=1).strip()
    for pattern in (_CSS_RE, _MEDIA_RE):
        m = pattern.search(result)
        if m:
            result = result[: m.start()].strip()
    result = re.sub(r"\s{2,}", " ", result).strip()
    return result[:limit].strip()


def display_message(raw: str | None, status: int | None = None) -> str:
    """Clean message for the user, prefixed once with the HTTP status."""
    refined = refine_error_text(sanitize_error_text(raw))
    base = f"{status} {refined}".strip() if status is not None else refined
    if base and not base.endswith("."):
        base += "."
    return f"Resume generation failed: {base}" if base else "Resume generation failed."
