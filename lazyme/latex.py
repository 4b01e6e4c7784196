"""Structural checks and best-effort repair for LaTeX documents.

No compiler is involved: validation only looks at brace balance, the
presence of command tokens and per-name environment balance.
"""
from __future__ import annotations

import re
from collections import Counter

from lazyme.errors import ErrorKind, PipelineError
from lazyme.log import get_logger

log = get_logger(__name__)

_COMMAND_RE = re.compile(r"\\[a-zA-Z]+(?:\{|\s|$)")
_ENV_RE = re.compile(r"\\(begin|end)\{([a-zA-Z0-9*]+)\}")

SUSPICIOUS_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("empty \\usepackage", re.compile(r"\\usepackage\s*\{\s*\}")),
    ("empty environment name", re.compile(r"\\begin\s*\{\s*\}")),
    ("empty section title", re.compile(r"\\section\s*\{\s*\}")),
    ("empty citation", re.compile(r"\\cite\s*\{\s*\}")),
]

_MONTHS = (
    r"Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|Jul(?:y)?|"
    r"Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?"
)
_DATE_RE = re.compile(
    rf"\b(?:(?:{_MONTHS})\.?\s+\d{{4}}|\d{{1,2}}/\d{{4}}|(?:19|20)\d{{2}}|Present)\b"
)


def _brace_depths(doc: str) -> tuple[int, bool]:
    """Final depth, and whether the running depth ever went negative."""
    depth = 0
    went_negative = False
    for ch in doc:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                went_negative = True
    return depth, went_negative


def quick_validate(doc: str) -> bool:
    if not doc or not isinstance(doc, str) or not doc.strip():
        return False

    depth, went_negative = _brace_depths(doc)
    if went_negative or depth != 0:
        return False

    if not _COMMAND_RE.search(doc):
        return False

    # Per-name counters in document order. Interleaved names such as
    # begin A, begin B, end A, end B still pass.
    open_envs: Counter[str] = Counter()
    for kind, name in _ENV_RE.findall(doc):
        if kind == "begin":
            open_envs[name] += 1
        else:
            if open_envs[name] == 0:
                return False
            open_envs[name] -= 1
    return not any(open_envs.values())


def validate(doc: str) -> bool:
    """quick_validate, plus warnings for constructs that compile badly."""
    if not quick_validate(doc):
        return False
    for label, pattern in SUSPICIOUS_PATTERNS:
        if pattern.search(doc):
            log.warning("Suspicious LaTeX construct: %s", label)
    return True


def repair(doc: str) -> str:
    """Close unclosed braces and environments at the end of the document.

    Never raises. Orphan closers and misordered environments are left alone,
    so callers must re-run ``quick_validate`` on the result.
    """
    if not doc:
        return ""
    result = doc

    depth, _ = _brace_depths(result)
    if depth > 0:
        result += "}" * depth

    begins = [name for kind, name in _ENV_RE.findall(result) if kind == "begin"]
    unmatched_ends = Counter(name for kind, name in _ENV_RE.findall(result) if kind == "end")
    closers: list[str] = []
    for name in reversed(begins):
        if unmatched_ends[name] > 0:
            unmatched_ends[name] -= 1
        else:
            closers.append(f"\\end{{{name}}}")
    if closers:
        log.debug("Appending %d environment closer(s)", len(closers))
        result += "".join(closers)
    return result


def looks_like_document(doc: str) -> bool:
    return "\\documentclass" in doc or "\\begin{document}" in doc


def extract_dates(doc: str) -> set[str]:
    """Date-like tokens (``Jan 2020``, ``05/2019``, ``2018``, ``Present``)."""
    return {re.sub(r"\s+", " ", m.group(0)) for m in _DATE_RE.finditer(doc or "")}


def strip_code_fence(text: str) -> str:
    """Remove a ```latex ... ``` wrapper around model output."""
    body = (text or "").strip()
    if body.startswith("```"):
        body = re.sub(r"^```[a-zA-Z]*[ \t]*\n?", "", body)
        body = re.sub(r"\n?```\s*$", "", body)
    return body.strip()


def decode_document(data: bytes) -> str:
    """Decode an uploaded ``.tex`` file; a UTF-8 BOM is dropped."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise PipelineError(
            ErrorKind.INVALID_INPUT,
            "The uploaded file is not UTF-8 text. Save it as UTF-8 and upload again.",
        ) from exc
