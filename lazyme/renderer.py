"""LaTeX to PDF.

Local ``pdflatex`` first; the latexonline.cc compile service otherwise.
"""
from __future__ import annotations

import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

import requests

from lazyme.config import load_settings
from lazyme.errors import RenderError
from lazyme.latex import looks_like_document
from lazyme.log import get_logger

log = get_logger(__name__)

TEXLIVE = "texlive"
EXTERNAL = "external"


@dataclass(frozen=True)
class RenderResult:
    pdf_bytes: bytes
    method: str


def _render_local(document: str, timeout_s: int) -> bytes:
    if not shutil.which("pdflatex"):
        raise RenderError("pdflatex is not installed", retryable=True)

    with tempfile.TemporaryDirectory(prefix="latex-compile-") as tmp:
        tex_file = Path(tmp) / "resume.tex"
        pdf_file = Path(tmp) / "resume.pdf"
        tex_file.write_text(document, encoding="utf-8")
        try:
            subprocess.run(
                ["pdflatex", "-interaction=nonstopmode", f"-output-directory={tmp}", str(tex_file)],
                cwd=tmp,
                capture_output=True,
                timeout=timeout_s,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise RenderError(f"pdflatex timed out after {timeout_s} seconds", retryable=True) from exc
        if not pdf_file.exists():
            raise RenderError(
                "PDF compilation failed. LaTeX compilation may have errors. Check the LaTeX syntax."
            )
        return pdf_file.read_bytes()


def _render_external(document: str, url: str, max_chars: int, timeout_s: int) -> bytes:
    if len(document) > max_chars:
        raise RenderError(
            f"LaTeX content is too large ({len(document)} characters) for online PDF "
            f"generation services. Maximum size is {max_chars} characters."
        )
    try:
        resp = requests.get(url, params={"text": document}, timeout=timeout_s)
    except requests.Timeout as exc:
        raise RenderError(f"PDF generation timed out after {timeout_s} seconds", retryable=True) from exc
    except requests.RequestException as exc:
        raise RenderError(f"External PDF generation service unavailable: {exc}", retryable=True) from exc
    if not resp.ok:
        raise RenderError(
            f"External PDF generation service unavailable: status {resp.status_code}",
            retryable=True,
        )
    return resp.content


def render_pdf(document: str, settings: dict | None = None) -> RenderResult:
    if not document or not looks_like_document(document):
        raise RenderError("Invalid LaTeX format. Please provide a valid LaTeX document.")
    cfg = (settings or load_settings())["rendering"]

    try:
        pdf = _render_local(document, cfg["timeout_s"])
        log.info("PDF rendered with pdflatex (%d bytes)", len(pdf))
        return RenderResult(pdf, TEXLIVE)
    except RenderError as local_err:
        log.warning("Local LaTeX compilation failed (%s), trying external service", local_err.message)

    try:
        pdf = _render_external(document, cfg["external_url"], cfg["max_external_chars"], cfg["timeout_s"])
    except RenderError as exc:
        log.error("External PDF generation failed: %s", exc.message)
        raise RenderError(
            "PDF generation failed. Both local compilation and the external service are "
            f"unavailable. {exc.message}",
            retryable=exc.retryable,
            details={
                "alternatives": [
                    "Download the .tex source and compile it locally",
                    "Paste the LaTeX into an online editor such as Overleaf",
                ],
            },
        ) from exc
    log.info("PDF rendered via external service (%d bytes)", len(pdf))
    return RenderResult(pdf, EXTERNAL)
