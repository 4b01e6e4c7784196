#!/usr/bin/env python3
"""Command-line entry point for job extraction and resume tailoring."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from lazyme.config import OUTPUT_DIR, ensure_dirs, load_settings
from lazyme.errors import ErrorKind, PipelineError
from lazyme.log import get_logger, set_level

log = get_logger(__name__)


def cmd_extract(args: argparse.Namespace) -> int:
    from lazyme.extractors import HeadlessJobExtractor

    job = HeadlessJobExtractor(load_settings()).extract(
        args.url, timeout_ms=args.timeout_ms, headless=not args.headed,
    )
    print(json.dumps(job.to_dict(), indent=2))
    return 0


def cmd_tailor(args: argparse.Namespace) -> int:
    from lazyme.extractors import HeadlessJobExtractor
    from lazyme.pipeline import generate_from_url
    from lazyme.renderer import render_pdf
    from lazyme.store import ResumeStore
    from lazyme.tailor import TailoringOrchestrator

    settings = load_settings()
    result = generate_from_url(
        ResumeStore(),
        args.email,
        args.url,
        extractor=HeadlessJobExtractor(settings),
        orchestrator=TailoringOrchestrator(),
        renderer=None if args.no_pdf else render_pdf,
    )
    ensure_dirs()
    tex_path = OUTPUT_DIR / result.filename.replace(".pdf", ".tex")
    tex_path.write_text(result.resume.resume_document, encoding="utf-8")
    log.info("LaTeX written → %s", tex_path)
    if result.pdf is not None:
        pdf_path = OUTPUT_DIR / result.filename
        pdf_path.write_bytes(result.pdf.pdf_bytes)
        log.info("PDF written → %s (%s)", pdf_path, result.pdf.method)
    return 0


def cmd_upload_master(args: argparse.Namespace) -> int:
    from lazyme.latex import decode_document
    from lazyme.store import ResumeStore

    store = ResumeStore()
    store.ensure_user(args.email, args.name or "")
    document = decode_document(Path(args.file).read_bytes())
    store.replace_master_document(args.email, document)
    log.info("Master resume stored for %s", args.email)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    from lazyme.latex import validate

    ok = validate(Path(args.file).read_text(encoding="utf-8"))
    log.info("%s: %s", args.file, "valid" if ok else "INVALID")
    return 0 if ok else 1


def cmd_list(args: argparse.Namespace) -> int:
    from lazyme.store import ResumeStore

    resumes = ResumeStore().list_resumes(args.email)
    if not resumes:
        log.info("No tailored resumes for %s", args.email)
    for r in resumes:
        print(f"{r.id}  {r.created_at:%Y-%m-%d %H:%M}  {r.job_title} @ {r.company}")
    return 0


def cmd_score(args: argparse.Namespace) -> int:
    from lazyme.llm_client import LLMClient
    from lazyme.scoring import score_resume
    from lazyme.store import ResumeStore

    resume = ResumeStore().get_resume(args.email, args.resume_id)
    if resume is None:
        raise PipelineError(ErrorKind.RESUME_NOT_FOUND, f"No resume {args.resume_id} for {args.email}.")
    result = score_resume(resume.resume_document, resume.job_description, LLMClient())
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="run_tailor", description=__doc__)
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on the console")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("extract", help="Extract a LinkedIn job posting")
    p.add_argument("url")
    p.add_argument("--timeout-ms", type=int, default=None)
    p.add_argument("--headed", action="store_true", help="Show the browser window")
    p.set_defaults(func=cmd_extract)

    p = sub.add_parser("tailor", help="Tailor the master resume to a job URL")
    p.add_argument("url")
    p.add_argument("--email", required=True)
    p.add_argument("--no-pdf", action="store_true", help="Skip PDF rendering")
    p.set_defaults(func=cmd_tailor)

    p = sub.add_parser("upload-master", help="Store a LaTeX master resume")
    p.add_argument("file")
    p.add_argument("--email", required=True)
    p.add_argument("--name", default="")
    p.set_defaults(func=cmd_upload_master)

    p = sub.add_parser("validate", help="Check a LaTeX file's structure")
    p.add_argument("file")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("list", help="List tailored resumes")
    p.add_argument("--email", required=True)
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("score", help="Score a tailored resume against its job description")
    p.add_argument("resume_id")
    p.add_argument("--email", required=True)
    p.set_defaults(func=cmd_score)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_level("DEBUG")
    try:
        return args.func(args)
    except PipelineError as exc:
        log.error("[%s] %s", exc.kind, exc.message)
        return 2


if __name__ == "__main__":
    sys.exit(main())
