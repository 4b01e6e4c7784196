"""Streamlit UI for Lazy Me."""
from __future__ import annotations

import streamlit as st

from lazyme.config import load_settings
from lazyme.errors import PipelineError
from lazyme.latex import decode_document
from lazyme.log import get_logger
from lazyme.store import ResumeStore

log = get_logger(__name__)


def _store() -> ResumeStore:
    if "store" not in st.session_state:
        st.session_state["store"] = ResumeStore()
    return st.session_state["store"]


def _email() -> str:
    return st.session_state.get("email", "")


def _show_error(exc: PipelineError) -> None:
    st.error(exc.message)
    if exc.details.get("resumeId"):
        st.info(f"Your tailored resume was saved (id `{exc.details['resumeId']}`). "
                "Download the LaTeX from the Resumes page.")


# ── Page: Master resume ──────────────────────────────────────────────────


def page_master() -> None:
    st.header("Master Resume")

    with st.form("account"):
        email = st.text_input("Email", value=_email())
        name = st.text_input("Name")
        if st.form_submit_button("Sign in") and email:
            _store().ensure_user(email, name)
            st.session_state["email"] = email.strip().lower()
            st.rerun()

    if not _email():
        st.info("Enter your email to get started.")
        return

    user = _store().find_user(_email())
    uploaded = st.file_uploader("Upload your LaTeX master resume", type=["tex", "txt"])
    if uploaded:
        try:
            _store().replace_master_document(_email(), decode_document(uploaded.getvalue()))
            st.success("Master resume saved.")
        except PipelineError as exc:
            _show_error(exc)
    elif user and user.master_document:
        with st.expander("Current master resume"):
            st.code(user.master_document, language="latex")


# ── Page: Tailor ─────────────────────────────────────────────────────────


def _offer_downloads(result) -> None:
    c1, c2 = st.columns(2)
    c1.download_button(
        "Download LaTeX",
        result.resume.resume_document,
        file_name=result.filename.replace(".pdf", ".tex"),
    )
    if result.pdf is not None:
        c2.download_button("Download PDF", result.pdf.pdf_bytes, file_name=result.filename,
                           mime="application/pdf")


def page_tailor() -> None:
    from lazyme.pipeline import generate_from_fields, generate_from_url
    from lazyme.renderer import render_pdf
    from lazyme.tailor import TailoringOrchestrator

    st.header("Tailor a Resume")
    if not _email():
        st.info("Sign in on the Master Resume page first.")
        return

    make_pdf = st.checkbox("Render PDF", value=True)
    renderer = render_pdf if make_pdf else None
    tab_url, tab_fields = st.tabs(["From LinkedIn URL", "From job details"])

    with tab_url:
        url = st.text_input("LinkedIn job URL")
        if st.button("Generate", key="gen_url") and url:
            from lazyme.extractors import HeadlessJobExtractor

            with st.spinner("Reading the job posting and tailoring…"):
                try:
                    result = generate_from_url(
                        _store(), _email(), url,
                        extractor=HeadlessJobExtractor(load_settings()),
                        orchestrator=TailoringOrchestrator(),
                        renderer=renderer,
                    )
                except PipelineError as exc:
                    _show_error(exc)
                else:
                    st.success(f"Tailored for {result.resume.job_title} @ {result.resume.company}")
                    _offer_downloads(result)

    with tab_fields:
        with st.form("fields"):
            title = st.text_input("Job title")
            company = st.text_input("Company")
            description = st.text_area("Job description", height=240)
            submitted = st.form_submit_button("Generate")
        if submitted:
            with st.spinner("Tailoring…"):
                try:
                    result = generate_from_fields(
                        _store(), _email(),
                        title=title, company=company, description=description,
                        orchestrator=TailoringOrchestrator(),
                        renderer=renderer,
                    )
                except PipelineError as exc:
                    _show_error(exc)
                else:
                    st.success("Resume tailored.")
                    _offer_downloads(result)


# ── Page: Resumes ────────────────────────────────────────────────────────


def page_resumes() -> None:
    st.header("Tailored Resumes")
    if not _email():
        st.info("Sign in on the Master Resume page first.")
        return

    resumes = _store().list_resumes(_email())
    if not resumes:
        st.info("No tailored resumes yet.")
        return

    import pandas as pd

    df = pd.DataFrame([r.to_dict() for r in resumes])
    df["createdAt"] = pd.to_datetime(df["createdAt"])
    st.dataframe(
        df[["jobTitle", "company", "createdAt", "id"]].sort_values("createdAt", ascending=False),
        use_container_width=True,
        hide_index=True,
    )

    selected = st.selectbox(
        "Select resume",
        resumes,
        format_func=lambda r: f"{r.job_title} @ {r.company}",
    )
    if not selected:
        return

    view, edit, score = st.tabs(["LaTeX", "Edit", "Score"])
    with view:
        st.code(selected.resume_document, language="latex")
        c1, c2 = st.columns(2)
        c1.download_button("Download LaTeX", selected.resume_document, file_name=f"{selected.id}.tex")
        if c2.button("Delete"):
            _store().delete_resume(_email(), selected.id)
            st.rerun()

    with edit:
        with st.form(f"edit_{selected.id}"):
            company = st.text_input("Company", value=selected.company)
            title = st.text_input("Job title", value=selected.job_title)
            description = st.text_area("Job description", value=selected.job_description, height=160)
            document = st.text_area("Resume (LaTeX)", value=selected.resume_document, height=360)
            saved = st.form_submit_button("Save changes")
        if saved:
            try:
                _store().update_resume(
                    _email(), selected.id,
                    company=company, job_title=title,
                    job_description=description, resume_document=document,
                )
            except PipelineError as exc:
                _show_error(exc)
            else:
                st.rerun()

    with score:
        if st.button("Score against job description"):
            from lazyme.llm_client import LLMClient
            from lazyme.scoring import score_resume

            with st.spinner("Scoring…"):
                try:
                    result = score_resume(selected.resume_document, selected.job_description, LLMClient())
                except PipelineError as exc:
                    _show_error(exc)
                else:
                    st.metric("Match score", f"{result.score:.0f}/100")
                    c1, c2 = st.columns(2)
                    c1.subheader("Strengths")
                    for item in result.pros:
                        c1.markdown(f"- {item}")
                    c2.subheader("Gaps")
                    for item in result.cons:
                        c2.markdown(f"- {item}")


pages = [
    st.Page(page_master, title="Master Resume", icon="📄", url_path="master", default=True),
    st.Page(page_tailor, title="Tailor", icon="✂️", url_path="tailor"),
    st.Page(page_resumes, title="Resumes", icon="📋", url_path="resumes"),
]

nav = st.navigation(pages)
nav.run()
