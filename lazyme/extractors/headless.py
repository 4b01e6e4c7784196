"""
Headless-browser job extraction.
Uses Playwright to open a LinkedIn job URL, clear sign-in modals and
overlays, wait for content landmarks and read title, company and
description through the selector tables in ``strategies``.
"""
from __future__ import annotations

import os
import platform
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator
from urllib.parse import urlparse

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from lazyme.config import get_env, is_serverless, load_settings
from lazyme.errors import ErrorKind, ExtractionError
from lazyme.extractors.base import JobExtractorBase
from lazyme.extractors.dom import Dom, PageDom
from lazyme.extractors.strategies import (
    LINKEDIN_HEADLESS,
    LINKEDIN_LANDMARKS,
    LINKEDIN_RECOVERY,
    LINKEDIN_SCROLL_TARGET,
    clean_description,
    extract_field,
    extract_fields,
)
from lazyme.log import get_logger
from lazyme.models import MIN_DESCRIPTION_LENGTH, ExtractionAttempt, JobPosting, SiteType
from lazyme.retry import RetryExhausted, RetryPolicy, run_with_policy

log = get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
JOB_URL_RE = re.compile(r"linkedin\.com/jobs", re.IGNORECASE)

DISMISS_SELECTORS: list[str] = [
    'button.modal__dismiss[aria-label="Dismiss"]',
    "button.contextual-sign-in-modal__modal-dismiss",
    "button.sign-in-modal__dismiss",
    'button[aria-label="Dismiss"]',
    'button[aria-label="Close"]',
    ".modal__dismiss",
]

MISSING_BROWSER_MESSAGE = (
    "Chrome/Chromium executable not found. Install Google Chrome or set the "
    "CHROME_PATH environment variable.\n"
    'macOS: export CHROME_PATH="/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"\n'
    'Linux: export CHROME_PATH="/usr/bin/google-chrome"\n'
    'Windows: set CHROME_PATH="C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe"'
)

# Clears scroll locks and hides anything that looks like a modal layer.
_HIDE_OVERLAYS_JS = """() => {
  document.body.classList.remove('overflow-hidden');
  document.body.style.overflow = '';
  document.documentElement.style.overflow = '';
  const hide = (el) => {
    el.style.display = 'none';
    el.style.visibility = 'hidden';
    el.style.opacity = '0';
    el.style.pointerEvents = 'none';
    el.classList.remove('modal__overlay--visible');
    el.setAttribute('aria-hidden', 'true');
  };
  document.querySelectorAll(
    '.modal__overlay, .modal, [class*="modal"], [class*="Modal"], ' +
    '.contextual-sign-in-modal, .sign-in-modal, [role="dialog"], [aria-modal="true"]'
  ).forEach(hide);
  document.querySelectorAll(
    '[class*="backdrop"], [class*="scrim"], [class*="overlay"], [class*="Overlay"], ' +
    '.bg-color-background-scrim, .top-level-modal-container'
  ).forEach(hide);
}"""

_FORCE_DISMISS_JS = """() => {
  document.querySelectorAll('button.modal__dismiss, button[aria-label="Dismiss"]')
    .forEach((btn) => btn.click());
}"""

_SCROLL_INTO_VIEW_JS = """(sel) => {
  const el = document.querySelector(sel);
  if (el) el.scrollIntoView({ behavior: 'smooth', block: 'center' });
}"""


# ---------------------------------------------------------------------------
# Browser discovery and launch
# ---------------------------------------------------------------------------

def _candidate_paths(system: str) -> list[str]:
    if system == "Darwin":
        return [
            "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "/Applications/Chromium.app/Contents/MacOS/Chromium",
            "/Applications/Google Chrome Canary.app/Contents/MacOS/Google Chrome Canary",
        ]
    if system == "Linux":
        return [
            "/usr/bin/google-chrome",
            "/usr/bin/google-chrome-stable",
            "/usr/bin/chromium",
            "/usr/bin/chromium-browser",
            "/snap/bin/chromium",
        ]
    if system == "Windows":
        program_files = os.environ.get("PROGRAMFILES", r"C:\Program Files")
        program_files_x86 = os.environ.get("PROGRAMFILES(X86)", r"C:\Program Files (x86)")
        local = os.environ.get(
            "LOCALAPPDATA", str(Path(os.environ.get("USERPROFILE", "")) / "AppData" / "Local")
        )
        return [
            str(Path(program_files) / "Google" / "Chrome" / "Application" / "chrome.exe"),
            str(Path(program_files_x86) / "Google" / "Chrome" / "Application" / "chrome.exe"),
            str(Path(local) / "Google" / "Chrome" / "Application" / "chrome.exe"),
            str(Path(program_files) / "Chromium" / "Application" / "chrome.exe"),
            str(Path(local) / "Chromium" / "Application" / "chrome.exe"),
        ]
    return []


def find_chrome_executable() -> str | None:
    """CHROME_PATH if it exists, else the first well-known install path."""
    override = get_env("CHROME_PATH")
    if override and Path(override).exists():
        return override
    for path in _candidate_paths(platform.system()):
        if Path(path).exists():
            return path
    return None


@contextmanager
def launch_browser(headless: bool = True) -> Iterator[Any]:
    """Yield a Chromium browser; closed on exit whatever happens inside."""
    if is_serverless():
        # Bundled Playwright Chromium; a stale sandbox browsers path breaks it.
        _pw = os.environ.get("PLAYWRIGHT_BROWSERS_PATH", "")
        if _pw and not Path(_pw).exists():
            os.environ.pop("PLAYWRIGHT_BROWSERS_PATH", None)
        launch_kwargs: dict[str, Any] = {
            "headless": True,
            "args": ["--no-sandbox", "--disable-gpu", "--hide-scrollbars", "--single-process"],
        }
    else:
        chrome_path = find_chrome_executable()
        if not chrome_path:
            raise ExtractionError(ErrorKind.BROWSER_MISSING, MISSING_BROWSER_MESSAGE)
        launch_kwargs = {
            "headless": headless,
            "executable_path": chrome_path,
            "args": ["--no-sandbox", "--disable-setuid-sandbox"],
        }

    with sync_playwright() as p:
        browser = p.chromium.launch(**launch_kwargs)
        try:
            yield browser
        finally:
            browser.close()


# ---------------------------------------------------------------------------
# Page helpers
# ---------------------------------------------------------------------------

def _click_first_visible(page, selectors: list[str], *, timeout: int = 1000) -> bool:
    """Try clicking the first visible element matching any selector."""
    for sel in selectors:
        try:
            loc = page.locator(sel).first
            if loc.is_visible(timeout=timeout):
                loc.click(delay=100)
                page.wait_for_timeout(500)
                return True
        except PlaywrightError:
            continue
    return False


def dismiss_interstitials(page) -> None:
    """One pass: unlock scrolling, hide modal layers, click a close button."""
    try:
        page.evaluate(_HIDE_OVERLAYS_JS)
    except PlaywrightError as exc:
        log.debug("Overlay hiding failed: %s", str(exc)[:120])
    if _click_first_visible(page, DISMISS_SELECTORS):
        log.debug("Clicked a dismiss button")
    try:
        page.evaluate(_FORCE_DISMISS_JS)
    except PlaywrightError as exc:
        log.debug("Forced dismiss failed: %s", str(exc)[:120])
    page.wait_for_timeout(1000)


def wait_for_landmarks(page, attempt: ExtractionAttempt) -> None:
    """Bounded waits; a missing landmark is not fatal."""
    for selector, timeout in LINKEDIN_LANDMARKS:
        budget = min(timeout, attempt.remaining_ms())
        if budget <= 0:
            log.debug("Extraction budget spent; skipping remaining landmark waits")
            return
        try:
            page.wait_for_selector(selector, timeout=budget)
        except PlaywrightTimeoutError:
            log.debug("Landmark not found within %dms: %s", budget, selector[:60])


def validate_job_url(url: str) -> str:
    if not url or not isinstance(url, str) or not url.strip():
        raise ExtractionError(ErrorKind.INVALID_INPUT, "A job posting URL is required.")
    url = url.strip()
    if not JOB_URL_RE.search(url):
        raise ExtractionError(
            ErrorKind.INVALID_URL,
            "Invalid LinkedIn job URL. Please ensure the URL is a valid LinkedIn job posting link.",
        )
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ExtractionError(
            ErrorKind.INVALID_URL_FORMAT,
            "Invalid URL format. Please provide a valid LinkedIn job posting URL.",
        )
    return url


def map_browser_error(exc: BaseException) -> ExtractionError:
    """Translate Playwright failures into user-facing error kinds."""
    if isinstance(exc, ExtractionError):
        return exc
    msg = str(exc)
    if "executable" in msg.lower() and ("doesn't exist" in msg or "not found" in msg.lower()):
        return ExtractionError(ErrorKind.BROWSER_MISSING, MISSING_BROWSER_MESSAGE)
    if isinstance(exc, PlaywrightTimeoutError) or "timeout" in msg.lower():
        return ExtractionError(
            ErrorKind.TIMEOUT,
            "Request timed out. The job page took too long to load. "
            "Please try again or verify the URL is accessible.",
        )
    if "net::ERR" in msg:
        return ExtractionError(
            ErrorKind.NETWORK_ERROR,
            "Network error. Unable to reach the job site. "
            "Please check your internet connection and try again.",
        )
    return ExtractionError(
        ErrorKind.EXTRACTION_FAILED,
        f"Failed to read the job page: {msg.splitlines()[0][:150] if msg else type(exc).__name__}",
    )


class _DescriptionTooShort(Exception):
    pass


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class HeadlessJobExtractor(JobExtractorBase):
    """Fetch one job posting per call; each call owns its browser."""

    def __init__(
        self,
        settings: dict | None = None,
        *,
        launcher: Callable[[bool], Any] = launch_browser,
        dom_factory: Callable[[Any], Dom] = PageDom,
    ) -> None:
        self.settings = (settings or load_settings())["extraction"]
        self.launcher = launcher
        self.dom_factory = dom_factory

    def extract(
        self,
        url: str,
        *,
        timeout_ms: int | None = None,
        headless: bool | None = None,
    ) -> JobPosting:
        url = validate_job_url(url)
        timeout_ms = timeout_ms or self.settings["timeout_ms"]
        headless = self.settings["headless"] if headless is None else headless
        log.info("Extracting job posting: %s", url)

        try:
            with self.launcher(headless) as browser:
                context = browser.new_context(
                    user_agent=USER_AGENT,
                    viewport={"width": 1920, "height": 1080},
                )
                try:
                    page = context.new_page()
                    fields = self._scrape(page, url, timeout_ms)
                finally:
                    context.close()
        except ExtractionError:
            raise
        except PlaywrightError as exc:
            err = map_browser_error(exc)
            log.error("Extraction failed [%s]: %s", err.kind, str(exc)[:150])
            raise err from exc

        return self._finalize(fields, url)

    def _scrape(self, page, url: str, timeout_ms: int) -> dict[str, str]:
        attempt = ExtractionAttempt(budget_ms=timeout_ms)
        page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        # Sign-in modals are injected after load.
        page.wait_for_timeout(3000)

        passes = max(2, int(self.settings.get("dismiss_passes", 2)))
        for n in range(passes):
            if n:
                page.wait_for_timeout(1500)
            dismiss_interstitials(page)

        wait_for_landmarks(page, attempt)
        page.wait_for_timeout(2000)

        dom = self.dom_factory(page)
        fields: dict[str, str] = {}

        def read(attempt_no: int) -> dict[str, str]:
            attempt.attempt = attempt_no
            if attempt_no == 1:
                fields.update(extract_fields(dom, LINKEDIN_HEADLESS))
                fields["description"] = clean_description(fields.get("description", ""))
            else:
                log.info("Description short (%d chars); scrolling for lazy content",
                         len(fields.get("description", "")))
                try:
                    page.evaluate(_SCROLL_INTO_VIEW_JS, LINKEDIN_SCROLL_TARGET)
                except PlaywrightError as exc:
                    log.debug("Scroll failed: %s", str(exc)[:120])
                page.wait_for_timeout(3000)
                retried = clean_description(extract_field(dom, LINKEDIN_RECOVERY))
                if len(retried) > len(fields.get("description", "")):
                    fields["description"] = retried
            if len(fields.get("description", "")) < MIN_DESCRIPTION_LENGTH:
                attempt.last_error = "description too short"
                raise _DescriptionTooShort(fields.get("description", ""))
            return fields

        try:
            run_with_policy(RetryPolicy(2), read, retry_on=(_DescriptionTooShort,))
        except RetryExhausted:
            log.warning("Description still short after recovery (%dms elapsed)", attempt.elapsed_ms())
        return fields

    def _finalize(self, fields: dict[str, str], url: str) -> JobPosting:
        title = fields.get("title", "").strip()
        company = fields.get("company", "").strip()
        description = fields.get("description", "")

        if not title and not company:
            raise ExtractionError(
                ErrorKind.EXTRACTION_FAILED,
                "We couldn't fetch job details from this link. The page structure may have "
                "changed or the job may not be publicly accessible. Please verify the URL or "
                "enter the details manually.",
            )
        if len(description) < MIN_DESCRIPTION_LENGTH:
            raise ExtractionError(
                ErrorKind.DESCRIPTION_MISSING,
                "Unable to locate job description. The job posting may require authentication "
                "or the description may be missing. Please enter the details manually.",
            )

        posting = JobPosting(
            title=title or "Unknown Title",
            company_name=company or "Unknown Company",
            description=description,
            source_url=url,
            site_type=SiteType.LINKEDIN,
        )
        log.info("Extracted: %s @ %s (%d chars)", posting.title, posting.company_name, len(description))
        return posting


def extract_job(url: str, *, timeout_ms: int | None = None, headless: bool | None = None) -> JobPosting:
    return HeadlessJobExtractor().extract(url, timeout_ms=timeout_ms, headless=headless)
