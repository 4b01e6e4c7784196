"""Tests for the headless extractor with a fake browser and snapshot DOMs."""
from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from lazyme.errors import ErrorKind, ExtractionError
from lazyme.extractors.dom import SoupDom
from lazyme.extractors.headless import HeadlessJobExtractor, find_chrome_executable
from lazyme.models import MIN_DESCRIPTION_LENGTH, SiteType

JOB_URL = "https://www.linkedin.com/jobs/view/12345"

FULL_PAGE = """
<h1 class="topcard__title">Senior Backend Engineer</h1>
<a class="topcard__org-name-link">Acme Corp</a>
<div class="show-more-less-html__markup">
  We build the payments platform.


  You will own services written in Python and Go.   Show more
</div>
"""

SKELETON_PAGE = """
<h1>Senior Backend Engineer</h1>
<div class="description__text--rich">Loading...</div>
"""


def make_extractor(settings, html, *, page=None):
    page = page or MagicMock()
    browser = MagicMock()
    browser.new_context.return_value.new_page.return_value = page

    @contextmanager
    def launcher(headless):
        launcher.calls.append(headless)
        yield browser

    launcher.calls = []
    extractor = HeadlessJobExtractor(
        settings,
        launcher=launcher,
        dom_factory=lambda p: SoupDom(html, JOB_URL),
    )
    return extractor, launcher, browser, page


class TestExtract:
    def test_full_page(self, settings):
        extractor, launcher, browser, page = make_extractor(settings, FULL_PAGE)
        job = extractor.extract(JOB_URL)

        assert job.title == "Senior Backend Engineer"
        assert job.company_name == "Acme Corp"
        assert job.description == (
            "We build the payments platform.\n"
            "You will own services written in Python and Go."
        )
        assert job.site_type is SiteType.LINKEDIN
        assert job.source_url == JOB_URL
        page.goto.assert_called_once_with(JOB_URL, wait_until="networkidle", timeout=30_000)
        browser.new_context.return_value.close.assert_called_once()

    def test_caller_timeout_and_headless_flag(self, settings):
        extractor, launcher, _, page = make_extractor(settings, FULL_PAGE)
        extractor.extract(JOB_URL, timeout_ms=5000, headless=False)
        assert launcher.calls == [False]
        assert page.goto.call_args.kwargs["timeout"] == 5000

    def test_loading_skeleton_is_description_missing(self, settings):
        extractor, _, _, page = make_extractor(settings, SKELETON_PAGE)
        with pytest.raises(ExtractionError) as excinfo:
            extractor.extract(JOB_URL)
        assert excinfo.value.kind == ErrorKind.DESCRIPTION_MISSING
        # The recovery pass scrolled the description container into view.
        scrolled = [c for c in page.evaluate.call_args_list if "scrollIntoView" in c.args[0]]
        assert len(scrolled) == 1

    def test_nothing_found_is_extraction_failed(self, settings):
        extractor, _, browser, _ = make_extractor(settings, "<div>Sign in</div>")
        with pytest.raises(ExtractionError) as excinfo:
            extractor.extract(JOB_URL)
        assert excinfo.value.kind == ErrorKind.EXTRACTION_FAILED
        browser.new_context.return_value.close.assert_called_once()

    def test_missing_title_falls_back(self, settings):
        html = f'<a class="topcard__org-name-link">Acme</a><div id="job-details">{"x" * 80}</div>'
        extractor, *_ = make_extractor(settings, html)
        job = extractor.extract(JOB_URL)
        assert job.title == "Unknown Title"
        assert job.company_name == "Acme"
        assert len(job.description) >= MIN_DESCRIPTION_LENGTH

    def test_interstitials_dismissed_at_least_twice(self, settings):
        extractor, _, _, page = make_extractor(settings, FULL_PAGE)
        extractor.extract(JOB_URL)
        hides = [c for c in page.evaluate.call_args_list if "overflow-hidden" in c.args[0]]
        assert len(hides) >= 2


class TestUrlValidation:
    @pytest.mark.parametrize("url, kind", [
        ("", ErrorKind.INVALID_INPUT),
        ("https://example.com/careers/1", ErrorKind.INVALID_URL),
        ("linkedin.com/jobs/view/1", ErrorKind.INVALID_URL_FORMAT),
        ("ftp://www.linkedin.com/jobs/view/1", ErrorKind.INVALID_URL_FORMAT),
    ])
    def test_rejected_before_launch(self, settings, url, kind):
        extractor, launcher, _, _ = make_extractor(settings, FULL_PAGE)
        with pytest.raises(ExtractionError) as excinfo:
            extractor.extract(url)
        assert excinfo.value.kind == kind
        assert launcher.calls == []


class TestBrowserErrors:
    def test_navigation_timeout(self, settings):
        page = MagicMock()
        page.goto.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded.")
        extractor, _, browser, _ = make_extractor(settings, FULL_PAGE, page=page)
        with pytest.raises(ExtractionError) as excinfo:
            extractor.extract(JOB_URL)
        assert excinfo.value.kind == ErrorKind.TIMEOUT
        assert excinfo.value.status == 504
        browser.new_context.return_value.close.assert_called_once()

    def test_network_error(self, settings):
        page = MagicMock()
        page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://www.linkedin.com")
        extractor, *_ = make_extractor(settings, FULL_PAGE, page=page)
        with pytest.raises(ExtractionError) as excinfo:
            extractor.extract(JOB_URL)
        assert excinfo.value.kind == ErrorKind.NETWORK_ERROR

    def test_missing_browser(self, settings, monkeypatch):
        monkeypatch.setattr("lazyme.extractors.headless.find_chrome_executable", lambda: None)
        extractor = HeadlessJobExtractor(settings)
        with pytest.raises(ExtractionError) as excinfo:
            extractor.extract(JOB_URL)
        assert excinfo.value.kind == ErrorKind.BROWSER_MISSING
        assert "CHROME_PATH" in excinfo.value.message

    def test_chrome_path_override(self, monkeypatch, tmp_path):
        chrome = tmp_path / "chrome"
        chrome.write_text("")
        monkeypatch.setenv("CHROME_PATH", str(chrome))
        assert find_chrome_executable() == str(chrome)
