from .base import JobExtractorBase
from .canonical import canonical_job_url, normalize_linkedin_job_url, resolve_canonical_job_url
from .dom import Dom, PageDom, SoupDom
from .headless import HeadlessJobExtractor, extract_job
from .in_page import InPageJobExtractor, detect_site, extract_job_from_page

from lazyme.log import get_logger

log = get_logger(__name__)

__all__ = [
    "JobExtractorBase", "HeadlessJobExtractor", "InPageJobExtractor",
    "Dom", "PageDom", "SoupDom",
    "canonical_job_url", "normalize_linkedin_job_url", "resolve_canonical_job_url",
    "detect_site", "extract_job", "extract_job_from_page",
    "get_extractor",
]


def get_extractor(settings: dict | None = None, *, page=None) -> JobExtractorBase:
    """In-page extractor when a live tab is supplied, headless otherwise."""
    if page is not None:
        log.info("Using in-page extractor for %s", page.url)
        return InPageJobExtractor.from_page(page)
    log.info("Using headless extractor")
    return HeadlessJobExtractor(settings)
