"""Job extraction from a page the user already has open.

No navigation or overlay handling: the tab is past any gating, so this
only picks a site table from the hostname and reads the fields.
"""
from __future__ import annotations

from urllib.parse import urlparse

from lazyme.extractors.base import JobExtractorBase
from lazyme.extractors.canonical import canonical_job_url
from lazyme.extractors.dom import Dom, PageDom
from lazyme.extractors.strategies import IN_PAGE_SITES, SITE_DOMAINS, extract_fields
from lazyme.log import get_logger
from lazyme.models import JobPosting, SiteType

log = get_logger(__name__)


def detect_site(url: str) -> SiteType:
    """Known job board for ``url``'s host (subdomains included), else generic."""
    host = (urlparse(url or "").hostname or "").lower()
    for domain, site in SITE_DOMAINS.items():
        if host == domain or host.endswith("." + domain):
            return site
    return SiteType.GENERIC


class InPageJobExtractor(JobExtractorBase):
    def __init__(self, dom: Dom, page=None) -> None:
        self.dom = dom
        # Live page handle, only needed for the main-world rescan fallback.
        self.page = page

    @classmethod
    def from_page(cls, page) -> "InPageJobExtractor":
        return cls(PageDom(page), page=page)

    @property
    def site_type(self) -> SiteType:
        return detect_site(self.dom.url)

    def job_url(self) -> str:
        if self.site_type is SiteType.LINKEDIN:
            return canonical_job_url(self.dom, self.page) or self.dom.url
        return self.dom.url

    def extract_current(self) -> JobPosting | None:
        """Read the current page; None unless title and description are present."""
        site = self.site_type
        fields = extract_fields(self.dom, IN_PAGE_SITES[site])
        if not (fields.get("title") and fields.get("description")):
            log.debug("No job content found on %s page", site.value)
            return None

        posting = JobPosting(
            title=fields["title"],
            company_name=fields.get("company", ""),
            description=fields["description"],
            location=fields.get("location", ""),
            source_url=self.job_url(),
            site_type=site,
        )
        log.info("Detected %s job: %s @ %s", site.value, posting.title, posting.company_name or "?")
        return posting

    def extract(self, url: str | None = None, **_: object) -> JobPosting | None:
        if url and url != self.dom.url:
            log.warning("In-page extractor ignores url %r; reading the open page", url)
        return self.extract_current()


def extract_job_from_page(dom: Dom, page=None) -> JobPosting | None:
    return InPageJobExtractor(dom, page=page).extract_current()
