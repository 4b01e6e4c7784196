"""Prioritized selector strategies for job-posting fields.

Each field is an ordered list of ``Strategy`` entries evaluated against a
``Dom``. Site variants are added by extending the tables, not the code.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from lazyme.extractors.dom import Dom
from lazyme.models import MIN_DESCRIPTION_LENGTH, SiteType

FIRST = "first"
LONGEST = "longest"

# Paragraph preference inside LinkedIn description containers.
_PARAGRAPHS = ("p[dir='ltr']", ".mt4 p", "p")


@dataclass(frozen=True)
class Strategy:
    """One lookup: a container selector plus optional refinements.

    ``paragraphs`` are tried inside the container first (first match in
    document order across the list). ``heading`` names a heading inside the
    container whose text is removed from the start of the full text.
    ``strip_prefix`` is a regex removed from the start of the result.
    """

    selector: str
    paragraphs: tuple[str, ...] = ()
    heading: str | None = None
    strip_prefix: str | None = None

    def read(self, dom: Dom) -> str:
        if self.paragraphs:
            scoped = ", ".join(f"{c} {p}" for c in self.selector.split(",") for p in self.paragraphs)
            text = dom.text(scoped)
            if text:
                return self._strip(text)
        text = dom.text(self.selector)
        if text and self.heading:
            heading = dom.text(f"{self.selector} {self.heading}")
            if heading and text.lower().startswith(heading.lower()):
                text = text[len(heading):].strip()
        return self._strip(text)

    def _strip(self, text: str) -> str:
        if self.strip_prefix:
            text = re.sub(self.strip_prefix, "", text, count=1, flags=re.IGNORECASE)
        return text.strip()


@dataclass(frozen=True)
class FieldSpec:
    name: str
    strategies: tuple[Strategy, ...]
    mode: str = FIRST
    min_length: int = 0


@dataclass(frozen=True)
class SiteSpec:
    site: SiteType
    fields: tuple[FieldSpec, ...] = field(default_factory=tuple)

    def get(self, name: str) -> FieldSpec | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


def _s(*selectors: str, **kwargs) -> tuple[Strategy, ...]:
    return tuple(Strategy(sel, **kwargs) for sel in selectors)


def extract_field(dom: Dom, spec: FieldSpec) -> str:
    """Run one field's strategy list.

    ``FIRST``: the first non-empty result wins. ``LONGEST``: later
    strategies are consulted only while the best result is shorter than
    ``min_length``, and replace it only when strictly longer.
    """
    best = ""
    for strategy in spec.strategies:
        text = strategy.read(dom)
        if spec.mode == FIRST:
            if text:
                return text
            continue
        if len(text) > len(best):
            best = text
        if len(best) >= spec.min_length:
            break
    return best


def extract_fields(dom: Dom, site: SiteSpec) -> dict[str, str]:
    return {f.name: extract_field(dom, f) for f in site.fields}


# ── Description clean-up ─────────────────────────────────────────────────

_SHOW_MORE_RE = re.compile(r"\bshow\s+(?:more|less)\b", re.IGNORECASE)
_BLANK_RUN_RE = re.compile(r"\n\s*\n\s*\n+")
_SPACE_RUN_RE = re.compile(r" {3,}")


def clean_description(text: str) -> str:
    if not text:
        return ""
    text = _SHOW_MORE_RE.sub("", text)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    lines = [line.strip() for line in text.split("\n")]
    text = "\n".join(line for line in lines if line)
    return _SPACE_RUN_RE.sub(" ", text).strip()


# ── LinkedIn, as seen by the headless browser ────────────────────────────

LINKEDIN_HEADLESS = SiteSpec(
    site=SiteType.LINKEDIN,
    fields=(
        FieldSpec("title", _s(
            ".topcard__title",
            "h1.topcard__title",
            ".decorated-job-posting__details h1",
            ".job-details-jobs-unified-top-card__job-title h1",
            ".job-details-jobs-unified-top-card__job-title",
            "h1.t-24.t-bold",
            "h1[class*='job-title']",
            "h1",
            ".jobs-details-top-card__job-title",
        )),
        FieldSpec("company", _s(
            "a.topcard__org-name-link, .topcard__org-name-link",
            ".jobs-company .artdeco-entity-lockup__title a, "
            "section[data-view-name*='about-company'] .artdeco-entity-lockup__title a, "
            ".jobs-company a[data-view-name*='company-name'], "
            "section[data-view-name*='about-company'] a[data-view-name*='company-name']",
            ".jobs-company__box .artdeco-entity-lockup__title a",
            ".job-details-jobs-unified-top-card__company-name a",
            ".job-details-jobs-unified-top-card__company-name, .topcard__org-name",
        )),
        FieldSpec(
            "description",
            (
                Strategy(
                    ".description__text--rich, .show-more-less-html__markup, "
                    ".decorated-job-posting__details .description__text",
                    strip_prefix=r"^THE POSITION\s*",
                ),
                Strategy(
                    ".core-section-container.description .description__text, "
                    ".core-section-container__content .description__text",
                ),
                Strategy("article.jobs-description__container #job-details",
                         paragraphs=_PARAGRAPHS, heading="h2"),
                Strategy("#job-details", paragraphs=_PARAGRAPHS, heading="h2"),
                Strategy(".jobs-description__content, .jobs-description-content",
                         paragraphs=("p[dir='ltr']", "p"), strip_prefix=r"^About the job\s*"),
            ),
            mode=LONGEST,
            min_length=MIN_DESCRIPTION_LENGTH,
        ),
    ),
)

# Re-read after scrolling the description into view.
LINKEDIN_RECOVERY = FieldSpec(
    "description",
    (
        Strategy("article.jobs-description__container #job-details",
                 paragraphs=_PARAGRAPHS, heading="h2"),
        Strategy("#job-details", paragraphs=_PARAGRAPHS, heading="h2"),
    ),
    mode=LONGEST,
    min_length=MIN_DESCRIPTION_LENGTH,
)

# Landmarks waited on before reading; guest and signed-in markup differ.
LINKEDIN_LANDMARKS: tuple[tuple[str, int], ...] = (
    (".topcard__title, .job-details-jobs-unified-top-card__job-title, h1, "
     ".decorated-job-posting__details", 10_000),
    (".description__text--rich, .show-more-less-html__markup, "
     "article.jobs-description__container, #job-details, "
     ".jobs-description__container, .decorated-job-posting__details", 15_000),
    (".topcard__org-name-link, .jobs-company, .jobs-company__box, "
     "section[data-view-name*='about-company']", 10_000),
)

LINKEDIN_SCROLL_TARGET = "article.jobs-description__container, #job-details"


# ── In-page tables, one per site ─────────────────────────────────────────

IN_PAGE_SITES: dict[SiteType, SiteSpec] = {
    SiteType.LINKEDIN: SiteSpec(
        site=SiteType.LINKEDIN,
        fields=(
            FieldSpec("title", _s(
                ".job-details-jobs-unified-top-card__job-title",
                ".jobs-unified-top-card__job-title",
                "h1[data-test-job-title]",
                ".job-details-jobs-unified-top-card__primary-description h1",
                "h1",
            )),
            FieldSpec("company", _s(
                ".job-details-jobs-unified-top-card__company-name",
                ".jobs-unified-top-card__company-name",
                "[data-test-company-name]",
                ".job-details-jobs-unified-top-card__company-name a",
            )),
            FieldSpec("location", _s(
                ".job-details-jobs-unified-top-card__bullet",
                ".jobs-unified-top-card__primary-description li",
                "[data-test-job-location]",
                ".job-details-jobs-unified-top-card__workplace-type",
            )),
            FieldSpec("description", _s(
                ".jobs-description-content__text",
                ".jobs-box__html-content",
                ".jobs-description__content",
                "section[data-test-description]",
                "[data-test-id='job-details']",
            )),
        ),
    ),
    SiteType.INDEED: SiteSpec(
        site=SiteType.INDEED,
        fields=(
            FieldSpec("title", _s("[data-testid='job-title']", ".jobsearch-JobInfoHeader-title")),
            FieldSpec("company", _s("[data-testid='company-name']", ".jobsearch-CompanyInfoContainer")),
            FieldSpec("location", _s("[data-testid='job-location']", ".jobsearch-JobInfoHeader-subtitle")),
            FieldSpec("description", _s("#jobDescriptionText")),
        ),
    ),
    SiteType.GLASSDOOR: SiteSpec(
        site=SiteType.GLASSDOOR,
        fields=(
            FieldSpec("title", _s(".jobTitle")),
            FieldSpec("company", _s(".employerName")),
            FieldSpec("location", _s(".location")),
            FieldSpec("description", _s(".jobDescriptionContent")),
        ),
    ),
    SiteType.MONSTER: SiteSpec(
        site=SiteType.MONSTER,
        fields=(
            FieldSpec("title", _s(".job-title")),
            FieldSpec("company", _s(".company-name")),
            FieldSpec("location", _s(".location")),
            FieldSpec("description", _s(".job-description")),
        ),
    ),
    SiteType.ZIPRECRUITER: SiteSpec(
        site=SiteType.ZIPRECRUITER,
        fields=(
            FieldSpec("title", _s(".job_title")),
            FieldSpec("company", _s(".company_name")),
            FieldSpec("location", _s(".location")),
            FieldSpec("description", _s(".job_description")),
        ),
    ),
    SiteType.GENERIC: SiteSpec(
        site=SiteType.GENERIC,
        fields=(
            FieldSpec("title", _s("h1", ".job-title", "[class*='title']")),
            FieldSpec("company", _s("[class*='company']", "[class*='employer']")),
            FieldSpec("location", _s("[class*='location']", "[class*='address']")),
            FieldSpec("description", _s("[class*='description']", "[class*='content']")),
        ),
    ),
}

SITE_DOMAINS: dict[str, SiteType] = {
    "linkedin.com": SiteType.LINKEDIN,
    "indeed.com": SiteType.INDEED,
    "glassdoor.com": SiteType.GLASSDOOR,
    "monster.com": SiteType.MONSTER,
    "ziprecruiter.com": SiteType.ZIPRECRUITER,
}
