"""Canonical LinkedIn job URL resolution.

The address bar on LinkedIn is often a search or tracking URL. Candidates
are gathered from the page in a fixed priority order and the first one
carrying a ``/jobs/view/<id>`` path is rebuilt as a clean link.
"""
from __future__ import annotations

import json
import re
from typing import Iterable
from urllib.parse import parse_qs, unquote, urljoin, urlparse

from playwright.sync_api import Error as PlaywrightError

from lazyme.extractors.dom import Dom
from lazyme.log import get_logger

log = get_logger(__name__)

CANONICAL_BASE = "https://www.linkedin.com/jobs/view/"

_JOB_VIEW_RE = re.compile(r"/jobs/view/(\d+)")
_EMBEDDED_JOB_VIEW_RE = re.compile(r"linkedin\.com/jobs/view/(\d+)", re.IGNORECASE)
_EMBEDDED_JOB_ID_RE = re.compile(r'"jobId"\s*:\s*"(\d+)"')

TITLE_ANCHOR = ".job-details-jobs-unified-top-card__job-title a[href*='/jobs/view/']"

SHARE_SELECTORS: tuple[str, ...] = (
    "[data-share-copy-link]",
    "[data-share-url]",
    "[data-share-modal-form-url]",
    "[data-share-link]",
    "button[aria-label*='Copy link']",
)
SHARE_ATTRIBUTES: tuple[str, ...] = (
    "data-share-copy-link",
    "data-share-url",
    "data-share-modal-form-url",
    "data-share-link",
    "href",
)
JOB_ID_PARAMS: tuple[str, ...] = ("currentJobId", "jobId", "job_id")

# Runs in the page's main world; returns the first anchor that resolves.
MAIN_WORLD_SCAN_JS = """() => {
  const normalize = (candidate) => {
    if (!candidate || typeof candidate !== 'string') return null;
    try {
      const decoded = decodeURIComponent(candidate.trim());
      const absolute = decoded.startsWith('http')
        ? decoded
        : new URL(decoded.startsWith('/') ? decoded : `/${decoded}`, window.location.origin).toString();
      const match = new URL(absolute).pathname.match(/\\/jobs\\/view\\/(\\d+)/);
      if (match) return `https://www.linkedin.com/jobs/view/${match[1]}`;
    } catch (e) {}
    return null;
  };
  const anchors = Array.from(document.querySelectorAll("a[href*='/jobs/view/']"));
  for (const a of anchors) {
    const found = normalize(a.getAttribute('href')) || normalize(a.href)
      || normalize(a.dataset && a.dataset.shareUrl)
      || normalize(a.dataset && a.dataset.shareCopyLink);
    if (found) return found;
  }
  return null;
}"""


def normalize_linkedin_job_url(candidate: str | None) -> str | None:
    """Rebuild ``candidate`` as ``https://www.linkedin.com/jobs/view/<id>``.

    Only candidates mentioning linkedin.com with a job-view path qualify;
    query strings and fragments are dropped.
    """
    if not candidate or not isinstance(candidate, str):
        return None
    decoded = unquote(candidate).strip()
    if not decoded or "linkedin.com" not in decoded.lower():
        return None

    absolute = decoded if "://" in decoded else "https://" + decoded.lstrip("/")
    try:
        path = urlparse(absolute).path
    except ValueError:
        path = ""
    match = _JOB_VIEW_RE.search(path) or _EMBEDDED_JOB_VIEW_RE.search(decoded)
    if not match:
        return None
    return f"{CANONICAL_BASE}{match.group(1)}"


def resolve_canonical_job_url(candidates: Iterable[str | None]) -> str | None:
    """First candidate that normalizes wins; order is significant."""
    for candidate in candidates:
        normalized = normalize_linkedin_job_url(candidate)
        if normalized:
            return normalized
    return None


def _ld_json_candidates(dom: Dom) -> list[str]:
    out: list[str] = []
    for raw in dom.all_texts("script[type='application/ld+json']"):
        try:
            data = json.loads(raw or "{}")
        except ValueError:
            continue
        for item in data if isinstance(data, list) else [data]:
            if not isinstance(item, dict):
                continue
            if isinstance(item.get("url"), str):
                out.append(item["url"])
            org = item.get("hiringOrganization")
            if isinstance(org, dict) and isinstance(org.get("sameAs"), str):
                out.append(org["sameAs"])
    return out


def collect_candidates(dom: Dom) -> list[str]:
    """Page-level candidates in resolution priority order."""
    candidates: list[str] = []

    href = dom.attr(TITLE_ANCHOR, "href")
    if href:
        candidates.append(urljoin(dom.url or "https://www.linkedin.com/", href))

    canonical = dom.attr("link[rel='canonical']", "href")
    if canonical:
        candidates.append(canonical)

    og_url = dom.attr("meta[property='og:url']", "content")
    if og_url:
        candidates.append(og_url)

    for selector in SHARE_SELECTORS:
        for name in SHARE_ATTRIBUTES:
            value = dom.attr(selector, name)
            if value:
                candidates.append(value)

    candidates.extend(_ld_json_candidates(dom))
    return candidates


def job_id_from_page(dom: Dom) -> str | None:
    """Numeric job id from query parameters, a data attribute or page JSON."""
    query = parse_qs(urlparse(dom.url or "").query)
    for key in JOB_ID_PARAMS:
        for value in query.get(key, []):
            if value.isdigit():
                return value

    data_id = dom.attr("[data-job-id]", "data-job-id")
    if data_id and data_id.isdigit():
        return data_id

    match = _EMBEDDED_JOB_ID_RE.search(" ".join(dom.all_texts("script")))
    return match.group(1) if match else None


def is_search_results_url(url: str | None) -> bool:
    return bool(url) and "/jobs/search" in url


def rescan_in_main_world(page) -> str | None:
    """Last resort on search-results pages: re-scan anchors inside the page."""
    try:
        found = page.evaluate(MAIN_WORLD_SCAN_JS)
    except PlaywrightError as exc:
        log.debug("Main-world anchor scan failed: %s", exc)
        return None
    return normalize_linkedin_job_url(found)


def canonical_job_url(dom: Dom, page=None) -> str | None:
    """Resolve the canonical URL for the job shown in ``dom``."""
    resolved = resolve_canonical_job_url(collect_candidates(dom))
    if resolved:
        return resolved
    job_id = job_id_from_page(dom)
    if job_id:
        return f"{CANONICAL_BASE}{job_id}"
    if page is not None and is_search_results_url(dom.url):
        return rescan_in_main_world(page)
    return None
