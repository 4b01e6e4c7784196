"""Session token lookup across the web app's cookie origins."""
from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import urlparse

from playwright.sync_api import Error as PlaywrightError

from lazyme.config import DEVELOPMENT_URL, PRODUCTION_URL, load_settings, web_app_url
from lazyme.log import get_logger

log = get_logger(__name__)


class CookieStore(Protocol):
    def get(self, url: str, name: str) -> str | None: ...

    def get_all(self, name: str) -> list[str]: ...


class PlaywrightCookieStore:
    """Cookies of a Playwright ``BrowserContext``."""

    def __init__(self, context) -> None:
        self.context = context

    def get(self, url: str, name: str) -> str | None:
        try:
            cookies = self.context.cookies([url])
        except PlaywrightError as exc:
            log.debug("Cookie read failed for %s: %s", url, str(exc)[:120])
            return None
        for c in cookies:
            if c.get("name") == name:
                return c.get("value")
        return None

    def get_all(self, name: str) -> list[str]:
        try:
            cookies = self.context.cookies()
        except PlaywrightError as exc:
            log.debug("Cookie enumeration failed: %s", str(exc)[:120])
            return []
        return [c["value"] for c in cookies if c.get("name") == name and c.get("value")]


class RequestsCookieStore:
    """Cookies of a ``requests`` cookie jar."""

    def __init__(self, jar) -> None:
        self.jar = jar

    def get(self, url: str, name: str) -> str | None:
        host = (urlparse(url).hostname or "").lower()
        for cookie in self.jar:
            domain = (cookie.domain or "").lstrip(".").lower()
            if cookie.name == name and (not domain or host == domain or host.endswith("." + domain)):
                return cookie.value
        return None

    def get_all(self, name: str) -> list[str]:
        return [c.value for c in self.jar if c.name == name and c.value]


def candidate_origins(settings: dict[str, Any]) -> list[str]:
    """Distinct origins the session cookie may live on, as ``origin/`` URLs."""
    base = web_app_url(settings).rstrip("/")
    raw = [base, base + "/", base + "/resumes", PRODUCTION_URL, DEVELOPMENT_URL]
    seen: list[str] = []
    for url in raw:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            log.warning("Skipping invalid URL in origin list: %s", url)
            continue
        origin = f"{parsed.scheme}://{parsed.netloc}"
        if origin not in seen:
            seen.append(origin)
    return [f"{o}/" for o in seen]


class SessionManager:
    """Holds the opaque bearer token read from the web app's cookie."""

    def __init__(self, cookies: CookieStore, settings: dict | None = None, client=None) -> None:
        self.cookies = cookies
        self.settings = settings or load_settings()
        self.client = client
        self.cookie_name = self.settings["session"]["cookie_name"]
        self.session_token: str | None = None
        self.user_info: dict[str, Any] | None = None
        self.is_authenticated = False
        self.is_ready = False

    def find_token(self) -> str | None:
        for url in candidate_origins(self.settings):
            token = self.cookies.get(url, self.cookie_name)
            if token:
                log.debug("Session cookie found on %s", url)
                return token
        for token in self.cookies.get_all(self.cookie_name):
            if token:
                return token
        log.info("No session cookie found on any origin")
        return None

    def init(self) -> None:
        self.sync()
        self.is_ready = True

    def sync(self) -> bool:
        token = self.find_token()
        if not token:
            return False
        user = self.client.fetch_user(token) if self.client is not None else {}
        if user is None:
            log.warning("Session cookie present but the backend rejected it")
            return False
        self.store(token, user)
        return True

    def store(self, token: str, user_info: dict[str, Any] | None) -> None:
        self.session_token = token
        self.user_info = user_info or {}
        self.is_authenticated = True

    def clear(self) -> None:
        self.session_token = None
        self.user_info = None
        self.is_authenticated = False
        log.info("Session cleared")
