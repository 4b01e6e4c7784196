from .api import BackendClient
from .coordinator import BackgroundCoordinator, resolve_job_url, wait_until_ready
from .messages import ResumeBlob, parse_message
from .session import PlaywrightCookieStore, RequestsCookieStore, SessionManager, candidate_origins

__all__ = [
    "BackendClient", "BackgroundCoordinator", "ResumeBlob", "SessionManager",
    "PlaywrightCookieStore", "RequestsCookieStore",
    "candidate_origins", "parse_message", "resolve_job_url", "wait_until_ready",
    "build_coordinator",
]


def build_coordinator(cookies, settings: dict | None = None, *, page_provider=None) -> BackgroundCoordinator:
    client = BackendClient(settings)
    session = SessionManager(cookies, client.settings, client=client)
    return BackgroundCoordinator(session, client, page_provider=page_provider)
