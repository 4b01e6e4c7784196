"""
Shared fixtures.

Nothing in the suite launches a browser, calls the LLM or touches the
network: pages, clients and HTTP sessions are all fakes.
"""
import copy
import os

import pytest

os.environ.setdefault("LAZYME_NO_LOG_FILE", "1")

from lazyme.config import DEFAULTS  # noqa: E402
from lazyme.llm_client import TextCompletionRequest  # noqa: E402

_ISOLATED_VARS = (
    "GROQ_API_KEY", "GROQ_LLM_MODEL", "LLM_BASE_URL", "WEB_APP_URL", "LAZYME_DEV",
    "CHROME_PATH", "VERCEL", "AWS_LAMBDA_FUNCTION_NAME", "LAZYME_SERVERLESS",
)

MASTER_RESUME = r"""\documentclass{article}
\begin{document}
\section{Experience}
\begin{itemize}
\item{Software Engineer, Acme Corp, Jan 2020 -- Present}
\item{Built data pipelines in Python processing 2M events per day}
\item{Junior Developer, Initech, 05/2017 -- Dec 2019}
\end{itemize}
\section{Education}
\begin{itemize}
\item{BSc Computer Science, State University, 2017}
\end{itemize}
\end{document}"""

TAILORED_RESUME = r"""\documentclass{article}
\begin{document}
\section{Experience}
\begin{itemize}
\item{Software Engineer, Acme Corp, Jan 2020 -- Present}
\item{Built Python data pipelines processing 2M events per day}
\item{Junior Developer, Initech, 05/2017 -- Dec 2019}
\end{itemize}
\section{Education}
\begin{itemize}
\item{BSc Computer Science, State University, 2017}
\end{itemize}
\end{document}"""

JOB_DESCRIPTION = (
    "We are looking for a backend engineer with strong Python experience to build "
    "and operate data pipelines at scale."
)


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    for name in _ISOLATED_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings():
    return copy.deepcopy(DEFAULTS)


class FakeCompletionClient:
    """Returns canned responses in order and records every request."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls: list[TextCompletionRequest] = []

    def complete(self, request: TextCompletionRequest) -> str:
        self.calls.append(request)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def fake_client():
    return FakeCompletionClient
