"""Tailor a master resume to one job posting.

One prompt per attempt, the same prompt every time. Output is unwrapped
from any code fence, validated, repaired once if needed, and re-validated;
a result that still fails counts as a failed attempt.
"""
from __future__ import annotations

from typing import Protocol

from openai import OpenAIError

from lazyme import latex, prompts
from lazyme.config import load_settings
from lazyme.errors import ErrorKind, TailoringError
from lazyme.llm_client import LLMClient, TextCompletionRequest, service_error
from lazyme.log import get_logger
from lazyme.retry import RetryExhausted, RetryPolicy, run_with_policy

log = get_logger(__name__)


class CompletionClient(Protocol):
    def complete(self, request: TextCompletionRequest) -> str: ...


class TailoringOrchestrator:
    def __init__(
        self,
        client: CompletionClient | None = None,
        *,
        max_attempts: int | None = None,
        temperature: float | None = None,
    ) -> None:
        settings = load_settings()["tailoring"]
        self._client = client
        self.max_attempts = max(2, min(3, max_attempts or settings["max_attempts"]))
        self.temperature = settings["temperature"] if temperature is None else temperature

    @property
    def client(self) -> CompletionClient:
        if self._client is None:
            self._client = LLMClient()
        return self._client

    def tailor(self, master: str, job_title: str, job_description: str) -> str:
        if not (master and master.strip()) or not (job_title and job_title.strip()) \
                or not (job_description and job_description.strip()):
            raise TailoringError(
                ErrorKind.INVALID_INPUT,
                "Master resume, job title and job description are all required.",
            )
        if not latex.quick_validate(master):
            raise TailoringError(
                ErrorKind.INVALID_MASTER_RESUME,
                "Your master resume contains invalid LaTeX. Please fix it before generating.",
            )

        request = TextCompletionRequest(
            system_instruction=prompts.SYSTEM_INSTRUCTION,
            user_prompt=prompts.tailor_prompt(master, job_title, job_description),
            temperature=self.temperature,
        )

        # Missing key fails here, outside the attempt loop.
        client = self.client

        def attempt(n: int) -> str:
            log.info("Tailoring attempt %d/%d for %r", n, self.max_attempts, job_title)
            try:
                return self._generate_once(client, request)
            except OpenAIError as exc:
                raise service_error(exc) from exc

        try:
            result = run_with_policy(
                RetryPolicy(self.max_attempts),
                attempt,
                retry_on=(TailoringError,),
            )
        except RetryExhausted as exc:
            raise TailoringError(
                ErrorKind.RESUME_GENERATION_FAILED,
                f"Could not produce valid output after {exc.attempts} attempts.",
                details={"lastError": str(exc.last_error)},
            ) from exc

        log.info("Tailored resume ready after %d attempt(s)", result.attempts)
        return result.value

    def _generate_once(self, client: CompletionClient, request: TextCompletionRequest) -> str:
        document = latex.strip_code_fence(client.complete(request))
        if latex.quick_validate(document):
            return document

        log.warning("Generated resume failed LaTeX validation, attempting repair")
        repaired = latex.repair(document)
        if not latex.quick_validate(repaired):
            raise TailoringError(
                ErrorKind.INVALID_GENERATED_RESUME,
                "Generated resume contains invalid LaTeX that could not be automatically fixed",
            )
        return repaired


def tailor_resume(
    master: str,
    job_title: str,
    job_description: str,
    *,
    client: CompletionClient | None = None,
) -> str:
    return TailoringOrchestrator(client).tailor(master, job_title, job_description)
