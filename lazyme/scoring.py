"""Score a resume against a job description."""
from __future__ import annotations

import json
from dataclasses import dataclass, field

from lazyme import prompts
from lazyme.errors import ErrorKind, TailoringError
from lazyme.latex import strip_code_fence
from lazyme.llm_client import TextCompletionRequest
from lazyme.log import get_logger

log = get_logger(__name__)


@dataclass
class ResumeScore:
    score: float
    pros: list[str] = field(default_factory=list)
    cons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"score": self.score, "pros": self.pros, "cons": self.cons}


def score_resume(document: str, job_description: str, client) -> ResumeScore:
    if not document or not job_description:
        raise TailoringError(ErrorKind.INVALID_INPUT, "Resume and job description are required.")

    raw = client.complete(TextCompletionRequest(
        system_instruction="",
        user_prompt=prompts.score_prompt(document, job_description),
        temperature=0.5,
    ))
    try:
        data = json.loads(strip_code_fence(raw))
    except ValueError as exc:
        log.error("Score response was not JSON: %s", raw[:120])
        raise TailoringError(message="Failed to parse resume scoring response") from exc

    score = data.get("score") if isinstance(data, dict) else None
    if (
        not isinstance(score, (int, float))
        or isinstance(score, bool)
        or not isinstance(data.get("pros"), list)
        or not isinstance(data.get("cons"), list)
    ):
        raise TailoringError(message="Failed to parse resume scoring response")

    return ResumeScore(
        score=max(0, min(100, score)),
        pros=[str(p) for p in data["pros"]],
        cons=[str(c) for c in data["cons"]],
    )
