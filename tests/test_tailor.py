"""Tests for the tailoring orchestrator."""
import pytest
from openai import OpenAIError

from conftest import JOB_DESCRIPTION, MASTER_RESUME, TAILORED_RESUME
from lazyme import latex, prompts
from lazyme.errors import ErrorKind, TailoringError
from lazyme.tailor import TailoringOrchestrator, tailor_resume


class TestTailor:
    def test_valid_first_response(self, fake_client):
        client = fake_client([TAILORED_RESUME])
        result = TailoringOrchestrator(client).tailor(MASTER_RESUME, "Backend Engineer", JOB_DESCRIPTION)

        assert result == TAILORED_RESUME
        assert len(client.calls) == 1
        request = client.calls[0]
        assert request.system_instruction == prompts.SYSTEM_INSTRUCTION
        assert request.temperature == 0.3
        assert prompts.FIDELITY_RULES in request.user_prompt
        assert MASTER_RESUME in request.user_prompt
        assert '"Backend Engineer"' in request.user_prompt

    def test_dates_preserved(self, fake_client):
        client = fake_client([TAILORED_RESUME])
        result = tailor_resume(MASTER_RESUME, "Backend Engineer", JOB_DESCRIPTION, client=client)
        assert latex.extract_dates(result) == latex.extract_dates(MASTER_RESUME)
        assert {"Jan 2020", "Present", "05/2017", "Dec 2019", "2017"} <= latex.extract_dates(result)

    def test_code_fence_is_stripped(self, fake_client):
        client = fake_client([f"```latex\n{TAILORED_RESUME}\n```"])
        result = TailoringOrchestrator(client).tailor(MASTER_RESUME, "Backend Engineer", JOB_DESCRIPTION)
        assert result == TAILORED_RESUME

    def test_repairable_output_is_repaired(self, fake_client):
        truncated = TAILORED_RESUME.replace(r"\end{itemize}" + "\n" + r"\end{document}", "")
        client = fake_client([truncated])
        result = TailoringOrchestrator(client).tailor(MASTER_RESUME, "Backend Engineer", JOB_DESCRIPTION)
        assert latex.quick_validate(result)
        assert result.endswith(r"\end{itemize}\end{document}")
        assert len(client.calls) == 1

    def test_retries_until_valid(self, fake_client):
        client = fake_client([
            "Sorry, I cannot help with that.",
            r"\section}{Broken",
            TAILORED_RESUME,
        ])
        result = TailoringOrchestrator(client, max_attempts=3).tailor(
            MASTER_RESUME, "Backend Engineer", JOB_DESCRIPTION,
        )
        assert result == TAILORED_RESUME
        assert len(client.calls) == 3
        # The same prompt is sent on every attempt.
        assert len({c.user_prompt for c in client.calls}) == 1

    def test_exhaustion(self, fake_client):
        client = fake_client(["no latex here", "still none"])
        with pytest.raises(TailoringError) as excinfo:
            TailoringOrchestrator(client).tailor(MASTER_RESUME, "Backend Engineer", JOB_DESCRIPTION)
        assert excinfo.value.kind == ErrorKind.RESUME_GENERATION_FAILED
        assert "after 2 attempts" in excinfo.value.message
        assert "could not be automatically fixed" in excinfo.value.details["lastError"]
        assert len(client.calls) == 2

    def test_client_failures_count_as_attempts(self, fake_client):
        client = fake_client([
            TailoringError(message="No text content found in the text generation response"),
            TAILORED_RESUME,
        ])
        result = TailoringOrchestrator(client).tailor(MASTER_RESUME, "Backend Engineer", JOB_DESCRIPTION)
        assert result == TAILORED_RESUME
        assert len(client.calls) == 2

    def test_invalid_master_makes_no_calls(self, fake_client):
        client = fake_client([TAILORED_RESUME])
        with pytest.raises(TailoringError) as excinfo:
            TailoringOrchestrator(client).tailor(r"\section{Oops", "Backend Engineer", JOB_DESCRIPTION)
        assert excinfo.value.kind == ErrorKind.INVALID_MASTER_RESUME
        assert client.calls == []

    @pytest.mark.parametrize("master, title, description", [
        ("", "Backend Engineer", JOB_DESCRIPTION),
        (MASTER_RESUME, "  ", JOB_DESCRIPTION),
        (MASTER_RESUME, "Backend Engineer", ""),
    ])
    def test_empty_inputs(self, fake_client, master, title, description):
        client = fake_client([])
        with pytest.raises(TailoringError) as excinfo:
            TailoringOrchestrator(client).tailor(master, title, description)
        assert excinfo.value.kind == ErrorKind.INVALID_INPUT
        assert client.calls == []


class TestAttemptBounds:
    @pytest.mark.parametrize("requested, expected", [(1, 2), (2, 2), (3, 3), (10, 3)])
    def test_clamped(self, fake_client, requested, expected):
        assert TailoringOrchestrator(fake_client([]), max_attempts=requested).max_attempts == expected

    def test_default_from_settings(self, fake_client):
        assert TailoringOrchestrator(fake_client([])).max_attempts == 2


class TestServiceFailures:
    def test_openai_error_becomes_typed_failure(self, fake_client):
        raw = "Error code: 401 - {'error': {'message': 'Invalid API Key'}}"
        client = fake_client([OpenAIError(raw), OpenAIError(raw)])
        with pytest.raises(TailoringError) as excinfo:
            TailoringOrchestrator(client).tailor(MASTER_RESUME, "Backend Engineer", JOB_DESCRIPTION)
        assert excinfo.value.kind == ErrorKind.RESUME_GENERATION_FAILED
        assert "Invalid API Key" not in excinfo.value.details["lastError"]
        assert len(client.calls) == 2

    def test_openai_error_then_success(self, fake_client):
        client = fake_client([OpenAIError("upstream exploded"), TAILORED_RESUME])
        result = TailoringOrchestrator(client).tailor(MASTER_RESUME, "Backend Engineer", JOB_DESCRIPTION)
        assert result == TAILORED_RESUME

    def test_missing_api_key_is_reported_immediately(self):
        with pytest.raises(TailoringError) as excinfo:
            TailoringOrchestrator().tailor(MASTER_RESUME, "Backend Engineer", JOB_DESCRIPTION)
        assert "GROQ_API_KEY" in excinfo.value.message
        assert "attempts" not in excinfo.value.message
