"""Tests for resume scoring."""
import json

import pytest

from conftest import JOB_DESCRIPTION, TAILORED_RESUME
from lazyme.errors import TailoringError
from lazyme.scoring import score_resume


class TestScoreResume:
    def test_parses_fenced_json(self, fake_client):
        body = json.dumps({"score": 82, "pros": ["Python"], "cons": ["No Kafka"]})
        client = fake_client([f"```json\n{body}\n```"])

        result = score_resume(TAILORED_RESUME, JOB_DESCRIPTION, client)

        assert result.to_dict() == {"score": 82, "pros": ["Python"], "cons": ["No Kafka"]}
        request = client.calls[0]
        assert request.temperature == 0.5
        assert request.system_instruction == ""
        assert TAILORED_RESUME in request.user_prompt

    def test_score_is_clamped(self, fake_client):
        client = fake_client([json.dumps({"score": 140, "pros": [], "cons": []})])
        assert score_resume(TAILORED_RESUME, JOB_DESCRIPTION, client).score == 100

    @pytest.mark.parametrize("raw", [
        "I think it is a good fit.",
        json.dumps({"score": "high", "pros": [], "cons": []}),
        json.dumps({"score": True, "pros": [], "cons": []}),
        json.dumps({"score": 50, "pros": "many"}),
        json.dumps([1, 2, 3]),
    ])
    def test_malformed_responses(self, fake_client, raw):
        with pytest.raises(TailoringError, match="Failed to parse resume scoring response"):
            score_resume(TAILORED_RESUME, JOB_DESCRIPTION, fake_client([raw]))
