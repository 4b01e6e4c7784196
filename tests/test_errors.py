"""Tests for error kinds and upstream error sanitization."""
import pytest

from lazyme.errors import (
    ErrorKind,
    ExtractionError,
    PipelineError,
    RenderError,
    display_message,
    refine_error_text,
    sanitize_error_text,
)


class TestPipelineError:
    def test_status_and_payload(self):
        err = ExtractionError(ErrorKind.TIMEOUT, "Request timed out.")
        assert err.status == 504
        assert err.to_payload() == {"error": "Request timed out.", "errorType": "timeout"}

    def test_defaults(self):
        err = ExtractionError()
        assert err.kind == ErrorKind.EXTRACTION_FAILED
        assert err.status == 422
        assert err.message.startswith("An unexpected error occurred")

    def test_render_error_carries_retryable_and_details(self):
        err = RenderError("service down", retryable=True, details={"alternatives": ["Overleaf"]})
        assert err.kind == ErrorKind.PDF_GENERATION_FAILED
        assert err.retryable is True
        assert err.to_payload()["alternatives"] == ["Overleaf"]

    def test_unknown_kind_is_500(self):
        assert PipelineError("something_new", "x").status == 500


class TestSanitize:
    @pytest.mark.parametrize("raw, expected", [
        ('{"error": "Quota exceeded"}', "Quota exceeded"),
        ('{"message": "Bad gateway"}', "Bad gateway"),
        ('"plain json string"', "plain json string"),
        ('{"error": "<html><body><h1>502 Bad Gateway</h1></body></html>"}', "502 Bad Gateway"),
        ('{"message": "<p>Upstream\\n  <b>down</b></p>"}', "Upstream down"),
        ("<html><body><h1>502</h1>  <p>Bad   Gateway</p></body></html>", "502 Bad Gateway"),
        ("", ""),
        (None, ""),
    ])
    def test_sanitize(self, raw, expected):
        assert sanitize_error_text(raw) == expected

    def test_refine_collapses_prefixes_and_css(self):
        raw = "Resume generation failed: Failed: compile error body { color: red }"
        assert refine_error_text(raw) == "compile error"

    def test_refine_bounds_length(self):
        assert len(refine_error_text("x" * 500)) == 200

    def test_display_message_strips_markup_inside_json(self):
        raw = '{"error": "<html><body><h1>502 Bad Gateway</h1></body></html>"}'
        assert display_message(raw, 502) == "Resume generation failed: 502 502 Bad Gateway."

    def test_display_message(self):
        assert display_message('{"error": "Failed: quota"}', 429) == "Resume generation failed: 429 quota."
        assert display_message("", None) == "Resume generation failed."
