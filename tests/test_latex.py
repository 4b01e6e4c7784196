"""Tests for LaTeX structural validation and repair."""
import logging

import pytest

from lazyme.errors import ErrorKind, PipelineError
from lazyme.latex import (
    decode_document,
    extract_dates,
    looks_like_document,
    quick_validate,
    repair,
    strip_code_fence,
    validate,
)

from conftest import MASTER_RESUME


class TestQuickValidate:
    def test_accepts_balanced_document(self):
        assert quick_validate(MASTER_RESUME) is True

    @pytest.mark.parametrize("doc", ["", "   \n\t", None])
    def test_rejects_empty_input(self, doc):
        assert quick_validate(doc) is False

    def test_rejects_plain_prose(self):
        assert quick_validate("hello world") is False

    def test_rejects_prose_with_balanced_braces(self):
        assert quick_validate("just {some} text") is False

    def test_rejects_unclosed_brace(self):
        assert quick_validate(r"\textbf{bold") is False

    def test_rejects_brace_closed_before_opened(self):
        assert quick_validate(r"\textbf}{x") is False

    def test_rejects_unclosed_environment(self):
        assert quick_validate(r"\begin{itemize}\item{A}") is False

    def test_rejects_end_without_open_begin(self):
        # Counts match, but the end comes first.
        assert quick_validate(r"\end{itemize}\begin{itemize}") is False

    def test_misordered_but_count_balanced_environments_pass(self):
        assert quick_validate(r"\begin{a}\begin{b}\end{a}\end{b}") is True

    def test_command_at_end_of_string_counts(self):
        assert quick_validate(r"text \newpage") is True


class TestRepair:
    def test_closes_brace_and_environment(self):
        fixed = repair(r"\begin{itemize}\item{A")
        assert fixed == r"\begin{itemize}\item{A}\end{itemize}"
        assert quick_validate(fixed) is True

    def test_appends_missing_closers_in_reverse_open_order(self):
        fixed = repair(r"\begin{A}\begin{B}\begin{A} x")
        assert fixed.endswith(r"\end{A}\end{B}\end{A}")
        assert quick_validate(fixed) is True

    def test_appends_exactly_the_missing_count(self):
        doc = r"\begin{A}\begin{B}\begin{A}x\end{A}"
        fixed = repair(doc)
        assert fixed == doc + r"\end{B}\end{A}"
        assert fixed.count(r"\end{A}") == fixed.count(r"\begin{A}")

    def test_leaves_balanced_document_untouched(self):
        assert repair(MASTER_RESUME) == MASTER_RESUME

    @pytest.mark.parametrize("doc", [
        r"\begin{itemize}\item{A",
        r"\section{Skills",
        r"\begin{A}\begin{B}\begin{A} x",
        MASTER_RESUME,
    ])
    def test_is_idempotent_once_balanced(self, doc):
        once = repair(doc)
        assert repair(once) == once

    def test_cannot_fix_missing_commands(self):
        assert quick_validate(repair("hello world")) is False

    def test_never_raises_on_empty(self):
        assert repair("") == ""

    def test_does_not_unbalance_a_valid_document(self):
        assert quick_validate(repair(MASTER_RESUME)) is True


class TestHelpers:
    def test_validate_warns_on_suspicious_constructs(self, caplog):
        doc = r"\documentclass{article}\section{}"
        with caplog.at_level(logging.WARNING):
            assert validate(doc) is True
        assert "empty section title" in caplog.text

    def test_validate_fails_like_quick_validate(self):
        assert validate("hello") is False

    def test_looks_like_document(self):
        assert looks_like_document(MASTER_RESUME)
        assert looks_like_document(r"\begin{document}x\end{document}")
        assert not looks_like_document(r"\section{Only a fragment}")

    def test_extract_dates(self):
        assert extract_dates(MASTER_RESUME) == {"Jan 2020", "Present", "05/2017", "Dec 2019", "2017"}

    def test_strip_code_fence(self):
        fenced = "```latex\n\\documentclass{article}\n```"
        assert strip_code_fence(fenced) == r"\documentclass{article}"

    def test_strip_code_fence_without_language(self):
        assert strip_code_fence("```\n\\section{A}\n```\n") == r"\section{A}"

    def test_strip_code_fence_leaves_plain_text(self):
        assert strip_code_fence("  \\section{A}  ") == r"\section{A}"


class TestDecodeDocument:
    def test_utf8_with_bom(self):
        assert decode_document("\ufeff\\section{Café}".encode("utf-8")) == "\\section{Café}"

    def test_non_utf8_is_a_typed_error(self):
        with pytest.raises(PipelineError) as excinfo:
            decode_document("\\section{Café}".encode("latin-1"))
        assert excinfo.value.kind == ErrorKind.INVALID_INPUT
        assert "UTF-8" in excinfo.value.message
