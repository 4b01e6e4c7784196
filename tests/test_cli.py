"""Tests for the run_tailor command line."""
import json

import pytest

import run_tailor
from conftest import MASTER_RESUME, TAILORED_RESUME
from lazyme.models import TailoredResume
from lazyme.store import ResumeStore


@pytest.fixture
def store_path(tmp_path, monkeypatch):
    path = tmp_path / "resumes.json"
    monkeypatch.setattr("lazyme.store.STORE_PATH", path)
    return path


class TestValidate:
    def test_valid_file(self, tmp_path):
        tex = tmp_path / "master.tex"
        tex.write_text(MASTER_RESUME)
        assert run_tailor.main(["validate", str(tex)]) == 0

    def test_invalid_file(self, tmp_path):
        tex = tmp_path / "broken.tex"
        tex.write_text(r"\begin{itemize}\item{A")
        assert run_tailor.main(["validate", str(tex)]) == 1


class TestStoreCommands:
    def test_upload_master_then_list(self, tmp_path, store_path, capsys):
        tex = tmp_path / "master.tex"
        tex.write_text(MASTER_RESUME)
        assert run_tailor.main(["upload-master", str(tex), "--email", "ada@example.com"]) == 0

        store = ResumeStore(store_path)
        assert store.find_user("ada@example.com").master_document == MASTER_RESUME
        store.append_tailored_resume("ada@example.com", TailoredResume(
            company="Acme", job_title="Backend Engineer",
            job_description="Python", resume_document=TAILORED_RESUME,
        ))

        assert run_tailor.main(["list", "--email", "ada@example.com"]) == 0
        assert "Backend Engineer @ Acme" in capsys.readouterr().out

    def test_invalid_master_exits_2(self, tmp_path, store_path):
        tex = tmp_path / "broken.tex"
        tex.write_text(r"\section{Oops")
        assert run_tailor.main(["upload-master", str(tex), "--email", "ada@example.com"]) == 2


def test_extract_rejects_non_job_url_without_browser():
    assert run_tailor.main(["extract", "https://example.com/careers/1"]) == 2


class TestScore:
    def _saved_resume(self, store_path):
        store = ResumeStore(store_path)
        store.ensure_user("ada@example.com")
        return store.append_tailored_resume("ada@example.com", TailoredResume(
            company="Acme", job_title="Backend Engineer",
            job_description="Python pipelines", resume_document=TAILORED_RESUME,
        ))

    def test_prints_score(self, store_path, fake_client, monkeypatch, capsys):
        resume_id = self._saved_resume(store_path)
        client = fake_client(['{"score": 82, "pros": ["Python"], "cons": ["No Spark"]}'])
        monkeypatch.setattr("lazyme.llm_client.LLMClient", lambda: client)

        assert run_tailor.main(["score", resume_id, "--email", "ada@example.com"]) == 0

        assert json.loads(capsys.readouterr().out) == {
            "score": 82, "pros": ["Python"], "cons": ["No Spark"],
        }
        assert "Python pipelines" in client.calls[0].user_prompt

    def test_unknown_resume_exits_2(self, store_path, fake_client, monkeypatch):
        self._saved_resume(store_path)
        client = fake_client([])
        monkeypatch.setattr("lazyme.llm_client.LLMClient", lambda: client)
        assert run_tailor.main(["score", "missing", "--email", "ada@example.com"]) == 2
        assert client.calls == []

    def test_unparseable_score_exits_2(self, store_path, fake_client, monkeypatch):
        resume_id = self._saved_resume(store_path)
        monkeypatch.setattr("lazyme.llm_client.LLMClient", lambda: fake_client(["not json"]))
        assert run_tailor.main(["score", resume_id, "--email", "ada@example.com"]) == 2


def test_upload_non_utf8_master_exits_2(tmp_path, store_path):
    tex = tmp_path / "latin1.tex"
    tex.write_bytes(MASTER_RESUME.replace("Acme", "Café").encode("latin-1"))
    assert run_tailor.main(["upload-master", str(tex), "--email", "ada@example.com"]) == 2
    assert ResumeStore(store_path).find_user("ada@example.com").master_document == ""
