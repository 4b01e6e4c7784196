"""Tests for the data models."""
from lazyme.models import ExtractionAttempt, JobPosting, SiteType, TailoredResume


class TestJobPosting:
    def test_usable_needs_title_and_long_description(self):
        assert JobPosting("Engineer", "Acme", "x" * 50).is_usable()
        assert not JobPosting("Engineer", "Acme", "x" * 49).is_usable()
        assert not JobPosting("", "Acme", "x" * 80).is_usable()

    def test_to_dict_uses_wire_names(self):
        job = JobPosting("Engineer", "Acme", "desc", site_type=SiteType.INDEED)
        assert job.to_dict()["companyName"] == "Acme"
        assert job.to_dict()["siteType"] == "indeed"


def test_tailored_resume_survives_serialization():
    resume = TailoredResume("Acme", "Engineer", "Python", r"\section{A}")
    restored = TailoredResume.from_dict(resume.to_dict())
    assert restored == resume


def test_extraction_attempt_budget():
    attempt = ExtractionAttempt(budget_ms=0)
    assert attempt.remaining_ms() == 0
    assert attempt.expired()
    assert ExtractionAttempt(budget_ms=60_000).remaining_ms() > 0
