"""User records, master resumes and tailored resumes in one JSON file."""
from __future__ import annotations

import fcntl
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from lazyme.config import DATA_DIR
from lazyme.errors import ErrorKind, PipelineError
from lazyme.latex import quick_validate
from lazyme.log import get_logger
from lazyme.models import TailoredResume, UserRecord

log = get_logger(__name__)

STORE_PATH: Path = DATA_DIR / "resumes.json"


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


def _user_to_dict(user: UserRecord) -> dict:
    return {
        "email": user.email,
        "name": user.name,
        "masterResume": user.master_document,
        "resumes": [r.to_dict() for r in user.resumes],
    }


def _user_from_dict(data: dict) -> UserRecord:
    return UserRecord(
        email=data["email"],
        name=data.get("name", ""),
        master_document=data.get("masterResume", ""),
        resumes=[TailoredResume.from_dict(r) for r in data.get("resumes", [])],
    )


class ResumeStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path or STORE_PATH)

    def _ensure(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            with open(self.path, "w", encoding="utf-8") as f:
                _lock(f)
                json.dump({"users": {}}, f)
                _unlock(f)
            log.info("Created resume store → %s", self.path.name)

    def _read(self) -> dict:
        self._ensure()
        with open(self.path, "r", encoding="utf-8") as f:
            _lock(f, exclusive=False)
            raw = f.read()
            _unlock(f)
        return json.loads(raw or '{"users": {}}')

    @contextmanager
    def _update(self) -> Iterator[dict]:
        """Read, mutate and rewrite the whole file under one exclusive lock."""
        self._ensure()
        with open(self.path, "r+", encoding="utf-8") as f:
            _lock(f)
            try:
                data = json.loads(f.read() or '{"users": {}}')
                yield data
                f.seek(0)
                f.truncate()
                json.dump(data, f, indent=2)
            finally:
                _unlock(f)

    @staticmethod
    def _key(email: str) -> str:
        return (email or "").strip().lower()

    def find_user(self, email: str) -> UserRecord | None:
        raw = self._read()["users"].get(self._key(email))
        return _user_from_dict(raw) if raw else None

    def ensure_user(self, email: str, name: str = "") -> UserRecord:
        key = self._key(email)
        if not key:
            raise PipelineError(ErrorKind.INVALID_INPUT, "An email address is required.")
        with self._update() as data:
            if key not in data["users"]:
                data["users"][key] = _user_to_dict(UserRecord(email=key, name=name))
                log.info("Created user %s", key)
            raw = data["users"][key]
        return _user_from_dict(raw)

    def replace_master_document(self, email: str, document: str) -> None:
        if not quick_validate(document):
            raise PipelineError(
                ErrorKind.INVALID_MASTER_RESUME,
                "Invalid LaTeX format. Please check your LaTeX syntax.",
            )
        key = self._key(email)
        with self._update() as data:
            user = data["users"].get(key)
            if user is None:
                raise PipelineError(ErrorKind.USER_NOT_FOUND, "User not found.")
            user["masterResume"] = document
        log.info("Master resume replaced for %s (%d chars)", key, len(document))

    def append_tailored_resume(self, email: str, resume: TailoredResume) -> str:
        if not quick_validate(resume.resume_document):
            raise PipelineError(
                ErrorKind.INVALID_GENERATED_RESUME,
                "Refusing to save a resume that is not valid LaTeX.",
            )
        key = self._key(email)
        with self._update() as data:
            user = data["users"].get(key)
            if user is None:
                raise PipelineError(ErrorKind.USER_NOT_FOUND, "User not found.")
            user["resumes"].append(resume.to_dict())
        log.debug("Saved resume %s: %s @ %s", resume.id, resume.job_title, resume.company)
        return resume.id

    def list_resumes(self, email: str) -> list[TailoredResume]:
        user = self.find_user(email)
        return list(user.resumes) if user else []

    def get_resume(self, email: str, resume_id: str) -> TailoredResume | None:
        for resume in self.list_resumes(email):
            if resume.id == resume_id:
                return resume
        return None

    def delete_resume(self, email: str, resume_id: str) -> bool:
        key = self._key(email)
        with self._update() as data:
            user = data["users"].get(key)
            if user is None:
                return False
            before = len(user["resumes"])
            user["resumes"] = [r for r in user["resumes"] if r.get("id") != resume_id]
            removed = len(user["resumes"]) < before
        if removed:
            log.debug("Deleted resume %s", resume_id)
        return removed

    def update_resume(
        self,
        email: str,
        resume_id: str,
        *,
        company: str,
        job_title: str,
        job_description: str,
        resume_document: str,
    ) -> TailoredResume:
        """Edit a saved resume in place; its id and creation time stay."""
        if not all(v and v.strip() for v in (company, job_title, job_description, resume_document)):
            raise PipelineError(
                ErrorKind.INVALID_INPUT,
                "Company name, job title, description, and resume content are required.",
            )
        if not quick_validate(resume_document):
            raise PipelineError(ErrorKind.INVALID_INPUT, "Resume contains invalid LaTeX.")

        key = self._key(email)
        with self._update() as data:
            user = data["users"].get(key)
            if user is None:
                raise PipelineError(ErrorKind.USER_NOT_FOUND, "User not found.")
            raw = next((r for r in user["resumes"] if r.get("id") == resume_id), None)
            if raw is None:
                raise PipelineError(ErrorKind.RESUME_NOT_FOUND, "Resume not found.")
            raw.update(
                company=company,
                jobTitle=job_title,
                jobDescription=job_description,
                resume=resume_document,
            )
            updated = TailoredResume.from_dict(raw)
        log.info("Updated resume %s: %s @ %s", resume_id, job_title, company)
        return updated
