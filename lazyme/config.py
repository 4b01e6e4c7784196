"""Load settings from config/settings.yaml and the environment."""
from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from lazyme.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = ROOT_DIR / "data"
OUTPUT_DIR: Path = ROOT_DIR / "output"

PRODUCTION_URL = "https://lazy-me-five.vercel.app"
DEVELOPMENT_URL = "http://localhost:3000"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"

DEFAULTS: dict[str, Any] = {
    "extraction": {
        "timeout_ms": 30_000,
        "headless": True,
        "dismiss_passes": 2,
    },
    "tailoring": {
        "max_attempts": 2,
        "temperature": 0.3,
        "model": "llama-3.3-70b-versatile",
        "base_url": GROQ_BASE_URL,
    },
    "web_app": {
        "base_url": PRODUCTION_URL,
        "dev_url": DEVELOPMENT_URL,
        "development": False,
    },
    "session": {
        "cookie_name": "__session",
    },
    "rendering": {
        "external_url": "https://latexonline.cc/compile",
        "max_external_chars": 8000,
        "timeout_s": 20,
    },
}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_settings(path: Path | None = None) -> dict[str, Any]:
    """Defaults, then settings.yaml, then environment overrides."""
    path = path or SETTINGS_PATH
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        log.debug("Loaded settings from %s", path)

    settings = _merge(DEFAULTS, data)

    tailoring = settings["tailoring"]
    tailoring["model"] = get_env("GROQ_LLM_MODEL") or tailoring["model"]
    tailoring["base_url"] = get_env("LLM_BASE_URL") or tailoring["base_url"]
    # Content-quality retries stay small: two or three full attempts.
    tailoring["max_attempts"] = max(2, min(3, int(tailoring["max_attempts"])))

    web = settings["web_app"]
    web["base_url"] = get_env("WEB_APP_URL") or web["base_url"]
    if get_env("LAZYME_DEV").lower() in ("1", "true", "yes"):
        web["development"] = True

    return settings


def web_app_url(settings: dict[str, Any]) -> str:
    web = settings["web_app"]
    return web["dev_url"] if web.get("development") else web["base_url"]


def api_base_url(settings: dict[str, Any]) -> str:
    return web_app_url(settings).rstrip("/") + "/api"


def is_serverless() -> bool:
    return any(get_env(k) for k in ("VERCEL", "AWS_LAMBDA_FUNCTION_NAME", "LAZYME_SERVERLESS"))


def ensure_dirs() -> None:
    for d in (DATA_DIR, OUTPUT_DIR):
        d.mkdir(parents=True, exist_ok=True)
