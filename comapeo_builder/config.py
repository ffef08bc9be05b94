import os
from dotenv import load_dotenv
from pathlib import Path

load_dotenv()


def _read_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def require_build_api_url() -> str:
    """
    Base URL of the build API, from BUILD_API_URL or else BUILD_API_UPSTREAM.
    There is no default; startup stops when both are unset.
    """
    api_url = _read_env("BUILD_API_URL")
    if api_url:
        return api_url.rstrip("/")

    api_upstream = _read_env("BUILD_API_UPSTREAM")
    if api_upstream:
        return api_upstream.rstrip("/")

    raise RuntimeError("Set BUILD_API_URL or BUILD_API_UPSTREAM in .env before starting the app.")


PROJECT_ROOT = Path(__file__).resolve().parents[1]

BUILD_API_URL = require_build_api_url()
BUILD_API_MAX_RETRIES = int(os.getenv("BUILD_API_MAX_RETRIES", "3"))
BUILD_API_RETRY_DELAY = float(os.getenv("BUILD_API_RETRY_DELAY", "1.0"))
BUILD_API_TIMEOUT = float(os.getenv("BUILD_API_TIMEOUT", "300"))
BUILD_MIN_BUNDLE_BYTES = int(os.getenv("BUILD_MIN_BUNDLE_BYTES", "100"))
BUILDS_DIR = Path(_read_env("BUILDS_DIR") or PROJECT_ROOT / "builds")
PRIMARY_LANGUAGE = _read_env("PRIMARY_LANGUAGE") or "en"
LOG_LEVEL = (_read_env("LOG_LEVEL") or "INFO").upper()
