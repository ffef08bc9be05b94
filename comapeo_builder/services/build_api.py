from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from urllib.parse import unquote

import requests

logger = logging.getLogger(__name__)

BUNDLE_CONTENT_TYPES = ("application/octet-stream", "application/zip")
FILENAME_STAR_PATTERN = re.compile(r"filename\*\s*=\s*(?:[\w-]+'[^']*')?([^;]+)", re.IGNORECASE)
FILENAME_PATTERN = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.IGNORECASE)


class BuildApiError(RuntimeError):
    """Build API kept failing after every retry."""

    def __init__(self, message: str, attempts: int, last_error: str):
        self.attempts = attempts
        self.last_error = last_error
        self.timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        super().__init__(f"{message} [{self.timestamp}]")


class _AttemptFailed(Exception):
    pass


@dataclass
class BuildArtifact:
    content: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


def filename_from_disposition(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    match = FILENAME_STAR_PATTERN.search(header)
    if match:
        return unquote(match.group(1).strip().strip('"')) or None
    match = FILENAME_PATTERN.search(header)
    if match:
        return match.group(1).strip() or None
    return None


def describe_error_body(text: str, status_code: int) -> str:
    """
    Error responses look like {"error": "...", "message": "...", "details": {"errors": [...]}}.
    """
    try:
        body = json.loads(text)
    except (TypeError, ValueError):
        body = None

    if not isinstance(body, dict):
        snippet = (text or "").strip()[:200]
        if status_code == 200:
            return "API returned unexpected response format"
        return f"API request failed with status {status_code}: {snippet}"

    message = body.get("message") or body.get("error") or "Unknown error"
    prefix = "API Error" if status_code == 200 else f"API Error ({status_code})"
    details = body.get("details") or {}
    errors = details.get("errors") if isinstance(details, dict) else None
    if errors:
        return f"{prefix}: {message} - {', '.join(str(err) for err in errors)}"
    return f"{prefix}: {message}"


class BuildApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 300,
        min_bundle_bytes: int = 100,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.max_retries = max(0, max_retries)
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.min_bundle_bytes = min_bundle_bytes
        self.session = session or requests.Session()
        self.sleep = sleep

    def _attempt(self, payload: Dict[str, Any]) -> BuildArtifact:
        try:
            response = self.session.post(f"{self.base_url}/build", json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            raise _AttemptFailed(f"Build request timed out after {self.timeout}s") from exc
        except requests.exceptions.RequestException as exc:
            raise _AttemptFailed(f"Network error or API request failed: {exc}") from exc

        content_type = response.headers.get("Content-Type", "")
        logger.info("Build API responded %s (%s, %d bytes)", response.status_code, content_type, len(response.content))

        if response.status_code != 200 or not any(kind in content_type for kind in BUNDLE_CONTENT_TYPES):
            raise _AttemptFailed(describe_error_body(response.text, response.status_code))

        if len(response.content) < self.min_bundle_bytes:
            raise _AttemptFailed(
                f"Bundle is only {len(response.content)} bytes, expected at least {self.min_bundle_bytes}"
            )

        metadata = payload.get("metadata") or {}
        filename = filename_from_disposition(response.headers.get("Content-Disposition")) or (
            f"{metadata.get('name', 'config')}-{metadata.get('version', 'build')}.comapeocat"
        )
        return BuildArtifact(content=response.content, filename=filename, content_type=content_type)

    def build(self, payload: Dict[str, Any]) -> BuildArtifact:
        attempts = self.max_retries + 1
        last_error = "Unknown error"

        for attempt in range(attempts):
            if attempt:
                logger.warning("Retrying build request, attempt %d of %d. Previous attempt failed: %s", attempt + 1, attempts, last_error)
            try:
                artifact = self._attempt(payload)
            except _AttemptFailed as exc:
                last_error = str(exc)
                logger.error("Build attempt %d failed: %s", attempt + 1, last_error)
                if attempt + 1 < attempts:
                    self.sleep(self.retry_delay * 2 ** attempt)
                continue
            logger.info("Received bundle %s (%d bytes) on attempt %d", artifact.filename, artifact.size, attempt + 1)
            return artifact

        raise BuildApiError(
            f"Failed to generate the CoMapeo category file after {attempts} attempt(s). Last error: {last_error}",
            attempts=attempts,
            last_error=last_error,
        )

    def check_health(self) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/health", timeout=10)
        except requests.exceptions.RequestException as exc:
            logger.warning("Build API health check failed: %s", exc)
            return False
        healthy = response.status_code == 200
        if not healthy:
            logger.warning("Build API health check returned %s", response.status_code)
        return healthy
