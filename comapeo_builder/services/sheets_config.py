"""
Connection settings for the configuration spreadsheet.

Stored as {"SPREADSHEET_ID": ..., "CREDENTIALS": ...} in sheets_config.json at the
project root. CREDENTIALS is a path to a service account key, relative paths are
resolved against the project root.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import HTTPException

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_PATH = PROJECT_ROOT / "sheets_config.json"
DEFAULT_CREDENTIALS = "credentials.json"


@dataclass
class SheetsSettings:
    spreadsheet_id: str = ""
    credentials: str = DEFAULT_CREDENTIALS

    @classmethod
    def from_file_data(cls, data: Dict[str, Any]) -> "SheetsSettings":
        return cls(
            spreadsheet_id=str(data.get("SPREADSHEET_ID") or ""),
            credentials=str(data.get("CREDENTIALS") or DEFAULT_CREDENTIALS),
        )

    def to_file_data(self) -> Dict[str, str]:
        return {"SPREADSHEET_ID": self.spreadsheet_id, "CREDENTIALS": self.credentials}

    def as_response(self) -> Dict[str, str]:
        return {"spreadsheet_id": self.spreadsheet_id, "credentials_path": self.credentials}

    @property
    def credentials_file(self) -> Path:
        return resolve_project_path(self.credentials)


def resolve_project_path(path_value: str) -> Path:
    path = Path(path_value)
    return path if path.is_absolute() else PROJECT_ROOT / path


def load_settings() -> SheetsSettings:
    if not CONFIG_PATH.exists():
        return SheetsSettings()
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise HTTPException(status_code=500, detail=f"Could not read {CONFIG_PATH.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise HTTPException(status_code=500, detail=f"{CONFIG_PATH.name} must contain a JSON object")
    return SheetsSettings.from_file_data(data)


def store_settings(settings: SheetsSettings) -> SheetsSettings:
    try:
        CONFIG_PATH.write_text(
            json.dumps(settings.to_file_data(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"Could not save {CONFIG_PATH.name}: {exc}") from exc
    logger.info("Saved spreadsheet settings to %s", CONFIG_PATH)
    return settings


def get_settings() -> Dict[str, str]:
    return load_settings().as_response()


def update_settings(*, spreadsheet_id: Optional[str] = None, credentials: Optional[str] = None) -> Dict[str, str]:
    settings = load_settings()
    if spreadsheet_id is not None:
        settings.spreadsheet_id = spreadsheet_id.strip()
    if credentials is not None:
        settings.credentials = credentials.strip() or DEFAULT_CREDENTIALS
    return store_settings(settings).as_response()


def save_credentials_file(data: Dict[str, Any], destination: Optional[str] = None) -> Dict[str, str]:
    if data.get("type") != "service_account":
        raise HTTPException(status_code=400, detail="Expected a service account JSON key (type=service_account)")
    path_value = destination or DEFAULT_CREDENTIALS
    target = resolve_project_path(path_value)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as exc:
        raise HTTPException(status_code=400, detail=f"Could not save credentials: {exc}") from exc

    logger.info("Stored service account key for %s", data.get("client_email", "unknown account"))
    return update_settings(credentials=path_value)
