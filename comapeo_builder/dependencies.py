from pathlib import Path

from fastapi import HTTPException

from comapeo_builder import config
from comapeo_builder.services import language_catalog
from comapeo_builder.services.build_api import BuildApiClient
from comapeo_builder.services.language_catalog import LanguageCatalog
from comapeo_builder.services.spreadsheet_gateway import SpreadsheetConfigurationError, SpreadsheetGateway


def get_spreadsheet_gateway() -> SpreadsheetGateway:
    try:
        return SpreadsheetGateway.from_settings()
    except SpreadsheetConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def get_build_api_client() -> BuildApiClient:
    return BuildApiClient(
        config.BUILD_API_URL,
        max_retries=config.BUILD_API_MAX_RETRIES,
        retry_delay=config.BUILD_API_RETRY_DELAY,
        timeout=config.BUILD_API_TIMEOUT,
        min_bundle_bytes=config.BUILD_MIN_BUNDLE_BYTES,
    )


def get_language_catalog() -> LanguageCatalog:
    return language_catalog.get_language_catalog()


def get_builds_dir() -> Path:
    return config.BUILDS_DIR
