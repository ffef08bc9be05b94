from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from comapeo_builder import schemas
from comapeo_builder.dependencies import (
    get_build_api_client,
    get_builds_dir,
    get_language_catalog,
    get_spreadsheet_gateway,
)
from comapeo_builder.services import build_service
from comapeo_builder.services.build_api import BuildApiClient, BuildApiError
from comapeo_builder.services.language_catalog import LanguageCatalog
from comapeo_builder.services.payload_builder import ConfigValidationError
from comapeo_builder.services.spreadsheet_gateway import SpreadsheetConfigurationError, SpreadsheetGateway

router = APIRouter(prefix="/build", tags=["Build"])


@router.post("", response_model=schemas.BuildSummary)
def run_build(
    gateway: SpreadsheetGateway = Depends(get_spreadsheet_gateway),
    client: BuildApiClient = Depends(get_build_api_client),
    catalog: LanguageCatalog = Depends(get_language_catalog),
    builds_dir: Path = Depends(get_builds_dir),
):
    try:
        return build_service.run_build(gateway, client, catalog=catalog, builds_dir=builds_dir)
    except ConfigValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "errors": [issue.as_dict() for issue in exc.issues]},
        ) from exc
    except BuildApiError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except SpreadsheetConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/files/{name}")
def download_build(name: str, builds_dir: Path = Depends(get_builds_dir)):
    path = build_service.resolve_bundle_path(builds_dir, name)
    if path is None:
        raise HTTPException(status_code=404, detail=f"Build '{name}' not found")
    return FileResponse(path, media_type="application/octet-stream", filename=path.name)


@router.get("/translations", response_model=schemas.TranslationPreview)
def preview_translations(
    gateway: SpreadsheetGateway = Depends(get_spreadsheet_gateway),
    catalog: LanguageCatalog = Depends(get_language_catalog),
):
    try:
        return build_service.preview_translations(gateway, catalog)
    except SpreadsheetConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/validate", response_model=schemas.ValidationReport)
def validate_spreadsheet(
    gateway: SpreadsheetGateway = Depends(get_spreadsheet_gateway),
    catalog: LanguageCatalog = Depends(get_language_catalog),
):
    try:
        return build_service.validate_spreadsheet(gateway, catalog)
    except SpreadsheetConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
