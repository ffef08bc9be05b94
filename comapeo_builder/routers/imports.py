from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from comapeo_builder import schemas
from comapeo_builder.dependencies import get_language_catalog, get_spreadsheet_gateway
from comapeo_builder.services import import_service
from comapeo_builder.services.bundle_import import MAX_BUNDLE_SIZE, BundleImportError
from comapeo_builder.services.language_catalog import LanguageCatalog
from comapeo_builder.services.spreadsheet_gateway import SpreadsheetConfigurationError, SpreadsheetGateway

router = APIRouter(prefix="/import", tags=["Import"])


@router.post("", response_model=schemas.ImportSummary)
def import_bundle(
    file: UploadFile = File(...),
    gateway: SpreadsheetGateway = Depends(get_spreadsheet_gateway),
    catalog: LanguageCatalog = Depends(get_language_catalog),
):
    """
    Accepts .comapeocat, .zip, .json or JSON-encoded .mapeosettings files
    and rewrites the spreadsheet from them.
    """
    content = file.file.read(MAX_BUNDLE_SIZE + 1)
    try:
        return import_service.run_import(gateway, file.filename or "upload", content, catalog=catalog)
    except BundleImportError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SpreadsheetConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
