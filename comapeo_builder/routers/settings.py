from fastapi import APIRouter

from comapeo_builder import schemas
from comapeo_builder.services import sheets_config

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/env", response_model=schemas.SettingsInfo)
def read_settings():
    return schemas.SettingsInfo(**sheets_config.get_settings())


@router.put("/env", response_model=schemas.SettingsInfo)
def update_settings(payload: schemas.SettingsUpdate):
    info = sheets_config.update_settings(
        spreadsheet_id=payload.spreadsheet_id,
        credentials=payload.credentials_path,
    )
    return schemas.SettingsInfo(**info)


@router.post("/credentials/upload", response_model=schemas.SettingsInfo)
def upload_credentials(payload: schemas.CredentialsUpload):
    """Stores a service account key and points the settings at it."""
    info = sheets_config.save_credentials_file(payload.data, payload.path)
    return schemas.SettingsInfo(**info)
