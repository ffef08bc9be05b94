from typing import List

from fastapi import APIRouter, Depends, Query

from comapeo_builder import schemas
from comapeo_builder.dependencies import get_language_catalog
from comapeo_builder.services.header_parser import resolve_header
from comapeo_builder.services.language_catalog import LanguageCatalog

router = APIRouter(prefix="/languages", tags=["Languages"])


@router.get("", response_model=List[schemas.LanguageOut])
def list_languages(catalog: LanguageCatalog = Depends(get_language_catalog)):
    result = []
    for code in catalog.get_all_codes():
        names = catalog.get_names_by_code(code)
        result.append(schemas.LanguageOut(code=code, english=names["english"], native=names["native"]))
    return result


@router.get("/resolve", response_model=schemas.HeaderResolution)
def resolve_language_header(
    header: str = Query(..., min_length=1),
    catalog: LanguageCatalog = Depends(get_language_catalog),
):
    """How a translation sheet column header would be read, code is null when it would be dropped."""
    return schemas.HeaderResolution(header=header, code=resolve_header(header, catalog))
