from __future__ import annotations

import logging

from comapeo_builder import config
from comapeo_builder.schemas import ImportSummary
from comapeo_builder.services.bundle_import import BundleImportError, build_import_grids, read_bundle
from comapeo_builder.services.format_detection import normalize_config
from comapeo_builder.services.language_catalog import LanguageCatalog
from comapeo_builder.services.spreadsheet_gateway import SpreadsheetGateway

logger = logging.getLogger(__name__)


def run_import(
    gateway: SpreadsheetGateway,
    filename: str,
    content: bytes,
    *,
    catalog: LanguageCatalog,
    fallback_language: str = config.PRIMARY_LANGUAGE,
) -> ImportSummary:
    raw = read_bundle(filename, content)
    normalized = normalize_config(raw)
    if not normalized.presets and not normalized.fields:
        raise BundleImportError("No categories or fields found in the imported file.")

    declared = str(normalized.metadata.get("primaryLanguage") or "")
    primary = catalog.find_code(declared) or catalog.get_code_by_name(declared) or fallback_language
    source_label = catalog.display_name(primary) or "English"

    grids = build_import_grids(normalized, source_label=source_label, primary_language=primary, catalog=catalog)
    written = []
    for sheet_name, grid in grids.items():
        gateway.write_sheet(sheet_name, grid)
        written.append(sheet_name)

    languages = [code for code in normalized.messages if code.lower() != primary.lower()]
    logger.info(
        "Imported %s (%s): %d categories, %d fields, %d language(s)",
        filename,
        normalized.format.value,
        len(normalized.presets),
        len(normalized.fields),
        len(languages),
    )
    return ImportSummary(
        format=normalized.format.value,
        config_name=str(normalized.metadata.get("name") or ""),
        categories_count=len(normalized.presets),
        fields_count=len(normalized.fields),
        languages=languages,
        sheets_written=written,
        parse_errors=normalized.parse_errors,
    )
