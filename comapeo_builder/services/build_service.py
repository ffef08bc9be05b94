from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from comapeo_builder import config
from comapeo_builder.schemas import BuildSummary, IssueOut, TranslationPreview, ValidationReport
from comapeo_builder.services import sheet_layout as layout
from comapeo_builder.services.build_api import BuildApiClient
from comapeo_builder.services.entities import parse_fields, parse_presets
from comapeo_builder.services.header_parser import resolve_primary_language
from comapeo_builder.services.language_catalog import LanguageCatalog
from comapeo_builder.services.message_catalog import build_message_catalog
from comapeo_builder.services.outcome import Issue, Severity
from comapeo_builder.services.payload_builder import (
    BuildContext,
    ConfigValidationError,
    build_payload,
    metadata_values,
)
from comapeo_builder.services.spreadsheet_gateway import SpreadsheetGateway
from comapeo_builder.services.validation import lint_translation_headers, validate_sheet_data

logger = logging.getLogger(__name__)

BUNDLE_EXTENSION = ".comapeocat"


def issues_out(issues: Sequence[Issue]) -> List[IssueOut]:
    return [IssueOut(**issue.as_dict()) for issue in issues]


def determine_primary_language(
    sheets_data: Mapping[str, Sequence[Sequence[Any]]],
    catalog: LanguageCatalog,
    fallback: str = config.PRIMARY_LANGUAGE,
) -> str:
    """Categories!A1 first, then Metadata primaryLanguage, then the configured default."""
    categories = sheets_data.get(layout.CATEGORIES_SHEET) or []
    header = categories[0] if categories else []
    from_header = resolve_primary_language(layout.cell_text(header, 0), catalog=catalog, fallback="")
    if from_header:
        return from_header
    from_metadata = metadata_values(sheets_data.get(layout.METADATA_SHEET)).get("primaryLanguage", "")
    return resolve_primary_language(from_metadata, catalog=catalog, fallback=fallback)


def validate_spreadsheet(gateway: SpreadsheetGateway, catalog: LanguageCatalog) -> ValidationReport:
    sheets_data = gateway.read_sheets(layout.ALL_SHEETS)
    issues = validate_sheet_data(sheets_data).issues + lint_translation_headers(sheets_data, catalog).issues
    errors = [issue for issue in issues if issue.severity is Severity.ERROR]
    warnings = [issue for issue in issues if issue.severity is Severity.WARNING]
    return ValidationReport(valid=not errors, errors=issues_out(errors), warnings=issues_out(warnings))


def preview_translations(
    gateway: SpreadsheetGateway,
    catalog: LanguageCatalog,
    fallback_language: str = config.PRIMARY_LANGUAGE,
) -> TranslationPreview:
    sheets_data = gateway.read_sheets(layout.ALL_SHEETS)
    primary = determine_primary_language(sheets_data, catalog, fallback_language)

    fields = parse_fields(sheets_data.get(layout.DETAILS_SHEET))
    presets = parse_presets(sheets_data.get(layout.CATEGORIES_SHEET), fields.value)
    messages = build_message_catalog(
        sheets_data,
        fields.value,
        presets.value,
        catalog=catalog,
        primary_language=primary,
    )
    return TranslationPreview(
        primary_language=primary,
        languages=list(messages.value),
        messages=messages.value,
        issues=issues_out(fields.issues + presets.issues + messages.issues),
    )


def save_bundle(builds_dir: Path, version: str, content: bytes) -> Path:
    builds_dir.mkdir(parents=True, exist_ok=True)
    target = builds_dir / f"{version}{BUNDLE_EXTENSION}"
    target.write_bytes(content)
    logger.info("Saved bundle to %s (%d bytes)", target, len(content))
    return target


def resolve_bundle_path(builds_dir: Path, name: str) -> Path | None:
    if not name or Path(name).name != name or not name.endswith(BUNDLE_EXTENSION):
        return None
    path = builds_dir / name
    return path if path.is_file() else None


def run_build(
    gateway: SpreadsheetGateway,
    client: BuildApiClient,
    *,
    catalog: LanguageCatalog,
    builds_dir: Path = config.BUILDS_DIR,
    fallback_language: str = config.PRIMARY_LANGUAGE,
) -> BuildSummary:
    sheets_data = gateway.read_sheets(layout.ALL_SHEETS)

    validation = validate_sheet_data(sheets_data)
    if not validation.ok:
        raise ConfigValidationError(
            f"Spreadsheet has {len(validation.errors)} blocking error(s): "
            + "; ".join(issue.describe() for issue in validation.errors[:5]),
            validation.errors,
        )

    primary = determine_primary_language(sheets_data, catalog, fallback_language)
    category_rows = len(layout.data_rows(sheets_data.get(layout.CATEGORIES_SHEET)))
    background_colors = gateway.read_background_colors(layout.CATEGORIES_SHEET, category_rows)

    context = BuildContext(catalog=catalog, primary_language=primary, document_name=gateway.document_name())
    context.issues.extend(validation.warnings)
    context.issues.extend(lint_translation_headers(sheets_data, catalog).issues)

    payload: Dict[str, Any] = build_payload(sheets_data, context, background_colors)
    logger.info("Sending build request for %s %s", payload["metadata"]["name"], payload["metadata"]["version"])
    artifact = client.build(payload)

    target = save_bundle(builds_dir, payload["metadata"]["version"], artifact.content)
    return BuildSummary(
        file_name=target.name,
        size_bytes=artifact.size,
        categories_count=len(payload["categories"]),
        fields_count=len(payload["fields"]),
        icons_count=len(payload.get("icons", [])),
        languages=list(payload.get("translations", {})),
        category_selection=list(context.category_selection),
        warnings=issues_out(context.issues),
    )
