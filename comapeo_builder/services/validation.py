from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from comapeo_builder.services import sheet_layout as layout
from comapeo_builder.services.entities import field_type_from_code, is_known_type_code, split_list
from comapeo_builder.services.header_parser import has_meta_columns, resolve_header
from comapeo_builder.services.language_catalog import LanguageCatalog
from comapeo_builder.services.outcome import IssueCollector, IssueKind, Outcome

logger = logging.getLogger(__name__)

Grid = Sequence[Sequence[Any]]


def find_duplicates(values: Sequence[Any], start_row: int = 2) -> Dict[str, List[int]]:
    """
    Case-insensitive duplicates among non-empty values, mapped to their sheet rows.
    """
    rows_by_value: Dict[str, List[int]] = {}
    for offset, value in enumerate(values):
        key = str(value or "").strip().lower()
        if not key:
            continue
        rows_by_value.setdefault(key, []).append(offset + start_row)
    return {value: rows for value, rows in rows_by_value.items() if len(rows) > 1}


def _validate_categories(grid: Grid | None, issues: IssueCollector) -> None:
    rows = layout.data_rows(grid)
    if not rows:
        issues.error("Categories sheet is empty or missing")
        return

    for index, row in enumerate(rows):
        row_number = index + 2
        name = layout.cell_text(row, layout.CATEGORY_NAME)
        if not name:
            issues.error("Category name is required", row=row_number)
            continue
        if not layout.cell_text(row, layout.CATEGORY_ICON):
            issues.warn(f"Category {name!r} has no icon", row=row_number)
        if not split_list(layout.cell_text(row, layout.CATEGORY_FIELDS)):
            issues.warn(f"Category {name!r} has no fields", row=row_number)

    names = [layout.cell_text(row, layout.CATEGORY_NAME) for row in rows]
    for value, row_numbers in find_duplicates(names).items():
        issues.warn(f"Duplicate category name {value!r} in rows {', '.join(map(str, row_numbers))}")


def _validate_details(grid: Grid | None, issues: IssueCollector) -> None:
    rows = layout.data_rows(grid)
    if not rows:
        issues.error("Details sheet is empty or missing")
        return

    for index, row in enumerate(rows):
        row_number = index + 2
        name = layout.cell_text(row, layout.DETAIL_NAME)
        if not name:
            issues.error("Field name is required", row=row_number)
            continue

        type_cell = layout.cell_text(row, layout.DETAIL_TYPE)
        if not is_known_type_code(type_cell):
            issues.error(
                f"Field {name!r} has invalid type {type_cell!r}, use text, number, multiple or single",
                row=row_number,
            )
            continue

        if field_type_from_code(type_cell).has_options and not split_list(
            layout.cell_text(row, layout.DETAIL_OPTIONS)
        ):
            issues.error(f"Select field {name!r} needs at least one option", row=row_number)

        if not layout.cell_text(row, layout.DETAIL_HELPER_TEXT):
            issues.warn(f"Field {name!r} has no helper text", row=row_number)

    names = [layout.cell_text(row, layout.DETAIL_NAME) for row in rows]
    for value, row_numbers in find_duplicates(names).items():
        issues.warn(f"Duplicate field name {value!r} in rows {', '.join(map(str, row_numbers))}")


def validate_sheet_data(sheets_data: Mapping[str, Grid]) -> Outcome[None]:
    categories = IssueCollector(logger, IssueKind.VALIDATION, layout.CATEGORIES_SHEET)
    details = IssueCollector(logger, IssueKind.VALIDATION, layout.DETAILS_SHEET)

    _validate_categories(sheets_data.get(layout.CATEGORIES_SHEET), categories)
    _validate_details(sheets_data.get(layout.DETAILS_SHEET), details)

    outcome = Outcome(None, categories.issues + details.issues)
    logger.info(
        "Validation finished: %d error(s), %d warning(s)",
        len(outcome.errors),
        len(outcome.warnings),
    )
    return outcome


def lint_translation_headers(sheets_data: Mapping[str, Grid], catalog: LanguageCatalog) -> Outcome[None]:
    """Headers the translation pass would drop, reported before a build."""
    collected: List = []
    for sheet_name in layout.TRANSLATION_SHEETS:
        grid = sheets_data.get(sheet_name)
        if not grid:
            continue
        issues = IssueCollector(logger, IssueKind.CONFIGURATION, sheet_name)
        header = grid[0]
        start = (
            layout.TRANSLATION_FIRST_LANGUAGE_WITH_META
            if has_meta_columns(header)
            else layout.TRANSLATION_FIRST_LANGUAGE
        )
        for index in range(start, len(header)):
            text = layout.cell_text(header, index)
            if text and not resolve_header(text, catalog):
                issues.warn(f"Header {text!r} in column {index + 1} is not a known language and will be ignored", row=1)
        collected.extend(issues.issues)
    return Outcome(None, collected)
