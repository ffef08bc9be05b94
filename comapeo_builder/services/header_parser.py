"""
Translation sheet header row -> language column map.

A header cell can be a language name in English or in the language itself
("Spanish", "Español"), a language code ("es", "zh-CN"), or both in the
"<Name> - <code>" form, with or without spaces around the hyphen
("Português - pt", "Português-pt"). Column A always holds the source text.
Sheets written by newer plugin versions also carry "ISO" and "Source"
columns in B and C; languages then start at column D.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from comapeo_builder.services import sheet_layout as layout
from comapeo_builder.services.language_catalog import LanguageCatalog
from comapeo_builder.services.outcome import IssueCollector, IssueKind, Outcome

logger = logging.getLogger(__name__)

NAME_CODE_PATTERN = re.compile(
    r"^(?P<name>.*?\S)\s*-\s*(?P<code>[A-Za-z]{2,3}(?:-(?:[A-Za-z]{2}|[A-Za-z]{4}|\d{3}))?)$"
)
BARE_CODE_PATTERN = re.compile(r"^[a-z]{2,3}(?:-(?:[A-Z]{2}|[A-Z][a-z]{3}|\d{3}))?$")


@dataclass
class ColumnMap:
    target_languages: List[str] = field(default_factory=list)
    column_to_language: Dict[int, str] = field(default_factory=dict)
    language_start: int = layout.TRANSLATION_FIRST_LANGUAGE
    used_fallback: bool = False

    @property
    def last_column(self) -> int:
        return max(self.column_to_language) if self.column_to_language else 0


def has_meta_columns(header_row: Sequence[Any]) -> bool:
    iso_header = layout.cell_text(header_row, 1).lower()
    source_header = layout.cell_text(header_row, 2).lower()
    return "iso" in iso_header and "source" in source_header


def resolve_header(header: str, catalog: LanguageCatalog) -> Optional[str]:
    """Language code for one header cell, or None when it names no language."""
    text = (header or "").strip()
    if not text:
        return None

    code = catalog.get_code_by_name(text)
    if code:
        return code

    code = catalog.find_code(text)
    if code:
        return code

    # A bare tag ("pt-BR") is only kept when its language subtag is known;
    # "iso" or "src" columns are not locales.
    if BARE_CODE_PATTERN.match(text):
        return text if catalog.has_code(text.split("-", 1)[0]) else None

    match = NAME_CODE_PATTERN.match(text)
    if match:
        raw_code = match.group("code")
        return catalog.find_code(raw_code) or raw_code

    return None


def build_column_map(
    header_row: Optional[Sequence[Any]],
    *,
    catalog: LanguageCatalog,
    primary_language: str,
    sheet: Optional[str] = None,
) -> Outcome[ColumnMap]:
    issues = IssueCollector(logger, IssueKind.CONFIGURATION, sheet)

    if not header_row or layout.is_blank_row(header_row):
        issues.warn(f"Header row is empty, falling back to primary language {primary_language!r} only", row=1)
        return issues.wrap(
            ColumnMap(
                target_languages=[primary_language],
                column_to_language={0: primary_language},
                language_start=0,
                used_fallback=True,
            )
        )

    start = (
        layout.TRANSLATION_FIRST_LANGUAGE_WITH_META
        if has_meta_columns(header_row)
        else layout.TRANSLATION_FIRST_LANGUAGE
    )
    column_map = ColumnMap(language_start=start)
    seen: Dict[str, int] = {}

    for index in range(start, len(header_row)):
        header = layout.cell_text(header_row, index)
        if not header:
            issues.warn(f"Column {index + 1} has an empty header, skipping it", row=1)
            continue

        code = resolve_header(header, catalog)
        if not code:
            issues.warn(f"Could not recognise language header {header!r} in column {index + 1}, dropping it", row=1)
            continue

        key = code.lower()
        if key in seen:
            issues.warn(
                f"Header {header!r} in column {index + 1} repeats language {code!r} "
                f"already mapped to column {seen[key] + 1}, ignoring it",
                row=1,
            )
            continue

        seen[key] = index
        column_map.column_to_language[index] = code
        column_map.target_languages.append(code)
        logger.debug("Column %d header %r -> %s", index + 1, header, code)

    logger.info(
        "Detected %d language column(s)%s: %s",
        len(column_map.target_languages),
        f" in {sheet}" if sheet else "",
        ", ".join(column_map.target_languages) or "none",
    )
    return issues.wrap(column_map)


def resolve_primary_language(cell: Any, *, catalog: LanguageCatalog, fallback: str) -> str:
    """Categories!A1 usually names the authoring language ("English", "Português")."""
    text = layout.cell_text([cell], 0)
    code = resolve_header(text, catalog) if text else None
    if code:
        return code
    if text and text.lower() not in ("name", "category", "categories"):
        logger.warning("Primary language header %r not recognised, using %s", text, fallback)
    return fallback


def check_column_counts(sheet: str, rows: Sequence[Sequence[Any]], column_map: ColumnMap) -> Outcome[None]:
    issues = IssueCollector(logger, IssueKind.CONFIGURATION, sheet)
    if not rows or not column_map.column_to_language:
        return issues.wrap(None)

    width = len(rows[0])
    expected = column_map.last_column + 1
    if width < expected:
        issues.error(
            f"First data row has {width} column(s) but the header maps languages up to column {expected}",
            row=2,
        )
    elif width > expected:
        logger.info("%s has %d column(s) beyond the last language column", sheet, width - expected)
    return issues.wrap(None)


def header_for_code(code: str, catalog: LanguageCatalog) -> str:
    """Header cell that resolve_header reads back as `code`."""
    if resolve_header(code, catalog) == code:
        return code
    return f"{catalog.display_name(code)} - {code}"
