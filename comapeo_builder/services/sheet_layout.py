"""Sheet names and 0-based column positions of the authoring spreadsheet."""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Sequence

CATEGORIES_SHEET = "Categories"
DETAILS_SHEET = "Details"
METADATA_SHEET = "Metadata"
ICONS_SHEET = "Icons"

CATEGORY_TRANSLATIONS_SHEET = "Category Translations"
LABEL_TRANSLATIONS_SHEET = "Detail Label Translations"
HELPER_TEXT_TRANSLATIONS_SHEET = "Detail Helper Text Translations"
OPTION_TRANSLATIONS_SHEET = "Detail Option Translations"

TRANSLATION_SHEETS = (
    CATEGORY_TRANSLATIONS_SHEET,
    LABEL_TRANSLATIONS_SHEET,
    HELPER_TEXT_TRANSLATIONS_SHEET,
    OPTION_TRANSLATIONS_SHEET,
)
SOURCE_SHEETS = (CATEGORIES_SHEET, DETAILS_SHEET, METADATA_SHEET, ICONS_SHEET)
ALL_SHEETS = SOURCE_SHEETS + TRANSLATION_SHEETS

# Categories: Name | Icon | Fields | ID | Color | Icon ID
CATEGORY_NAME = 0
CATEGORY_ICON = 1
CATEGORY_FIELDS = 2
CATEGORY_ID = 3
CATEGORY_COLOR = 4
CATEGORY_ICON_ID = 5
CATEGORY_HEADERS = ["Name", "Icon", "Fields", "ID", "Color", "Icon ID"]

# Details: Name | Helper Text | Type | Options | ID | Universal
DETAIL_NAME = 0
DETAIL_HELPER_TEXT = 1
DETAIL_TYPE = 2
DETAIL_OPTIONS = 3
DETAIL_ID = 4
DETAIL_UNIVERSAL = 5
DETAIL_HEADERS = ["Name", "Helper Text", "Type", "Options", "ID", "Universal"]

METADATA_HEADERS = ["Key", "Value"]
ICON_HEADERS = ["ID", "SVG"]

TRANSLATION_SOURCE_COLUMN = 0
TRANSLATION_FIRST_LANGUAGE = 1
TRANSLATION_FIRST_LANGUAGE_WITH_META = 3


def cell_text(row: Sequence[Any] | None, index: int) -> str:
    """Cell as trimmed text; missing cells of ragged rows read as empty."""
    if row is None or index >= len(row):
        return ""
    value = row[index]
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value).strip()


def is_blank_row(row: Sequence[Any] | None) -> bool:
    return not any(cell_text(row, idx) for idx in range(len(row or [])))


def data_rows(grid: Sequence[Sequence[Any]] | None) -> List[Sequence[Any]]:
    """Rows below the header, with trailing blank rows removed."""
    rows = list((grid or [])[1:])
    while rows and is_blank_row(rows[-1]):
        rows.pop()
    return rows


class TranslationSheetKind(Enum):
    """Translation sheets, each bound to the entity list it follows and its catalog key suffix."""

    CATEGORY_NAME = (CATEGORY_TRANSLATIONS_SHEET, "presets", "name")
    FIELD_LABEL = (LABEL_TRANSLATIONS_SHEET, "fields", "label")
    FIELD_HELPER_TEXT = (HELPER_TEXT_TRANSLATIONS_SHEET, "fields", "helperText")
    FIELD_OPTION = (OPTION_TRANSLATIONS_SHEET, "fields", "options")

    def __init__(self, sheet_name: str, entity_group: str, key_suffix: str):
        self.sheet_name = sheet_name
        self.entity_group = entity_group
        self.key_suffix = key_suffix

    @classmethod
    def from_sheet_name(cls, name: str | None) -> Optional["TranslationSheetKind"]:
        wanted = (name or "").strip()
        for kind in cls:
            if kind.sheet_name == wanted:
                return kind
        return None
