"""
Categories / Details sheets <-> FieldDefinition / Preset entities.

Rows keep their sheet order; translation sheets are correlated against these
lists by position, so nothing here may reorder or silently drop an interior row.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any, Dict, List, Optional, Sequence, Tuple

from comapeo_builder.schemas import DEFAULT_COLOR, FieldDefinition, FieldOption, FieldType, Preset
from comapeo_builder.services import sheet_layout as layout
from comapeo_builder.services.outcome import IssueCollector, IssueKind, Outcome
from gsheets_client.sheets import values_to_frame

logger = logging.getLogger(__name__)

TRUE_VALUES = {"true", "yes", "1"}
TYPE_CODES = {
    "t": FieldType.TEXT,
    "n": FieldType.NUMBER,
    "m": FieldType.SELECT_MULTIPLE,
    "s": FieldType.SELECT_ONE,
}
TYPE_TO_CODE = {
    FieldType.TEXT: "t",
    FieldType.NUMBER: "n",
    FieldType.SELECT_MULTIPLE: "m",
    FieldType.SELECT_ONE: "s",
}


def slugify(value: Any) -> str:
    if value is None:
        return ""
    text = unicodedata.normalize("NFKD", str(value))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text, flags=re.ASCII)
    text = re.sub(r"[\s_-]+", "-", text, flags=re.ASCII)
    return text.strip("-")


def build_slug_with_fallback(source: Any, fallback_prefix: str, index: int = 0) -> str:
    slug = slugify(source)
    if slug:
        return slug
    prefix = slugify(fallback_prefix) or "item"
    return f"{prefix}-{index + 1}"


def _dedupe_slug(slug: str, seen: Dict[str, int]) -> Tuple[str, bool]:
    """
    Keeps slugs unique by appending counters for duplicates:
    trees, trees-2, trees-3, etc.
    """
    count = seen.get(slug, 0) + 1
    seen[slug] = count
    if count == 1:
        return slug, False
    candidate = f"{slug}-{count}"
    while candidate in seen:
        count += 1
        candidate = f"{slug}-{count}"
    seen[candidate] = 1
    return candidate, True


def field_type_from_code(type_string: Any) -> FieldType:
    # Blank defaults to selectOne, both here and in validation.
    text = str(type_string or "").strip()
    if not text:
        return FieldType.SELECT_ONE
    return TYPE_CODES.get(text[0].lower(), FieldType.SELECT_ONE)


def is_known_type_code(type_string: Any) -> bool:
    text = str(type_string or "").strip()
    return not text or text[0].lower() in TYPE_CODES


def split_list(value: Any) -> List[str]:
    return [part.strip() for part in str(value or "").split(",") if part.strip()]


def parse_options(field_type: FieldType, options_string: Any, tag_key: str = "") -> List[FieldOption]:
    """
    Comma separated options; "value:Label" keeps an explicit value,
    plain "Label" gets slugify(Label) as value.
    """
    if not field_type.has_options:
        return []
    options: List[FieldOption] = []
    for index, raw in enumerate(split_list(options_string)):
        colon = raw.find(":")
        if colon > 0:
            value, label = raw[:colon].strip(), raw[colon + 1:].strip()
            if value and label:
                options.append(FieldOption(label=label, value=value))
                continue
        options.append(
            FieldOption(label=raw, value=build_slug_with_fallback(raw, tag_key or "option", index))
        )
    return options


def format_options(options: Sequence[FieldOption]) -> str:
    parts = []
    for option in options:
        if option.value == slugify(option.label):
            parts.append(option.label)
        else:
            parts.append(f"{option.value}:{option.label}")
    return ", ".join(parts)


def parse_fields(details_grid: Sequence[Sequence[Any]] | None) -> Outcome[List[FieldDefinition]]:
    issues = IssueCollector(logger, IssueKind.VALIDATION, layout.DETAILS_SHEET)
    rows = layout.data_rows(details_grid)
    fields: List[FieldDefinition] = []
    if not rows:
        return issues.wrap(fields)

    frame = values_to_frame(rows, len(layout.DETAIL_HEADERS))
    seen: Dict[str, int] = {}

    for index, row in enumerate(frame.itertuples(index=False, name=None)):
        row_number = index + 2
        label = layout.cell_text(row, layout.DETAIL_NAME)
        if not label:
            issues.error("Field name (column A) cannot be empty", row=row_number)
            continue

        type_cell = layout.cell_text(row, layout.DETAIL_TYPE)
        if not is_known_type_code(type_cell):
            issues.warn(f"Unknown field type {type_cell!r}, treating it as select one", row=row_number)
        field_type = field_type_from_code(type_cell)

        explicit_id = layout.cell_text(row, layout.DETAIL_ID)
        tag_key = slugify(explicit_id) or build_slug_with_fallback(label, "field", index)
        tag_key, renamed = _dedupe_slug(tag_key, seen)
        if renamed:
            issues.warn(f"Duplicate field key for {label!r}, using {tag_key!r}", row=row_number)

        options = parse_options(field_type, layout.cell_text(row, layout.DETAIL_OPTIONS), tag_key)
        if field_type.has_options and not options:
            issues.warn(f"Select field {label!r} has no options", row=row_number)

        fields.append(
            FieldDefinition(
                tag_key=tag_key,
                type=field_type,
                label=label,
                helper_text=layout.cell_text(row, layout.DETAIL_HELPER_TEXT),
                options=options,
                universal=layout.cell_text(row, layout.DETAIL_UNIVERSAL).lower() in TRUE_VALUES,
            )
        )

    logger.info("Parsed %d fields from %s", len(fields), layout.DETAILS_SHEET)
    return issues.wrap(fields)


def _field_lookup(fields: Sequence[FieldDefinition]) -> Dict[str, str]:
    lookup: Dict[str, str] = {}
    for field in fields:
        lookup.setdefault(field.label.strip().lower(), field.tag_key)
        lookup.setdefault(field.tag_key, field.tag_key)
    return lookup


def parse_presets(
    categories_grid: Sequence[Sequence[Any]] | None,
    fields: Sequence[FieldDefinition] = (),
    background_colors: Optional[Sequence[Optional[str]]] = None,
) -> Outcome[List[Preset]]:
    issues = IssueCollector(logger, IssueKind.VALIDATION, layout.CATEGORIES_SHEET)
    rows = layout.data_rows(categories_grid)
    presets: List[Preset] = []
    if not rows:
        return issues.wrap(presets)

    frame = values_to_frame(rows, len(layout.CATEGORY_HEADERS))
    field_lookup = _field_lookup(fields)
    seen: Dict[str, int] = {}

    for index, row in enumerate(frame.itertuples(index=False, name=None)):
        row_number = index + 2
        name = layout.cell_text(row, layout.CATEGORY_NAME)
        if not name:
            issues.error("Category name cannot be empty", row=row_number)
            continue

        explicit_id = layout.cell_text(row, layout.CATEGORY_ID)
        icon = slugify(explicit_id) or build_slug_with_fallback(name, "category", index)
        icon, renamed = _dedupe_slug(icon, seen)
        if renamed:
            issues.warn(f"Duplicate category id for {name!r}, using {icon!r}", row=row_number)

        field_keys: List[str] = []
        for field_name in split_list(layout.cell_text(row, layout.CATEGORY_FIELDS)):
            key = field_lookup.get(field_name.lower()) or field_lookup.get(slugify(field_name))
            if not key:
                key = slugify(field_name)
                if fields:
                    issues.warn(f"Category {name!r} references unknown field {field_name!r}", row=row_number)
            if key and key not in field_keys:
                field_keys.append(key)

        background = None
        if background_colors is not None and index < len(background_colors):
            background = background_colors[index]
        color = layout.cell_text(row, layout.CATEGORY_COLOR) or background or DEFAULT_COLOR

        icon_source = layout.cell_text(row, layout.CATEGORY_ICON)
        icon_id = layout.cell_text(row, layout.CATEGORY_ICON_ID) or (icon if icon_source else None)

        presets.append(
            Preset(
                icon=icon,
                name=name,
                color=color,
                fields=field_keys,
                sort=index + 1,
                terms=[name, *(key.replace("-", " ") for key in field_keys)],
                icon_source=icon_source,
                icon_id=icon_id,
            )
        )

    logger.info("Parsed %d categories from %s", len(presets), layout.CATEGORIES_SHEET)
    return issues.wrap(presets)


def fields_to_details_grid(fields: Sequence[FieldDefinition]) -> List[List[str]]:
    grid = [list(layout.DETAIL_HEADERS)]
    for field in fields:
        grid.append(
            [
                field.label,
                field.helper_text,
                TYPE_TO_CODE[field.type],
                format_options(field.options),
                field.tag_key,
                "TRUE" if field.universal else "FALSE",
            ]
        )
    return grid


def presets_to_categories_grid(
    presets: Sequence[Preset],
    fields: Sequence[FieldDefinition],
    primary_label: str = "Name",
) -> List[List[str]]:
    labels = {field.tag_key: field.label for field in fields}
    header = list(layout.CATEGORY_HEADERS)
    header[layout.CATEGORY_NAME] = primary_label or header[layout.CATEGORY_NAME]
    grid = [header]
    for preset in presets:
        grid.append(
            [
                preset.name,
                preset.icon_source,
                ", ".join(labels.get(key, key) for key in preset.fields),
                preset.icon,
                preset.color,
                preset.icon_id or "",
            ]
        )
    return grid
