"""
Message catalog -> translation sheet grids (import direction).

Row order always comes from the entity lists, never from catalog iteration,
so a sheet written here correlates back to the same entities by position.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from comapeo_builder.schemas import FieldDefinition, Preset
from comapeo_builder.services import sheet_layout as layout
from comapeo_builder.services.header_parser import header_for_code
from comapeo_builder.services.language_catalog import LanguageCatalog
from comapeo_builder.services.message_catalog import (
    MessageCatalog,
    message_text,
    field_helper_text_key,
    field_label_key,
    field_option_key,
    preset_name_key,
)

logger = logging.getLogger(__name__)

Grid = List[List[str]]


def _target_codes(messages: MessageCatalog, exclude_languages: Iterable[str]) -> List[str]:
    excluded = {code.lower() for code in exclude_languages}
    return [code for code in messages if code.lower() not in excluded]


def _option_cell(bucket: Mapping[str, Any], field: FieldDefinition) -> str:
    labels = [message_text(bucket.get(field_option_key(field, option.value))) for option in field.options]
    while labels and not labels[-1]:
        labels.pop()
    return ", ".join(labels)


def redistribute_catalog(
    messages: MessageCatalog,
    presets: Sequence[Preset],
    fields: Sequence[FieldDefinition],
    *,
    source_label: str = "English",
    exclude_languages: Iterable[str] = (),
    catalog: Optional[LanguageCatalog] = None,
) -> Dict[str, Grid]:
    codes = _target_codes(messages, exclude_languages)
    # With a catalog, codes it cannot read back from a bare header are written as "Name - code".
    header = [source_label, *(header_for_code(code, catalog) if catalog else code for code in codes)]
    buckets = [messages.get(code) or {} for code in codes]

    categories: Grid = [list(header)]
    for preset in presets:
        key = preset_name_key(preset)
        categories.append([preset.name, *(message_text(bucket.get(key)) for bucket in buckets)])

    labels: Grid = [list(header)]
    helper_texts: Grid = [list(header)]
    options: Grid = [list(header)]
    for field in fields:
        label_key = field_label_key(field)
        helper_key = field_helper_text_key(field)
        labels.append([field.label, *(message_text(bucket.get(label_key)) for bucket in buckets)])
        helper_texts.append([field.helper_text, *(message_text(bucket.get(helper_key)) for bucket in buckets)])

        if field.type.has_options:
            source = ", ".join(option.label for option in field.options)
            options.append([source, *(_option_cell(bucket, field) for bucket in buckets)])
        else:
            options.append([""] * len(header))

    logger.info(
        "Redistributed %d language(s) over %d categories and %d fields",
        len(codes),
        len(presets),
        len(fields),
    )
    return {
        layout.CATEGORY_TRANSLATIONS_SHEET: categories,
        layout.LABEL_TRANSLATIONS_SHEET: labels,
        layout.HELPER_TEXT_TRANSLATIONS_SHEET: helper_texts,
        layout.OPTION_TRANSLATIONS_SHEET: options,
    }


def translations_to_catalog(
    translations: Mapping[str, Mapping[str, Any]],
    fields: Sequence[FieldDefinition] = (),
) -> MessageCatalog:
    """Inverse of catalog_to_build_translations, for bundles that carry build-request translations."""
    by_key = {field.tag_key: field for field in fields}
    messages: MessageCatalog = {}

    for code, locale in (translations or {}).items():
        if not isinstance(locale, Mapping):
            logger.warning("Ignoring translations for %s, expected an object", code)
            continue
        bucket: Dict[str, Dict[str, Any]] = messages.setdefault(code, {})

        for category_id, entry in (locale.get("categories") or {}).items():
            name = entry.get("name") if isinstance(entry, Mapping) else entry
            if name:
                bucket[f"presets.{category_id}.name"] = {
                    "message": str(name),
                    "description": f"Name for preset '{category_id}'",
                }

        for field_id, entry in (locale.get("fields") or {}).items():
            if not isinstance(entry, Mapping):
                continue
            field = by_key.get(field_id)
            field_label = field.label if field else field_id
            if entry.get("name"):
                bucket[f"fields.{field_id}.label"] = {
                    "message": str(entry["name"]),
                    "description": f"Label for field '{field_id}'",
                }
            if entry.get("description"):
                bucket[f"fields.{field_id}.helperText"] = {
                    "message": str(entry["description"]),
                    "description": f"Helper text for field '{field_id}'",
                }
            source_labels = {option.value: option.label for option in field.options} if field else {}
            for value, label in (entry.get("options") or {}).items():
                if not label:
                    continue
                bucket[f"fields.{field_id}.options.{value}"] = {
                    "message": {"label": str(label), "value": value},
                    "description": f"Option '{source_labels.get(value, value)}' for field '{field_label}'",
                }
    return messages
