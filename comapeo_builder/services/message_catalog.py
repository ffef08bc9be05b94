"""
Translation sheets -> keyed message catalog.

    {
        "es": {
            "presets.trees.name": {"message": "Árboles", "description": "Name for preset 'trees'"},
            "fields.species.options.oak": {
                "message": {"label": "Roble", "value": "oak"},
                "description": "Option 'Oak' for field 'Species'",
            },
        }
    }
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from comapeo_builder.schemas import FieldDefinition, Preset
from comapeo_builder.services import sheet_layout as layout
from comapeo_builder.services.header_parser import build_column_map, check_column_counts
from comapeo_builder.services.language_catalog import LanguageCatalog
from comapeo_builder.services.outcome import IssueCollector, IssueKind, Outcome
from comapeo_builder.services.row_correlator import correlate_rows
from comapeo_builder.services.sheet_layout import TranslationSheetKind

logger = logging.getLogger(__name__)

MessageCatalog = Dict[str, Dict[str, Dict[str, Any]]]
Grid = Sequence[Sequence[Any]]


def preset_name_key(preset: Preset) -> str:
    return f"presets.{preset.icon}.name"


def field_label_key(field: FieldDefinition) -> str:
    return f"fields.{field.tag_key}.label"


def field_helper_text_key(field: FieldDefinition) -> str:
    return f"fields.{field.tag_key}.helperText"


def field_option_key(field: FieldDefinition, value: str) -> str:
    return f"fields.{field.tag_key}.options.{value}"


def _add_category_name(bucket: Dict[str, Any], preset: Preset, value: str) -> None:
    bucket[preset_name_key(preset)] = {
        "message": value,
        "description": f"Name for preset '{preset.icon}'",
    }


def _add_field_label(bucket: Dict[str, Any], field: FieldDefinition, value: str) -> None:
    bucket[field_label_key(field)] = {
        "message": value,
        "description": f"Label for field '{field.tag_key}'",
    }


def _add_field_helper_text(bucket: Dict[str, Any], field: FieldDefinition, value: str) -> None:
    bucket[field_helper_text_key(field)] = {
        "message": value,
        "description": f"Helper text for field '{field.tag_key}'",
    }


def _add_field_options(bucket: Dict[str, Any], field: FieldDefinition, value: str) -> None:
    if not field.type.has_options:
        logger.debug("Skipping option translations for %s field %s", field.type.value, field.tag_key)
        return

    translated = [part.strip() for part in value.split(",")]
    if len(translated) > len(field.options):
        logger.debug(
            "Field %s has %d option(s) but %d translated value(s), ignoring the extras",
            field.tag_key,
            len(field.options),
            len(translated),
        )
    # Positional: translated option N belongs to source option N.
    for option, label in zip(field.options, translated):
        if not label:
            continue
        bucket[field_option_key(field, option.value)] = {
            "message": {"label": label, "value": option.value},
            "description": f"Option '{option.label}' for field '{field.label}'",
        }


SHEET_HANDLERS: Dict[TranslationSheetKind, Callable[[Dict[str, Any], Any, str], None]] = {
    TranslationSheetKind.CATEGORY_NAME: _add_category_name,
    TranslationSheetKind.FIELD_LABEL: _add_field_label,
    TranslationSheetKind.FIELD_HELPER_TEXT: _add_field_helper_text,
    TranslationSheetKind.FIELD_OPTION: _add_field_options,
}


def _resolve_sheets(sheets_data: Mapping[str, Grid], issues: IssueCollector) -> List[tuple]:
    resolved = []
    for name, grid in sheets_data.items():
        kind = TranslationSheetKind.from_sheet_name(name)
        if kind is not None:
            resolved.append((kind, grid))
        elif name in layout.SOURCE_SHEETS:
            logger.debug("Skipping source sheet %s", name)
        else:
            issues.warn(f"Unrecognized sheet {name!r}, skipping it")
    return resolved


def build_message_catalog(
    sheets_data: Mapping[str, Grid],
    fields: Sequence[FieldDefinition],
    presets: Sequence[Preset],
    *,
    catalog: LanguageCatalog,
    primary_language: str,
) -> Outcome[MessageCatalog]:
    """
    Every translation sheet in sheets_data is merged into one catalog.
    Columns in the primary language are ignored, the source column already holds that text.
    """
    issues = IssueCollector(logger, IssueKind.PARSE)
    messages: MessageCatalog = {}
    primary_key = (primary_language or "").lower()

    for kind, grid in _resolve_sheets(sheets_data, issues):
        sheet_issues = IssueCollector(logger, IssueKind.PARSE, kind.sheet_name)
        header = grid[0] if grid else None
        column_outcome = build_column_map(
            header,
            catalog=catalog,
            primary_language=primary_language,
            sheet=kind.sheet_name,
        )
        issues.extend(column_outcome.issues)
        column_map = column_outcome.value

        columns = {
            index: code
            for index, code in column_map.column_to_language.items()
            if code.lower() != primary_key
        }
        for code in columns.values():
            messages.setdefault(code, {})

        rows = layout.data_rows(grid)
        issues.extend(check_column_counts(kind.sheet_name, rows, column_map).issues)

        entities = presets if kind.entity_group == "presets" else fields
        correlation = correlate_rows(kind, rows, entities)
        issues.extend(correlation.issues)

        handler = SHEET_HANDLERS[kind]
        applied = 0
        for match in correlation.value:
            if match.entity is None:
                continue
            for index, code in columns.items():
                if index >= len(match.row) or match.row[index] is None:
                    sheet_issues.warn(f"Missing {code} cell in column {index + 1}", row=match.sheet_row)
                    continue
                value = layout.cell_text(match.row, index)
                if not value:
                    continue
                handler(messages[code], match.entity, value)
                applied += 1

        issues.extend(sheet_issues.issues)
        logger.info("%s: applied %d translation(s) for %d row(s)", kind.sheet_name, applied, len(rows))

    for code, missing in find_missing_keys(messages, fields, presets).items():
        if missing:
            issues.warn(
                f"Language {code!r} is missing {len(missing)} translation(s), e.g. {missing[0]}",
                kind=IssueKind.VALIDATION,
            )

    return issues.wrap(messages)


def expected_keys(fields: Sequence[FieldDefinition], presets: Sequence[Preset]) -> List[str]:
    keys = [preset_name_key(preset) for preset in presets]
    for field in fields:
        keys.append(field_label_key(field))
        if field.helper_text:
            keys.append(field_helper_text_key(field))
        if field.type.has_options:
            keys.extend(field_option_key(field, option.value) for option in field.options)
    return keys


def find_missing_keys(
    messages: MessageCatalog,
    fields: Sequence[FieldDefinition],
    presets: Sequence[Preset],
) -> Dict[str, List[str]]:
    expected = expected_keys(fields, presets)
    return {code: [key for key in expected if key not in bucket] for code, bucket in messages.items()}


def message_text(entry: Optional[Mapping[str, Any]]) -> str:
    if not entry:
        return ""
    message = entry.get("message")
    if isinstance(message, Mapping):
        return str(message.get("label") or "")
    return str(message or "")


def catalog_to_build_translations(
    messages: MessageCatalog,
    presets: Sequence[Preset],
    fields: Sequence[FieldDefinition],
) -> Dict[str, Dict[str, Any]]:
    translations: Dict[str, Dict[str, Any]] = {}
    for code, bucket in messages.items():
        categories: Dict[str, Dict[str, str]] = {}
        for preset in presets:
            name = message_text(bucket.get(preset_name_key(preset)))
            if name:
                categories[preset.icon] = {"name": name}

        field_entries: Dict[str, Dict[str, Any]] = {}
        for field in fields:
            entry: Dict[str, Any] = {}
            label = message_text(bucket.get(field_label_key(field)))
            if label:
                entry["name"] = label
            helper_text = message_text(bucket.get(field_helper_text_key(field)))
            if helper_text:
                entry["description"] = helper_text
            options = {}
            for option in field.options:
                option_label = message_text(bucket.get(field_option_key(field, option.value)))
                if option_label:
                    options[option.value] = option_label
            if options:
                entry["options"] = options
            if entry:
                field_entries[field.tag_key] = entry

        locale: Dict[str, Any] = {}
        if categories:
            locale["categories"] = categories
        if field_entries:
            locale["fields"] = field_entries
        if locale:
            translations[code] = locale
        else:
            logger.debug("Dropping locale %s, it has no translations", code)
    return translations
