"""
Spreadsheet data -> build API request body.

    {
        "metadata": {"name", "version", "description"?, "builderName", "builderVersion"},
        "locales": ["en"],
        "categories": [{"id", "name", "appliesTo", "color", "iconId"?, "defaultFieldIds"?}],
        "fields": [{"id", "tagKey", "name", "type", "description"?, "options"?, "appliesTo"}],
        "icons": [{"id", "svgData" | "svgUrl"}],
        "translations": {"es": {"categories": {...}, "fields": {...}}},
    }

Categories and fields keep sheet order end to end, the build API relies on array position.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import unquote

from comapeo_builder.schemas import FieldDefinition, FieldType, Preset
from comapeo_builder.services import sheet_layout as layout
from comapeo_builder.services.entities import parse_fields, parse_presets, slugify
from comapeo_builder.services.language_catalog import LanguageCatalog
from comapeo_builder.services.message_catalog import build_message_catalog, catalog_to_build_translations
from comapeo_builder.services.outcome import Issue

logger = logging.getLogger(__name__)

BUILDER_NAME = "comapeo-config-spreadsheet-plugin"
BUILDER_VERSION = "2.0.0"

API_FIELD_TYPES = {
    FieldType.TEXT: "text",
    FieldType.NUMBER: "number",
    FieldType.SELECT_ONE: "select",
    FieldType.SELECT_MULTIPLE: "multiselect",
}
FIELD_APPLIES_TO = ["observation", "track"]


class ConfigValidationError(ValueError):
    """Raised when the sheets cannot produce a buildable configuration."""

    def __init__(self, message: str, issues: Optional[List[Issue]] = None):
        super().__init__(message)
        self.issues = issues or []


@dataclass
class BuildContext:
    catalog: LanguageCatalog
    primary_language: str
    document_name: str = "Unnamed Config"
    category_selection: List[str] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    fields: List[FieldDefinition] = field(default_factory=list)
    presets: List[Preset] = field(default_factory=list)
    messages: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def build_version(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).strftime("%y.%m.%d")


def metadata_values(metadata_grid: Sequence[Sequence[Any]] | None) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for row in layout.data_rows(metadata_grid):
        key = layout.cell_text(row, 0)
        if key and key not in values:
            values[key] = layout.cell_text(row, 1)
    return values


def build_metadata(metadata_grid: Sequence[Sequence[Any]] | None, document_name: str) -> Dict[str, Any]:
    values = metadata_values(metadata_grid)
    metadata: Dict[str, Any] = {
        "name": values.get("name") or f"config-{slugify(document_name)}",
        # Version is stamped on every build, whatever the sheet says.
        "version": build_version(),
        "builderName": BUILDER_NAME,
        "builderVersion": BUILDER_VERSION,
    }
    if values.get("description"):
        metadata["description"] = values["description"]
    if values.get("legacyCompat", "").upper() == "TRUE":
        metadata["legacyCompat"] = True
    return metadata


def decode_data_svg(data_uri: str) -> Optional[str]:
    try:
        if ";base64," in data_uri:
            return base64.b64decode(data_uri.split(";base64,", 1)[1]).decode("utf-8")
        comma = data_uri.find(",")
        if comma == -1:
            return None
        return unquote(data_uri[comma + 1:])
    except (binascii.Error, UnicodeDecodeError) as exc:
        logger.warning("Failed to decode data URI icon: %s", exc)
        return None


def parse_icon_source(icon: str) -> Optional[Dict[str, str]]:
    """Inline <svg>, data:image/svg+xml (plain or base64), or a public .svg URL."""
    text = (icon or "").strip()
    if not text:
        return None
    if text.startswith("<svg"):
        return {"svgData": text}
    if text.lower().startswith("data:image/svg+xml"):
        svg = decode_data_svg(text)
        if svg and svg.strip().startswith("<svg"):
            return {"svgData": svg.strip()}
        return None
    lower = text.lower()
    if lower.startswith(("http://", "https://")) and ".svg" in lower:
        return {"svgUrl": text}
    return None


def build_icons(
    presets: Sequence[Preset],
    icons_grid: Sequence[Sequence[Any]] | None = None,
) -> List[Dict[str, str]]:
    icons: List[Dict[str, str]] = []
    seen = set()

    def add(icon_id: str, source: str, origin: str) -> None:
        if not icon_id or icon_id in seen:
            return
        parsed = parse_icon_source(source)
        if parsed is None:
            logger.warning("Could not resolve icon %r from %s", icon_id, origin)
            return
        seen.add(icon_id)
        icons.append({"id": icon_id, **parsed})

    for preset in presets:
        if preset.icon_source:
            add(preset.icon_id or preset.icon, preset.icon_source, layout.CATEGORIES_SHEET)

    for row in layout.data_rows(icons_grid):
        add(layout.cell_text(row, 0), layout.cell_text(row, 1), layout.ICONS_SHEET)

    return icons


def build_fields(fields: Sequence[FieldDefinition]) -> List[Dict[str, Any]]:
    result = []
    for item in fields:
        payload: Dict[str, Any] = {
            "id": item.tag_key,
            "tagKey": item.tag_key,
            "name": item.label,
            "type": API_FIELD_TYPES[item.type],
            "appliesTo": list(FIELD_APPLIES_TO),
        }
        if item.helper_text:
            payload["description"] = item.helper_text
        if item.type.has_options and item.options:
            unique = {}
            for option in item.options:
                unique.setdefault(option.value, {"value": option.value, "label": option.label})
            if len(unique) < len(item.options):
                logger.warning(
                    "Field %s: removed %d duplicate option value(s)",
                    item.tag_key,
                    len(item.options) - len(unique),
                )
            payload["options"] = list(unique.values())
        result.append(payload)
    return result


def build_categories(presets: Sequence[Preset], fields: Sequence[FieldDefinition]) -> List[Dict[str, Any]]:
    known = {item.tag_key for item in fields}
    universal = [item.tag_key for item in fields if item.universal]
    categories = []
    for preset in presets:
        default_field_ids: List[str] = []
        for key in [*universal, *preset.fields]:
            if key in known and key not in default_field_ids:
                default_field_ids.append(key)

        category: Dict[str, Any] = {
            "id": preset.icon,
            "name": preset.name,
            "appliesTo": ["observation"],
            "color": preset.color,
        }
        if preset.icon_id:
            category["iconId"] = preset.icon_id
        if default_field_ids:
            category["defaultFieldIds"] = default_field_ids
        categories.append(category)

    # At least one category must be usable on tracks.
    if categories:
        categories[0]["appliesTo"] = ["observation", "track"]
    return categories


def build_payload(
    sheets_data: Mapping[str, Sequence[Sequence[Any]]],
    context: BuildContext,
    background_colors: Optional[Sequence[Optional[str]]] = None,
) -> Dict[str, Any]:
    fields_outcome = parse_fields(sheets_data.get(layout.DETAILS_SHEET))
    context.issues.extend(fields_outcome.issues)
    presets_outcome = parse_presets(
        sheets_data.get(layout.CATEGORIES_SHEET),
        fields_outcome.value,
        background_colors,
    )
    context.issues.extend(presets_outcome.issues)
    context.fields = fields_outcome.value
    context.presets = presets_outcome.value

    fields = build_fields(context.fields)
    categories = build_categories(context.presets, context.fields)
    icons = build_icons(context.presets, sheets_data.get(layout.ICONS_SHEET))

    registered = {icon["id"] for icon in icons}
    missing = [category for category in categories if category.get("iconId") and category["iconId"] not in registered]
    if missing:
        names = ", ".join(f'"{category["name"]}"' for category in missing)
        raise ConfigValidationError(
            f"Could not load icons for categories: {names}. "
            "Check that the Icon column contains valid SVG content or a public SVG URL."
        )

    messages_outcome = build_message_catalog(
        sheets_data,
        context.fields,
        context.presets,
        catalog=context.catalog,
        primary_language=context.primary_language,
    )
    context.issues.extend(messages_outcome.issues)
    context.messages = messages_outcome.value
    translations = catalog_to_build_translations(context.messages, context.presets, context.fields)

    context.category_selection = [category["id"] for category in categories]

    payload: Dict[str, Any] = {
        "metadata": build_metadata(sheets_data.get(layout.METADATA_SHEET), context.document_name),
        "locales": [context.primary_language],
        "categories": categories,
        "fields": fields,
    }
    if icons:
        payload["icons"] = icons
    if translations:
        payload["translations"] = translations

    logger.info(
        "Built payload with %d categories, %d fields, %d icons, %d translated locale(s)",
        len(categories),
        len(fields),
        len(icons),
        len(translations),
    )
    return payload
