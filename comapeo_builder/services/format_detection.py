"""
Untyped bundle JSON -> NormalizedConfig.

Three layouts are recognised:

* CoMapeo: ``presets`` is a list (with ``geometry``) and fields carry ``tagKey``.
* CoMapeo build request (v2): a ``categories`` list plus fields keyed by ``id``.
* Mapeo legacy: ``presets`` / ``fields`` are objects keyed by id.

Anything else is normalized on a best effort basis as UNKNOWN.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from comapeo_builder.schemas import DEFAULT_COLOR, DEFAULT_GEOMETRY, FieldDefinition, FieldOption, FieldType, Preset
from comapeo_builder.services.catalog_redistributor import translations_to_catalog
from comapeo_builder.services.entities import build_slug_with_fallback, slugify

logger = logging.getLogger(__name__)

FIELD_TYPE_ALIASES = {
    "selectone": FieldType.SELECT_ONE,
    "select_one": FieldType.SELECT_ONE,
    "select": FieldType.SELECT_ONE,
    "selectmultiple": FieldType.SELECT_MULTIPLE,
    "select_multiple": FieldType.SELECT_MULTIPLE,
    "multiselect": FieldType.SELECT_MULTIPLE,
    "number": FieldType.NUMBER,
    "integer": FieldType.NUMBER,
}


class ConfigFormat(str, Enum):
    COMAPEO = "comapeo"
    COMAPEO_BUILD = "comapeo_build"
    MAPEO = "mapeo"
    UNKNOWN = "unknown"


@dataclass
class NormalizedConfig:
    format: ConfigFormat
    metadata: Dict[str, Any] = field(default_factory=dict)
    fields: List[FieldDefinition] = field(default_factory=list)
    presets: List[Preset] = field(default_factory=list)
    icons: List[Dict[str, str]] = field(default_factory=list)
    messages: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    parse_errors: List[str] = field(default_factory=list)


def _first(items: Any) -> Any:
    return items[0] if isinstance(items, list) and items else None


def detect_config_format(data: Any) -> ConfigFormat:
    if not isinstance(data, Mapping) or not data:
        logger.warning("Empty configuration data")
        return ConfigFormat.UNKNOWN

    metadata = data.get("metadata") if isinstance(data.get("metadata"), Mapping) else {}
    fields = data.get("fields")
    presets = data.get("presets")

    if isinstance(data.get("categories"), list):
        return ConfigFormat.COMAPEO_BUILD

    first_field = _first(fields)
    first_preset = _first(presets)
    if (
        (isinstance(metadata.get("dataset_id"), str) and isinstance(metadata.get("name"), str))
        or (isinstance(first_field, Mapping) and first_field.get("tagKey"))
        or (isinstance(first_preset, Mapping) and first_preset.get("geometry"))
    ):
        return ConfigFormat.COMAPEO

    if (
        isinstance(presets, Mapping)
        or isinstance(fields, Mapping)
        or (isinstance(metadata.get("name"), str) and not metadata.get("dataset_id"))
    ):
        return ConfigFormat.MAPEO

    logger.warning("Unknown configuration format")
    return ConfigFormat.UNKNOWN


def normalize_field_type(raw: Any) -> FieldType:
    return FIELD_TYPE_ALIASES.get(str(raw or "").strip().lower(), FieldType.TEXT)


def normalize_options(raw: Any, tag_key: str) -> List[FieldOption]:
    options: List[FieldOption] = []
    if isinstance(raw, list):
        for index, item in enumerate(raw):
            if isinstance(item, str):
                options.append(FieldOption(label=item, value=build_slug_with_fallback(item, tag_key, index)))
            elif isinstance(item, Mapping) and item.get("label") is not None:
                label = str(item["label"])
                value = item.get("value")
                options.append(
                    FieldOption(label=label, value=str(value) if value not in (None, "") else slugify(label))
                )
    elif isinstance(raw, Mapping):
        for key, value in raw.items():
            options.append(FieldOption(label=value if isinstance(value, str) else str(key), value=str(key)))
    return options


def _field_from(tag_key: str, raw: Mapping[str, Any], label_key: str = "label") -> FieldDefinition:
    field_type = normalize_field_type(raw.get("type"))
    return FieldDefinition(
        tag_key=tag_key,
        type=field_type,
        label=str(raw.get(label_key) or raw.get("label") or tag_key),
        helper_text=str(raw.get("helperText") or raw.get("description") or raw.get("placeholder") or ""),
        options=normalize_options(raw.get("options"), tag_key) if field_type.has_options else [],
        universal=bool(raw.get("universal", False)),
    )


def _preset_from(icon: str, raw: Mapping[str, Any], index: int) -> Preset:
    geometry = raw.get("geometry")
    terms = raw.get("terms")
    return Preset(
        icon=icon,
        name=str(raw.get("name") or icon),
        color=str(raw.get("color") or DEFAULT_COLOR),
        fields=[str(key) for key in raw.get("fields") or raw.get("defaultFieldIds") or []],
        geometry=list(geometry) if isinstance(geometry, list) and geometry else list(DEFAULT_GEOMETRY),
        sort=int(raw.get("sort") or index + 1),
        terms=[str(term) for term in terms] if isinstance(terms, list) else [],
        icon_id=raw.get("iconId") or raw.get("icon") or None,
    )


def normalize_icons(raw: Any) -> List[Dict[str, str]]:
    """Icons as [{"id", "svgData" | "svgUrl"}] from either a list of objects or an id -> svg mapping."""
    icons: List[Dict[str, str]] = []
    if isinstance(raw, Mapping):
        raw = [{"id": key, "svgData": value} for key, value in raw.items()]
    for item in raw or []:
        if not isinstance(item, Mapping):
            continue
        icon_id = item.get("id") or item.get("name")
        svg = item.get("svgData") or item.get("svg") or item.get("data")
        if icon_id and svg:
            icons.append({"id": str(icon_id), "svgData": str(svg)})
        elif icon_id and item.get("svgUrl"):
            icons.append({"id": str(icon_id), "svgUrl": str(item["svgUrl"])})
    return icons


def normalize_messages(raw: Any) -> Dict[str, Dict[str, Any]]:
    messages: Dict[str, Dict[str, Any]] = {}
    if not isinstance(raw, Mapping):
        return messages
    for code, bucket in raw.items():
        if not isinstance(bucket, Mapping):
            continue
        entries = messages.setdefault(str(code), {})
        for key, entry in bucket.items():
            if isinstance(entry, Mapping) and "message" in entry:
                entries[key] = dict(entry)
            elif isinstance(entry, str):
                entries[key] = {"message": entry, "description": ""}
    return messages


def _normalize_comapeo(data: Mapping[str, Any]) -> NormalizedConfig:
    fields = []
    for raw in data.get("fields") or []:
        if isinstance(raw, Mapping):
            tag_key = str(raw.get("tagKey") or raw.get("key") or slugify(raw.get("label")))
            if tag_key:
                fields.append(_field_from(tag_key, raw))

    presets = []
    for index, raw in enumerate(data.get("presets") or []):
        if isinstance(raw, Mapping):
            icon = str(raw.get("icon") or build_slug_with_fallback(raw.get("name"), "category", index))
            presets.append(_preset_from(icon, raw, index))

    return NormalizedConfig(
        format=ConfigFormat.COMAPEO,
        metadata=dict(data.get("metadata") or {}),
        fields=fields,
        presets=sorted(presets, key=lambda preset: preset.sort),
        icons=normalize_icons(data.get("icons")),
        messages=normalize_messages(data.get("messages")),
    )


def _leading_shared_fields(presets: List[Preset]) -> Set[str]:
    """
    Builds put universal fields first in every category, so they are the
    common prefix of the field lists. One category gives no evidence either way.
    """
    if len(presets) < 2:
        return set()
    shared = []
    for keys in zip(*(preset.fields for preset in presets)):
        if len(set(keys)) != 1:
            break
        shared.append(keys[0])
    return set(shared)


def _normalize_comapeo_build(data: Mapping[str, Any]) -> NormalizedConfig:
    fields = []
    for raw in data.get("fields") or []:
        if isinstance(raw, Mapping):
            tag_key = str(raw.get("id") or raw.get("tagKey") or slugify(raw.get("name")))
            if tag_key:
                fields.append(_field_from(tag_key, raw, label_key="name"))

    categories = [raw for raw in data.get("categories") or [] if isinstance(raw, Mapping)]
    presets = []
    for index, raw in enumerate(categories):
        icon = str(raw.get("id") or build_slug_with_fallback(raw.get("name"), "category", index))
        preset = _preset_from(icon, raw, index)
        preset.sort = index + 1
        presets.append(preset)

    # An explicit "universal" flag on a field wins over inference.
    if not any(item.universal for item in fields):
        shared = _leading_shared_fields(presets)
        for item in fields:
            item.universal = item.tag_key in shared
    universal = {item.tag_key for item in fields if item.universal}
    for preset in presets:
        preset.fields = [key for key in preset.fields if key not in universal]

    messages = normalize_messages(data.get("messages"))
    for code, bucket in translations_to_catalog(data.get("translations") or {}, fields).items():
        messages.setdefault(code, {}).update(bucket)

    return NormalizedConfig(
        format=ConfigFormat.COMAPEO_BUILD,
        metadata=dict(data.get("metadata") or {}),
        fields=fields,
        presets=presets,
        icons=normalize_icons(data.get("icons")),
        messages=messages,
    )


def _normalize_mapeo(data: Mapping[str, Any]) -> NormalizedConfig:
    raw_fields = data.get("fields") if isinstance(data.get("fields"), Mapping) else {}
    fields = [_field_from(str(key), raw) for key, raw in raw_fields.items() if isinstance(raw, Mapping)]

    raw_presets = data.get("presets") if isinstance(data.get("presets"), Mapping) else {}
    presets = [
        _preset_from(slugify(key) or str(key), raw, index)
        for index, (key, raw) in enumerate(raw_presets.items())
        if isinstance(raw, Mapping)
    ]

    metadata = dict(data.get("metadata") or {})
    name = metadata.get("name") or "mapeo-config"
    metadata.setdefault("name", name)
    metadata.setdefault("dataset_id", f"comapeo-{slugify(name)}")

    return NormalizedConfig(
        format=ConfigFormat.MAPEO,
        metadata=metadata,
        fields=fields,
        presets=presets,
        icons=normalize_icons(data.get("icons")),
        messages=normalize_messages(data.get("messages")),
    )


def _normalize_unknown(data: Mapping[str, Any]) -> NormalizedConfig:
    if isinstance(data.get("presets"), Mapping) or isinstance(data.get("fields"), Mapping):
        config = _normalize_mapeo(data)
    else:
        config = _normalize_comapeo(data)
    config.format = ConfigFormat.UNKNOWN
    config.metadata.setdefault("name", "Unknown Configuration")
    return config


NORMALIZERS: Dict[ConfigFormat, Callable[[Mapping[str, Any]], NormalizedConfig]] = {
    ConfigFormat.COMAPEO: _normalize_comapeo,
    ConfigFormat.COMAPEO_BUILD: _normalize_comapeo_build,
    ConfigFormat.MAPEO: _normalize_mapeo,
    ConfigFormat.UNKNOWN: _normalize_unknown,
}


def _attach_icon_sources(config: NormalizedConfig) -> None:
    by_id = {icon["id"]: icon.get("svgData") or icon.get("svgUrl") or "" for icon in config.icons}
    for preset in config.presets:
        icon_id = preset.icon_id or preset.icon
        if icon_id in by_id:
            preset.icon_id = icon_id
            preset.icon_source = by_id[icon_id]
        else:
            preset.icon_id = None


def normalize_config(data: Mapping[str, Any]) -> NormalizedConfig:
    config_format = detect_config_format(data)
    logger.info("Normalizing configuration from %s format", config_format.value)
    config = NORMALIZERS[config_format](data if isinstance(data, Mapping) else {})
    config.parse_errors = [str(err) for err in (data or {}).get("parseErrors", [])] if isinstance(data, Mapping) else []
    _attach_icon_sources(config)
    logger.info(
        "Normalized %d categories, %d fields, %d icons, %d language(s)",
        len(config.presets),
        len(config.fields),
        len(config.icons),
        len(config.messages),
    )
    return config
