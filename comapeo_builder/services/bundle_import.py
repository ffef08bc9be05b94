from __future__ import annotations

import io
import json
import logging
import posixpath
import zipfile
import zlib
from typing import Any, Dict, List, Optional

from comapeo_builder.services import sheet_layout as layout
from comapeo_builder.services.catalog_redistributor import redistribute_catalog
from comapeo_builder.services.entities import fields_to_details_grid, presets_to_categories_grid
from comapeo_builder.services.format_detection import NormalizedConfig
from comapeo_builder.services.language_catalog import LanguageCatalog

logger = logging.getLogger(__name__)

MIN_BUNDLE_SIZE = 2
MAX_BUNDLE_SIZE = 10 * 1024 * 1024
ZIP_SIGNATURE = b"PK"
TAR_EXTENSIONS = (".mapeosettings", ".tar")

# member file name -> key in the merged config
MEMBER_KEYS = {
    "presets.json": "presets",
    "categories.json": "categories",
    "fields.json": "fields",
    "metadata.json": "metadata",
    "translations.json": "messages",
    "messages.json": "messages",
    "icons.json": "icons",
}


class BundleImportError(ValueError):
    pass


class TarExtractionNotImplemented(BundleImportError):
    pass


def _parse_json(text: str, source: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise BundleImportError(f"Invalid JSON in {source}: {exc}") from exc


def _decode(content: bytes, source: str) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise BundleImportError(f"Could not read {source} as UTF-8 text") from exc


def _read_member(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> bytes:
    # Bad CRC, unsupported compression, encryption or truncated data.
    try:
        return archive.read(info)
    except (zipfile.BadZipFile, NotImplementedError, RuntimeError, zlib.error, EOFError) as exc:
        raise BundleImportError(f"Could not extract {info.filename}: {exc}") from exc


def _looks_like_json(content: bytes) -> bool:
    return content.lstrip()[:1] in (b"{", b"[")


def _merge_member(config: Dict[str, Any], name: str, value: Any) -> None:
    base = posixpath.basename(name).lower()
    if base == "config.json":
        if isinstance(value, dict):
            for key, item in value.items():
                config.setdefault(key, item)
        return
    key = MEMBER_KEYS.get(base)
    if key is None:
        logger.debug("Ignoring bundle member %s", name)
        return
    # presets.json may be {"presets": {...}} or the bare collection.
    if isinstance(value, dict) and key in value and len(value) == 1:
        value = value[key]
    if key == "messages" and "translations" in base and isinstance(value, dict) and _is_build_translations(value):
        config["translations"] = value
        return
    config[key] = value


def _is_build_translations(value: Dict[str, Any]) -> bool:
    first = next(iter(value.values()), None)
    return isinstance(first, dict) and bool({"categories", "fields"} & set(first))


def _read_zip(content: bytes) -> Dict[str, Any]:
    try:
        archive = zipfile.ZipFile(io.BytesIO(content))
    except zipfile.BadZipFile as exc:
        raise BundleImportError("Could not unzip file. The file may be corrupted.") from exc

    config: Dict[str, Any] = {}
    parse_errors: List[str] = []
    icons: Dict[str, str] = {}
    members = [info for info in archive.infolist() if not info.is_dir()]
    if not members:
        raise BundleImportError("ZIP file is empty.")

    # config.json first so the dedicated member files take precedence over it.
    members.sort(key=lambda info: posixpath.basename(info.filename).lower() != "config.json")

    with archive:
        for info in members:
            name = info.filename
            lower = name.lower()
            try:
                if lower.endswith(".json"):
                    value = _parse_json(_decode(_read_member(archive, info), name), name)
                    _merge_member(config, name, value)
                elif lower.endswith(".svg"):
                    icon_id = posixpath.splitext(posixpath.basename(name))[0]
                    icons[icon_id] = _decode(_read_member(archive, info), name).strip()
            except BundleImportError as exc:
                logger.warning("Skipping bundle member %s: %s", name, exc)
                parse_errors.append(str(exc))

    if icons:
        existing = config.get("icons")
        if isinstance(existing, list):
            known = {item.get("id") for item in existing if isinstance(item, dict)}
            existing.extend({"id": key, "svgData": svg} for key, svg in icons.items() if key not in known)
        elif isinstance(existing, dict):
            for key, svg in icons.items():
                existing.setdefault(key, svg)
        else:
            config["icons"] = [{"id": key, "svgData": svg} for key, svg in icons.items()]

    if not any(key in config for key in ("presets", "categories", "fields")):
        detail = f" ({'; '.join(parse_errors)})" if parse_errors else ""
        raise BundleImportError(
            f"Could not find configuration data in the bundle. Expected config.json or presets/fields files{detail}"
        )
    if parse_errors:
        config["parseErrors"] = parse_errors
    return config


def read_bundle(filename: str, content: bytes) -> Dict[str, Any]:
    """
    Uploaded .comapeocat / .zip / .json / .mapeosettings bytes -> merged config dict.
    A failing archive member is reported under "parseErrors" and does not stop the import.
    """
    size = len(content or b"")
    if size < MIN_BUNDLE_SIZE:
        raise BundleImportError("File is too small or empty.")
    if size > MAX_BUNDLE_SIZE:
        raise BundleImportError("File is too large (max 10MB).")

    lower = (filename or "").lower()
    logger.info("Reading bundle %s (%d bytes)", filename, size)

    if content[:2] == ZIP_SIGNATURE:
        return _read_zip(content)

    if lower.endswith(TAR_EXTENSIONS) and not _looks_like_json(content):
        raise TarExtractionNotImplemented(
            "TAR extraction not implemented. Convert the .mapeosettings file to JSON or a .comapeocat archive first."
        )

    text = _decode(content, filename or "upload")
    if not text.strip():
        raise BundleImportError("File is empty.")
    data = _parse_json(text, filename or "upload")
    if not isinstance(data, dict):
        raise BundleImportError("Invalid JSON: expected an object.")
    return data


def metadata_grid(config: NormalizedConfig, primary_language: Optional[str] = None) -> List[List[str]]:
    grid = [list(layout.METADATA_HEADERS)]
    for key in ("name", "version", "description", "dataset_id"):
        value = config.metadata.get(key)
        if value not in (None, ""):
            grid.append([key, str(value)])
    if primary_language:
        grid.append(["primaryLanguage", primary_language])
    return grid


def icons_grid(config: NormalizedConfig) -> List[List[str]]:
    grid = [list(layout.ICON_HEADERS)]
    for icon in config.icons:
        grid.append([icon["id"], icon.get("svgData") or icon.get("svgUrl") or ""])
    return grid


def build_import_grids(
    config: NormalizedConfig,
    *,
    source_label: str = "English",
    primary_language: Optional[str] = None,
    catalog: Optional[LanguageCatalog] = None,
) -> Dict[str, List[List[str]]]:
    grids: Dict[str, List[List[str]]] = {
        layout.CATEGORIES_SHEET: presets_to_categories_grid(config.presets, config.fields, source_label),
        layout.DETAILS_SHEET: fields_to_details_grid(config.fields),
        layout.METADATA_SHEET: metadata_grid(config, primary_language),
        layout.ICONS_SHEET: icons_grid(config),
    }
    excluded = [primary_language] if primary_language else []
    grids.update(
        redistribute_catalog(
            config.messages,
            config.presets,
            config.fields,
            source_label=source_label,
            exclude_languages=excluded,
            catalog=catalog,
        )
    )
    return grids
