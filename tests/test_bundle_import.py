import io
import json
import zipfile

import pytest

from comapeo_builder.schemas import FieldType
from comapeo_builder.services.bundle_import import (
    BundleImportError,
    TarExtractionNotImplemented,
    build_import_grids,
    read_bundle,
)
from comapeo_builder.services.format_detection import ConfigFormat, detect_config_format, normalize_config

SVG = "<svg><rect/></svg>"

BUILD_REQUEST = {
    "metadata": {"name": "forest", "version": "25.01.02", "description": "Forest"},
    "categories": [
        {"id": "trees", "name": "Trees", "color": "#2E7D32", "iconId": "trees", "defaultFieldIds": ["notes", "species"]},
        {"id": "river", "name": "River", "color": "#1565C0", "defaultFieldIds": ["notes"]},
    ],
    "fields": [
        {
            "id": "species",
            "name": "Species",
            "type": "select",
            "description": "Which species?",
            "options": [{"value": "oak", "label": "Oak"}, {"value": "pine", "label": "Pine"}],
        },
        {"id": "notes", "name": "Notes", "type": "text"},
    ],
    "icons": [{"id": "trees", "svgData": SVG}],
    "translations": {
        "es": {
            "categories": {"trees": {"name": "Árboles"}},
            "fields": {"species": {"name": "Especie", "options": {"pine": "Pino"}}},
        }
    },
}

MAPEO_CONFIG = {
    "metadata": {"name": "Legacy Survey"},
    "presets": {
        "water_point": {"name": "Water Point", "color": "#00AAFF", "fields": ["condition"]},
    },
    "fields": {
        "condition": {"label": "Condition", "type": "select_one", "options": ["Good", "Broken"]},
        "depth": {"label": "Depth", "type": "number", "placeholder": "Meters"},
        "comment": {"label": "Comment", "type": "textarea"},
    },
}


def _zip(members):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def test_plain_json_bundle():
    config = read_bundle("forest.json", json.dumps(BUILD_REQUEST).encode())

    assert config["metadata"]["name"] == "forest"
    assert detect_config_format(config) is ConfigFormat.COMAPEO_BUILD


def test_zip_members_are_merged_and_bad_members_isolated():
    content = _zip(
        {
            "config.json": json.dumps({"metadata": {"name": "old"}, "presets": []}),
            "presets.json": json.dumps({"presets": [{"icon": "camp", "name": "Camp", "geometry": ["point"]}]}),
            "fields.json": json.dumps([{"tagKey": "notes", "label": "Notes", "type": "text"}]),
            "metadata.json": json.dumps({"name": "camp-config", "dataset_id": "camp"}),
            "messages.json": "{not json",
            "icons/camp.svg": SVG,
            "VERSION": "1.0",
        }
    )

    config = read_bundle("camp.comapeocat", content)

    assert config["presets"][0]["icon"] == "camp"
    assert config["metadata"]["name"] == "camp-config"
    assert config["icons"] == [{"id": "camp", "svgData": SVG}]
    assert len(config["parseErrors"]) == 1
    assert "messages.json" in config["parseErrors"][0]

    normalized = normalize_config(config)
    assert normalized.format is ConfigFormat.COMAPEO
    assert normalized.presets[0].icon_source == SVG
    assert normalized.parse_errors == config["parseErrors"]


def test_zip_without_configuration_is_rejected():
    with pytest.raises(BundleImportError):
        read_bundle("empty.comapeocat", _zip({"readme.txt": "hello"}))


@pytest.mark.parametrize("content", [b"", b"{", b"[1, 2]"])
def test_invalid_files_are_rejected(content):
    with pytest.raises(BundleImportError):
        read_bundle("broken.json", content)


def test_oversized_file_is_rejected():
    with pytest.raises(BundleImportError, match="too large"):
        read_bundle("big.json", b"{" + b" " * (10 * 1024 * 1024) + b"}")


def test_mapeosettings_json_is_parsed_directly_and_tar_is_not():
    config = read_bundle("legacy.mapeosettings", json.dumps(MAPEO_CONFIG).encode())
    assert detect_config_format(config) is ConfigFormat.MAPEO

    with pytest.raises(TarExtractionNotImplemented):
        read_bundle("legacy.mapeosettings", b"presets/\x00\x00\x00ustar")


def test_normalize_build_request_marks_universal_fields():
    config = normalize_config(BUILD_REQUEST)

    assert config.format is ConfigFormat.COMAPEO_BUILD
    assert [preset.icon for preset in config.presets] == ["trees", "river"]
    notes = next(field for field in config.fields if field.tag_key == "notes")
    assert notes.universal is True
    assert config.presets[0].fields == ["species"]
    assert config.presets[0].icon_source == SVG
    assert config.presets[1].icon_id is None
    assert config.fields[0].type is FieldType.SELECT_ONE
    assert config.messages["es"]["fields.species.options.pine"]["message"] == {"label": "Pino", "value": "pine"}


def test_normalize_mapeo_config():
    config = normalize_config(MAPEO_CONFIG)

    assert config.metadata["dataset_id"] == "comapeo-legacy-survey"
    assert [(field.tag_key, field.type) for field in config.fields] == [
        ("condition", FieldType.SELECT_ONE),
        ("depth", FieldType.NUMBER),
        ("comment", FieldType.TEXT),
    ]
    assert [option.value for option in config.fields[0].options] == ["good", "broken"]
    assert config.fields[1].helper_text == "Meters"
    assert config.presets[0].icon == "water-point"


def test_unknown_format_is_normalized_best_effort():
    config = normalize_config({"presets": [{"name": "Camp"}]})

    assert config.format is ConfigFormat.UNKNOWN
    assert config.presets[0].icon == "camp"
    assert config.metadata["name"] == "Unknown Configuration"


def test_import_grids():
    config = normalize_config(BUILD_REQUEST)

    grids = build_import_grids(config, source_label="English", primary_language="en")

    assert grids["Categories"][0][0] == "English"
    assert grids["Categories"][1][:4] == ["Trees", SVG, "Species", "trees"]
    assert grids["Details"][1][:5] == ["Species", "Which species?", "s", "Oak, Pine", "species"]
    assert grids["Details"][2][5] == "TRUE"
    assert ["name", "forest"] in grids["Metadata"]
    assert ["primaryLanguage", "en"] in grids["Metadata"]
    assert grids["Icons"] == [["ID", "SVG"], ["trees", SVG]]
    assert grids["Category Translations"] == [["English", "es"], ["Trees", "Árboles"], ["River", ""]]
    assert grids["Detail Option Translations"][1] == ["Oak, Pine", ", Pino"]


def test_corrupt_zip_member_is_isolated():
    content = _zip(
        {
            "presets.json": json.dumps([{"icon": "camp", "name": "Camp", "geometry": ["point"]}]),
            "fields.json": json.dumps([{"tagKey": "notes", "label": "Notes", "type": "text"}]),
        }
    )
    # Same length, different bytes: the stored CRC-32 no longer matches.
    corrupted = content.replace(b'"tagKey"', b'"tagKEY"')
    assert corrupted != content

    config = read_bundle("camp.comapeocat", corrupted)

    assert config["presets"][0]["icon"] == "camp"
    assert "fields" not in config
    assert len(config["parseErrors"]) == 1
    assert "fields.json" in config["parseErrors"][0]


def test_single_category_build_request_keeps_its_fields():
    request = {
        "metadata": {"name": "forest"},
        "categories": [{"id": "trees", "name": "Trees", "defaultFieldIds": ["species", "diameter"]}],
        "fields": [
            {"id": "species", "name": "Species", "type": "text"},
            {"id": "diameter", "name": "Diameter", "type": "number"},
        ],
    }

    config = normalize_config(request)

    assert [(field.tag_key, field.universal) for field in config.fields] == [("species", False), ("diameter", False)]
    assert config.presets[0].fields == ["species", "diameter"]
    grids = build_import_grids(config)
    assert grids["Categories"][1][2] == "Species, Diameter"
    assert [row[5] for row in grids["Details"][1:]] == ["FALSE", "FALSE"]


def test_shared_fields_count_as_universal_only_when_leading():
    request = {
        "categories": [
            {"id": "trees", "name": "Trees", "defaultFieldIds": ["notes", "species"]},
            {"id": "river", "name": "River", "defaultFieldIds": ["notes", "depth", "species"]},
        ],
        "fields": [
            {"id": "notes", "name": "Notes", "type": "text"},
            {"id": "species", "name": "Species", "type": "text"},
            {"id": "depth", "name": "Depth", "type": "number"},
        ],
    }

    config = normalize_config(request)

    assert [field.tag_key for field in config.fields if field.universal] == ["notes"]
    assert [preset.fields for preset in config.presets] == [["species"], ["depth", "species"]]
