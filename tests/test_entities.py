import pytest

from comapeo_builder.schemas import FieldType
from comapeo_builder.services.entities import (
    build_slug_with_fallback,
    field_type_from_code,
    fields_to_details_grid,
    parse_fields,
    parse_options,
    parse_presets,
    presets_to_categories_grid,
    slugify,
)
from comapeo_builder.services.validation import find_duplicates, lint_translation_headers, validate_sheet_data


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Árboles Grandes!", "arboles-grandes"),
        ("  __Hello--World__ ", "hello-world"),
        ("Camp / Shelter", "camp-shelter"),
        ("日本", ""),
        (None, ""),
    ],
)
def test_slugify(value, expected):
    assert slugify(value) == expected


def test_slug_fallback_uses_prefix_and_position():
    assert build_slug_with_fallback("日本", "field", 2) == "field-3"
    assert build_slug_with_fallback("Trees", "category", 0) == "trees"


@pytest.mark.parametrize(
    "code, expected",
    [
        ("t", FieldType.TEXT),
        ("Text", FieldType.TEXT),
        ("N", FieldType.NUMBER),
        ("multiple", FieldType.SELECT_MULTIPLE),
        ("s", FieldType.SELECT_ONE),
        ("", FieldType.SELECT_ONE),
        (None, FieldType.SELECT_ONE),
        ("x", FieldType.SELECT_ONE),
    ],
)
def test_field_type_codes(code, expected):
    assert field_type_from_code(code) is expected


def test_parse_options_supports_explicit_values():
    options = parse_options(FieldType.SELECT_ONE, "yes:Sí, No, , Maybe Later")

    assert [(option.value, option.label) for option in options] == [
        ("yes", "Sí"),
        ("no", "No"),
        ("maybe-later", "Maybe Later"),
    ]
    assert parse_options(FieldType.TEXT, "a, b") == []


def test_parse_fields(sample_sheets):
    outcome = parse_fields(sample_sheets["Details"])

    fields = outcome.value
    assert [field.tag_key for field in fields] == ["species", "diameter", "notes"]
    assert fields[0].type is FieldType.SELECT_ONE
    assert [option.value for option in fields[0].options] == ["oak", "pine"]
    assert fields[1].type is FieldType.NUMBER
    assert fields[2].universal is True
    assert outcome.ok


def test_parse_fields_dedupes_keys_and_flags_blank_names():
    grid = [
        ["Name", "Helper Text", "Type", "Options", "ID"],
        ["Species", "", "s", "Oak"],
        ["", "", "t"],
        ["Species", "", "s", "Pine"],
        ["Other", "", "t", "", "species"],
        ["", "", ""],
    ]

    outcome = parse_fields(grid)

    assert [field.tag_key for field in outcome.value] == ["species", "species-2", "species-3"]
    assert len(outcome.errors) == 1
    assert outcome.errors[0].row == 3
    assert len(outcome.warnings) == 2


def test_parse_presets(sample_sheets):
    fields = parse_fields(sample_sheets["Details"]).value

    outcome = parse_presets(sample_sheets["Categories"], fields, background_colors=[None, "#FF0000"])

    trees, river = outcome.value
    assert trees.icon == "trees"
    assert trees.color == "#2E7D32"
    assert trees.fields == ["species", "diameter"]
    assert trees.icon_id == "trees"
    assert trees.sort == 1
    assert river.color == "#FF0000"
    assert river.icon_id is None
    assert river.sort == 2


def test_parse_presets_defaults_and_unknown_fields():
    categories = [["Name", "Icon", "Fields", "ID"], ["Camp Site", "", "Shelter Type", "camp"]]

    outcome = parse_presets(categories, parse_fields([["Name"], ["Notes", "", "t"]]).value)

    preset = outcome.value[0]
    assert preset.icon == "camp"
    assert preset.color == "#0000FF"
    assert preset.fields == ["shelter-type"]
    assert preset.terms == ["Camp Site", "shelter type"]
    assert any("Shelter Type" in issue.message for issue in outcome.warnings)


def test_grids_round_trip(sample_sheets):
    fields = parse_fields(sample_sheets["Details"]).value
    presets = parse_presets(sample_sheets["Categories"], fields).value

    details = fields_to_details_grid(fields)
    categories = presets_to_categories_grid(presets, fields, "English")

    assert parse_fields(details).value == fields
    assert [preset.fields for preset in parse_presets(categories, fields).value] == [p.fields for p in presets]
    assert details[1] == ["Species", "Which species is it?", "s", "Oak, Pine", "species", "FALSE"]
    assert categories[0][0] == "English"


def test_validation_passes_sample(sample_sheets):
    outcome = validate_sheet_data(sample_sheets)

    assert outcome.ok
    assert any("River" in issue.message and "icon" in issue.message for issue in outcome.warnings)


def test_validation_blocking_errors():
    sheets = {
        "Categories": [["Name"], ["", "", "a"]],
        "Details": [
            ["Name", "Helper Text", "Type", "Options"],
            ["Species", "help", "", ""],
            ["Size", "help", "z"],
            ["Notes", "help", "t"],
        ],
    }

    outcome = validate_sheet_data(sheets)

    messages = [issue.message for issue in outcome.errors]
    assert "Category name is required" in messages
    assert any("needs at least one option" in message for message in messages)
    assert any("invalid type 'z'" in message for message in messages)
    assert len(messages) == 3


def test_validation_requires_both_source_sheets():
    outcome = validate_sheet_data({})

    assert len(outcome.errors) == 2


def test_find_duplicates():
    assert find_duplicates(["Trees", "River", "trees ", "", ""]) == {"trees": [2, 4]}


def test_lint_translation_headers(catalog):
    sheets = {"Category Translations": [["English", "Spanish", "Elvish"]]}

    outcome = lint_translation_headers(sheets, catalog)

    assert [issue.message for issue in outcome.warnings] == [
        "Header 'Elvish' in column 3 is not a known language and will be ignored"
    ]
