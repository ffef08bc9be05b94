from comapeo_builder.services.header_parser import (
    build_column_map,
    check_column_counts,
    resolve_header,
    resolve_primary_language,
)
from comapeo_builder.services.outcome import Severity


def test_name_code_headers_and_unknown_codes(catalog):
    outcome = build_column_map(
        ["English", "Português - pt", "Spanish", "xx-unknown"],
        catalog=catalog,
        primary_language="en",
    )

    column_map = outcome.value
    assert column_map.target_languages == ["pt", "es"]
    assert column_map.column_to_language == {1: "pt", 2: "es"}
    assert column_map.used_fallback is False
    assert any("xx-unknown" in issue.message for issue in outcome.warnings)


def test_header_resolution_order(catalog):
    assert resolve_header("Español", catalog) == "es"
    assert resolve_header("ZH-cn", catalog) == "zh-CN"
    assert resolve_header("Kichwa - qu", catalog) == "qu"
    assert resolve_header("pt-BR", catalog) == "pt-BR"
    assert resolve_header("Klingon", catalog) is None
    assert resolve_header("", catalog) is None


def test_meta_columns_shift_language_start(catalog):
    outcome = build_column_map(
        ["English", "ISO code", "Source text", "Español", "French"],
        catalog=catalog,
        primary_language="en",
    )

    assert outcome.value.language_start == 3
    assert outcome.value.column_to_language == {3: "es", 4: "fr"}


def test_duplicate_languages_keep_first_column(catalog):
    outcome = build_column_map(
        ["English", "Spanish", "ES", "Español", "French"],
        catalog=catalog,
        primary_language="en",
    )

    assert outcome.value.target_languages == ["es", "fr"]
    assert outcome.value.column_to_language == {1: "es", 4: "fr"}
    assert len(outcome.warnings) == 2


def test_blank_header_cells_are_skipped(catalog):
    outcome = build_column_map(["English", "", "Spanish"], catalog=catalog, primary_language="en")

    assert outcome.value.column_to_language == {2: "es"}
    assert len(outcome.warnings) == 1


def test_missing_header_falls_back_to_primary(catalog):
    for header in (None, [], ["", "  "]):
        outcome = build_column_map(header, catalog=catalog, primary_language="pt")
        assert outcome.value.used_fallback is True
        assert outcome.value.target_languages == ["pt"]
        assert outcome.value.column_to_language == {0: "pt"}
        assert outcome.ok


def test_resolve_primary_language(catalog):
    assert resolve_primary_language("Português", catalog=catalog, fallback="en") == "pt"
    assert resolve_primary_language("Name", catalog=catalog, fallback="en") == "en"
    assert resolve_primary_language(None, catalog=catalog, fallback="es") == "es"


def test_short_first_row_is_reported_but_not_fatal(catalog):
    column_map = build_column_map(["English", "Spanish", "French"], catalog=catalog, primary_language="en").value

    short = check_column_counts("Category Translations", [["Trees", "Árboles"]], column_map)
    assert [issue.severity for issue in short.issues] == [Severity.ERROR]

    wide = check_column_counts("Category Translations", [["Trees", "Árboles", "Arbres", "extra"]], column_map)
    assert wide.issues == []


def test_name_code_headers_without_spaces_around_the_hyphen(catalog):
    assert resolve_header("Português-pt", catalog) == "pt"
    assert resolve_header("Tok Pisin -tpi", catalog) == "tpi"
    assert resolve_header("Klingon- tlh", catalog) == "tlh"
    assert resolve_header("Chinese (Hong Kong) - zh-HK", catalog) == "zh-HK"

    outcome = build_column_map(["English", "Español", "Português-pt"], catalog=catalog, primary_language="en")
    assert outcome.value.target_languages == ["es", "pt"]
    assert outcome.warnings == []


def test_bare_tags_need_a_known_language_subtag(catalog):
    assert resolve_header("es-MX", catalog) == "es-MX"
    assert resolve_header("abc", catalog) is None
    assert resolve_header("iso", catalog) is None
    assert resolve_header("xx-YY", catalog) is None

    outcome = build_column_map(["English", "iso", "Español"], catalog=catalog, primary_language="en")
    assert outcome.value.target_languages == ["es"]
    assert any("'iso'" in issue.message for issue in outcome.warnings)
