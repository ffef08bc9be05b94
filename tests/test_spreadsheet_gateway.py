from comapeo_builder.schemas import Preset
from comapeo_builder.services.header_parser import build_column_map, check_column_counts
from comapeo_builder.services.message_catalog import build_message_catalog
from comapeo_builder.services.spreadsheet_gateway import SpreadsheetGateway


class FakeRequest:
    def __init__(self, response):
        self.response = response

    def execute(self):
        return self.response


class FakeValues:
    def __init__(self, ranges):
        self.ranges = ranges
        self.requested = []

    def batchGet(self, spreadsheetId, ranges):
        self.requested.append(ranges)
        return FakeRequest({"valueRanges": [{"values": self.ranges[name.strip("'")]} for name in ranges]})


class FakeSpreadsheets:
    def __init__(self, ranges):
        self._values = FakeValues(ranges)
        self.titles = list(ranges)

    def get(self, spreadsheetId, fields=None, **kwargs):
        sheets = [{"properties": {"title": title, "sheetId": index}} for index, title in enumerate(self.titles)]
        return FakeRequest({"properties": {"title": "Forest Monitoring"}, "sheets": sheets})

    def values(self):
        return self._values


class FakeService:
    def __init__(self, ranges):
        self._spreadsheets = FakeSpreadsheets(ranges)

    def spreadsheets(self):
        return self._spreadsheets


# What values.batchGet returns when the last French cells are blank.
TRIMMED = {
    "Category Translations": [
        ["English", "Español", "French"],
        ["Trees", "Árboles"],
        ["River", "Río", "Rivière"],
        [],
        ["Lake"],
    ],
}


def test_read_sheets_restores_trailing_blank_cells():
    gateway = SpreadsheetGateway("sheet-123", FakeService(TRIMMED))

    sheets = gateway.read_sheets(["Categories", "Category Translations"])

    assert list(sheets) == ["Category Translations"]
    assert sheets["Category Translations"] == [
        ["English", "Español", "French"],
        ["Trees", "Árboles", ""],
        ["River", "Río", "Rivière"],
        ["", "", ""],
        ["Lake", "", ""],
    ]
    assert gateway.document_name() == "Forest Monitoring"


def test_blank_trailing_cells_are_not_reported_as_missing(catalog):
    gateway = SpreadsheetGateway("sheet-123", FakeService(TRIMMED))
    grid = gateway.read_sheets(["Category Translations"])["Category Translations"][:3]
    sheets = {"Category Translations": grid}

    column_map = build_column_map(grid[0], catalog=catalog, primary_language="en").value
    assert check_column_counts("Category Translations", grid[1:], column_map).issues == []

    presets = [Preset(icon="trees", name="Trees"), Preset(icon="river", name="River")]
    outcome = build_message_catalog(sheets, [], presets, catalog=catalog, primary_language="en")
    assert not any("cell in column" in issue.message for issue in outcome.issues)
    assert outcome.value["fr"]["presets.river.name"]["message"] == "Rivière"
    assert "presets.trees.name" not in outcome.value["fr"]
