# tests/conftest.py

import copy
import os

os.environ.setdefault("BUILD_API_URL", "http://build-api.test")
os.environ.setdefault("BUILD_API_RETRY_DELAY", "0")

import pytest
from fastapi.testclient import TestClient

from comapeo_builder.dependencies import (
    get_build_api_client,
    get_builds_dir,
    get_language_catalog,
    get_spreadsheet_gateway,
)
from comapeo_builder.main import app
from comapeo_builder.services.build_api import BuildArtifact
from comapeo_builder.services.language_catalog import get_language_catalog as load_catalog

TREE_SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24"><circle cx="12" cy="12" r="10"/></svg>'

SAMPLE_SHEETS = {
    "Categories": [
        ["English", "Icon", "Fields", "ID", "Color", "Icon ID"],
        ["Trees", TREE_SVG, "Species, Diameter", "", "#2E7D32"],
        ["River", "", "Species"],
    ],
    "Details": [
        ["Name", "Helper Text", "Type", "Options", "ID", "Universal"],
        ["Species", "Which species is it?", "s", "Oak, Pine"],
        ["Diameter", "Trunk diameter in cm", "n"],
        ["Notes", "Anything else", "t", "", "", "TRUE"],
    ],
    "Metadata": [
        ["Key", "Value"],
        ["name", "forest-monitoring"],
        ["description", "Forest monitoring categories"],
    ],
    "Category Translations": [
        ["English", "Español", "Português - pt"],
        ["Trees", "Árboles", "Árvores"],
        ["River", "Río", "Rio"],
    ],
    "Detail Label Translations": [
        ["English", "Español", "Português - pt"],
        ["Species", "Especie", "Espécie"],
        ["Diameter", "Diámetro", "Diâmetro"],
        ["Notes", "Notas", "Notas"],
    ],
    "Detail Helper Text Translations": [
        ["English", "Español"],
        ["Which species is it?", "¿Qué especie es?"],
        ["Trunk diameter in cm", "Diámetro del tronco en cm"],
        ["Anything else", "Algo más"],
    ],
    "Detail Option Translations": [
        ["English", "Español", "Português - pt"],
        ["Oak, Pine", "Roble, Pino", "Carvalho"],
        ["", "", ""],
        ["", "", ""],
    ],
}


class FakeGateway:
    """In-memory stand-in for SpreadsheetGateway."""

    def __init__(self, sheets=None, title="Forest Monitoring"):
        self.sheets = copy.deepcopy(sheets if sheets is not None else SAMPLE_SHEETS)
        self.title = title
        self.writes = []

    def sheet_titles(self):
        return list(self.sheets)

    def document_name(self):
        return self.title

    def read_sheets(self, names):
        return {name: copy.deepcopy(self.sheets[name]) for name in names if name in self.sheets}

    def read_background_colors(self, sheet, rows, column=0):
        return [None] * rows

    def write_sheet(self, name, grid):
        self.writes.append(name)
        self.sheets[name] = [list(row) for row in grid]


class FakeBuildClient:
    base_url = "http://build-api.test"

    def __init__(self, content=b"PK\x03\x04" + b"\x00" * 256, error=None, healthy=True):
        self.content = content
        self.error = error
        self.healthy = healthy
        self.payloads = []

    def build(self, payload):
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        name = payload["metadata"]["name"]
        version = payload["metadata"]["version"]
        return BuildArtifact(
            content=self.content,
            filename=f"{name}-{version}.comapeocat",
            content_type="application/octet-stream",
        )

    def check_health(self):
        return self.healthy


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def sample_sheets():
    return copy.deepcopy(SAMPLE_SHEETS)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def fake_build_client():
    return FakeBuildClient()


@pytest.fixture
def builds_dir(tmp_path):
    return tmp_path / "builds"


@pytest.fixture
def client(fake_gateway, fake_build_client, builds_dir):
    """TestClient with the spreadsheet and the build API replaced by fakes."""
    app.dependency_overrides[get_spreadsheet_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_build_api_client] = lambda: fake_build_client
    app.dependency_overrides[get_builds_dir] = lambda: builds_dir
    app.dependency_overrides[get_language_catalog] = load_catalog
    yield TestClient(app)
    app.dependency_overrides.clear()
