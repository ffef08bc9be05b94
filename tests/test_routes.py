import json

from comapeo_builder.services import sheets_config
from comapeo_builder.services.build_api import BuildApiError
from comapeo_builder.services.payload_builder import build_version


def test_list_languages(client):
    response = client.get("/languages")

    assert response.status_code == 200
    languages = {item["code"]: item for item in response.json()}
    assert languages["es"] == {"code": "es", "english": "Spanish", "native": "Español"}
    assert "pt" in languages


def test_resolve_language_header(client):
    assert client.get("/languages/resolve", params={"header": "Português - pt"}).json()["code"] == "pt"
    assert client.get("/languages/resolve", params={"header": "Spanish"}).json()["code"] == "es"
    assert client.get("/languages/resolve", params={"header": "Quenya - qya"}).json()["code"] == "qya"
    assert client.get("/languages/resolve", params={"header": "Klingon"}).json()["code"] is None


def test_build_and_download(client, fake_build_client, builds_dir):
    response = client.post("/build")

    assert response.status_code == 200, response.text
    summary = response.json()
    assert summary["file_name"] == f"{build_version()}.comapeocat"
    assert summary["categories_count"] == 2
    assert summary["fields_count"] == 3
    assert summary["icons_count"] == 1
    assert sorted(summary["languages"]) == ["es", "pt"]
    assert summary["category_selection"] == ["trees", "river"]
    assert summary["size_bytes"] == len(fake_build_client.content)

    payload = fake_build_client.payloads[0]
    assert payload["metadata"]["name"] == "forest-monitoring"
    assert payload["locales"] == ["en"]
    assert (builds_dir / summary["file_name"]).read_bytes() == fake_build_client.content

    download = client.get(f"/build/files/{summary['file_name']}")
    assert download.status_code == 200
    assert download.content == fake_build_client.content


def test_download_rejects_unknown_and_unsafe_names(client):
    assert client.get("/build/files/missing.comapeocat").status_code == 404
    assert client.get("/build/files/notes.txt").status_code == 404


def test_build_with_blocking_errors_returns_422(client, fake_gateway, fake_build_client):
    fake_gateway.sheets["Details"].append(["", "", "t"])

    response = client.post("/build")

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert "blocking error" in detail["message"]
    assert detail["errors"][0]["message"] == "Field name is required"
    assert fake_build_client.payloads == []


def test_build_api_failure_returns_502(client, fake_build_client):
    fake_build_client.error = BuildApiError("Build API unavailable", attempts=3, last_error="503")

    response = client.post("/build")

    assert response.status_code == 502
    assert "Build API unavailable" in response.json()["detail"]


def test_validate_spreadsheet(client, fake_gateway):
    response = client.get("/build/validate")

    assert response.status_code == 200
    report = response.json()
    assert report["valid"] is True
    assert any("River" in warning["message"] for warning in report["warnings"])

    fake_gateway.sheets["Categories"] = [["English"]]
    report = client.get("/build/validate").json()
    assert report["valid"] is False


def test_preview_translations(client):
    response = client.get("/build/translations")

    assert response.status_code == 200
    preview = response.json()
    assert preview["primary_language"] == "en"
    assert sorted(preview["languages"]) == ["es", "pt"]
    assert preview["messages"]["es"]["presets.trees.name"]["message"] == "Árboles"


def test_import_json_bundle(client, fake_gateway):
    bundle = {
        "metadata": {"name": "camp-config", "dataset_id": "camp"},
        "presets": [{"icon": "camp", "name": "Camp", "geometry": ["point"], "fields": ["notes"]}],
        "fields": [{"tagKey": "notes", "label": "Notes", "type": "text"}],
        "messages": {"es": {"presets.camp.name": {"message": "Campamento", "description": ""}}},
    }

    response = client.post(
        "/import",
        files={"file": ("camp.json", json.dumps(bundle).encode(), "application/json")},
    )

    assert response.status_code == 200, response.text
    summary = response.json()
    assert summary["format"] == "comapeo"
    assert summary["config_name"] == "camp-config"
    assert summary["languages"] == ["es"]
    assert "Categories" in fake_gateway.writes
    assert fake_gateway.sheets["Categories"][1][0] == "Camp"
    assert fake_gateway.sheets["Category Translations"][1] == ["Camp", "Campamento"]


def test_import_rejects_invalid_file(client):
    response = client.post("/import", files={"file": ("broken.json", b"{oops", "application/json")})

    assert response.status_code == 400


def test_settings_roundtrip(client, monkeypatch, tmp_path):
    monkeypatch.setattr(sheets_config, "PROJECT_ROOT", tmp_path)
    monkeypatch.setattr(sheets_config, "CONFIG_PATH", tmp_path / "sheets_config.json")

    assert client.get("/settings/env").json() == {"spreadsheet_id": "", "credentials_path": "credentials.json"}

    response = client.put("/settings/env", json={"spreadsheet_id": "sheet-123"})
    assert response.json()["spreadsheet_id"] == "sheet-123"

    rejected = client.post("/settings/credentials/upload", json={"data": {"type": "authorized_user"}})
    assert rejected.status_code == 400

    uploaded = client.post(
        "/settings/credentials/upload",
        json={"data": {"type": "service_account", "client_email": "bot@example.iam"}, "path": "keys/sa.json"},
    )
    assert uploaded.json() == {"spreadsheet_id": "sheet-123", "credentials_path": "keys/sa.json"}
    assert json.loads((tmp_path / "keys" / "sa.json").read_text())["type"] == "service_account"


def test_system_health(client, fake_build_client):
    assert client.get("/system/health").json() == {
        "status": "ok",
        "build_api": {"url": "http://build-api.test", "reachable": True},
    }

    fake_build_client.healthy = False
    assert client.get("/system/health").json()["status"] == "degraded"
