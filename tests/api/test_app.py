"""
Tests for the FastAPI host surface.
"""

import json

import pytest
from fastapi.testclient import TestClient

import app as app_module


@pytest.fixture
def client(monkeypatch, tmp_path):
    """Create a test client over an in-memory engine."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TAPESTRY_STORAGE_BACKEND", "memory")
    monkeypatch.setenv("TAPESTRY_FILE_BRIDGE_MODE", "download")
    monkeypatch.setenv("TAPESTRY_DOWNLOADS_DIR", str(tmp_path / "downloads"))
    monkeypatch.setenv("TAPESTRY_LOG_TO_FILE", "false")
    with TestClient(app_module.app) as test_client:
        yield test_client


def _create(client, name="Alpha") -> dict:
    response = client.post("/models", json={"name": name})
    assert response.status_code == 201
    return response.json()


class TestHealth:
    """Test informational endpoints."""

    def test_root(self, client):
        """Test root endpoint."""
        assert client.get("/").json()["name"] == "Tapestry Persistence API"

    def test_health(self, client):
        """Test health reports the configured components."""
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["storage_backend"] == "memory"
        assert body["file_bridge"] == "DownloadFileBridge"

    def test_status_without_model(self, client):
        """Test status before any model is open."""
        body = client.get("/status").json()

        assert body["active_model_id"] is None
        assert body["current_model_name"] == "Loading..."
        assert body["lifecycle"] == "ready"


class TestModelEndpoints:
    """Test model creation, listing and opening."""

    def test_create_and_list(self, client):
        """Test created models are listed and active."""
        created = _create(client)

        listed = client.get("/models").json()
        status = client.get("/status").json()

        assert [m["id"] for m in listed] == [created["id"]]
        assert created["filename"] == "Alpha.json"
        assert status["active_model_id"] == created["id"]
        assert status["has_unsaved_changes"] is True

    def test_create_rejects_empty_name(self, client):
        """Test request validation on name."""
        assert client.post("/models", json={"name": ""}).status_code == 422

    def test_open_unknown(self, client):
        """Test opening an unknown model is 404."""
        assert client.post("/models/nope/open").status_code == 404

    def test_open_switches_active_model(self, client):
        """Test opening a model makes it active."""
        first = _create(client, "First")
        _create(client, "Second")

        response = client.post(f"/models/{first['id']}/open")

        assert response.status_code == 200
        assert client.get("/status").json()["current_model_name"] == "First"


class TestWorkingCopyAndSave:
    """Test autosave and disk save through the API."""

    def test_put_working_copy_autosaves_once(self, client):
        """Test an edit commits once and a repeat put commits nothing."""
        _create(client)
        data = client.get("/working-copy").json()
        data["elements"] = [{"id": "e1", "name": "Node"}]

        first = client.put("/working-copy", json=data).json()
        second = client.put("/working-copy", json=data).json()

        assert first["committed"] is True
        assert second["committed"] is False
        assert first["contentHash"] == second["contentHash"]

    def test_save_writes_download(self, client, tmp_path):
        """Test disk save writes the export envelope."""
        created = _create(client)

        body = client.post("/save").json()

        assert body["status"] == "saved"
        exported = json.loads((tmp_path / "downloads" / "Alpha.json").read_text())
        assert exported["metadata"]["id"] == created["id"]
        assert client.get("/status").json()["has_unsaved_changes"] is False

    def test_save_without_model(self, client):
        """Test saving with nothing open is 404."""
        assert client.post("/save").status_code == 404

    def test_save_as(self, client):
        """Test save-as creates a second model."""
        _create(client)

        response = client.post("/save-as", json={"name": "Copy"})

        assert response.status_code == 201
        assert client.get("/status").json()["current_model_name"] == "Copy"
        assert len(client.get("/models").json()) == 2


class TestImportAndConflict:
    """Test import and conflict endpoints."""

    def test_import_bare_payload(self, client):
        """Test a bare payload is imported as a new model."""
        response = client.post(
            "/import",
            params={"filename": "graph.json"},
            content=b'{"elements": [{"id": "e1", "name": "A"}]}',
        )

        assert response.status_code == 200
        body = response.json()
        assert body["kind"] == "loaded"
        assert body["is_new"] is True
        assert body["metadata"]["filename"] == "graph.json"

    def test_import_malformed(self, client):
        """Test malformed files are 400 with a Failed body."""
        response = client.post("/import", content=b'{"what": 1}')

        assert response.status_code == 400
        assert response.json()["error_type"] == "MalformedImport"

    def test_conflict_flow(self, client, tmp_path):
        """Test a diverging import is held as a conflict until resolved."""
        _create(client)
        client.post("/save")
        exported = json.loads((tmp_path / "downloads" / "Alpha.json").read_text())
        exported["data"]["elements"] = [{"id": "e1", "name": "Remote"}]

        response = client.post("/import", content=json.dumps(exported).encode())
        assert response.status_code == 409
        assert client.get("/conflict").status_code == 200
        assert client.get("/status").json()["has_pending_conflict"] is True

        resolved = client.post("/conflict/resolve", json={"resolution": "adopt_incoming"})

        assert resolved.status_code == 200
        assert resolved.json()["loaded"]["metadata"]["id"] == exported["metadata"]["id"]
        assert client.get("/working-copy").json()["elements"][0]["name"] == "Remote"
        assert client.get("/conflict").status_code == 404

    def test_resolve_without_conflict(self, client):
        """Test resolving with nothing pending is 404."""
        response = client.post("/conflict/resolve", json={"resolution": "cancel"})

        assert response.status_code == 404
