"""
API tests.

The app runs with the stores mocked; settings are swapped through
FastAPI's dependency overrides.
"""

import tempfile
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from multimedia.api.dependencies import get_asset_uploader, reset_mock_instances
from multimedia.config.settings import Settings, get_settings
from multimedia.core.assets.errors import AssetValidationError, FieldViolation, StorageError
from multimedia.core.assets.models import new_multimedia_asset
from multimedia.infrastructure import aws
from multimedia.infrastructure.dynamodb.client import MockDynamoDBClient
from multimedia.main import app

API_KEY = "test-key"
HEADERS = {"X-API-Key": API_KEY}
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


def _settings(**overrides) -> Settings:
    values = {
        "api_keys": API_KEY,
        "aws_region": "us-east-1",
        "s3_bucket_name": "test-bucket",
        "dynamodb_table_name": "multimedia-assets",
        "page_options_table_name": "page-options",
        "storage_mock_mode": True,
        "metadata_mock_mode": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def use_settings():
    """Install settings for the app; returns a setter for per-test overrides."""
    def install(**overrides):
        settings = _settings(**overrides)
        app.dependency_overrides[get_settings] = lambda: settings
        return settings

    reset_mock_instances()
    install()
    yield install
    app.dependency_overrides.clear()
    reset_mock_instances()


@pytest.fixture
def client(use_settings):
    return TestClient(app)


@pytest.fixture
def temp_dir(tmp_path, monkeypatch):
    """Send temporary upload files into a directory the test can inspect."""
    directory = tmp_path / "spool"
    directory.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(directory))
    return directory


def _upload(client, content=PNG_BYTES, filename="photo.png", field="file"):
    return client.post(
        "/api/v1/assets",
        headers=HEADERS,
        files={field: (filename, content, "image/png")},
    )


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

class TestAuthentication:

    def test_missing_key_is_forbidden(self, client):
        response = client.get("/api/v1/assets/anything")
        assert response.status_code == 403

    def test_unknown_key_is_forbidden(self, client):
        response = client.get("/api/v1/assets/anything", headers={"X-API-Key": "nope"})
        assert response.status_code == 403


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------

class TestUploadEndpoint:

    def test_upload_creates_asset(self, client):
        response = _upload(client)

        assert response.status_code == 201
        body = response.json()
        assert body["id"]
        assert body["type"] == "image"
        assert body["bucket"] == "https://test-bucket.s3.amazonaws.com"
        assert body["filename"].endswith(".png")
        assert body["url"] == f"{body['bucket']}/{body['filename']}"

    def test_wrong_field_is_bad_request(self, client):
        response = _upload(client, field="attachment")

        assert response.status_code == 400
        assert "file" in response.json()["detail"]

    def test_configured_field_name_is_used(self, client, use_settings):
        use_settings(upload_form_key="attachment")

        response = _upload(client, field="attachment")

        assert response.status_code == 201

    def test_file_over_limit_is_rejected_while_spooling(self, client, use_settings, temp_dir):
        """The body is small enough to parse; the file itself is over the limit."""
        use_settings(max_upload_size_mb=0)

        response = _upload(client)

        assert response.status_code == 413
        assert list(temp_dir.glob("upload-*")) == []

    def test_body_far_over_limit_is_refused_up_front(self, client, use_settings):
        use_settings(max_upload_size_mb=0)

        response = _upload(client, content=b"\x00" * (128 * 1024))

        assert response.status_code == 413

    def test_file_exactly_at_limit_is_accepted(self, client, use_settings):
        """Multipart framing does not count against the file size limit."""
        use_settings(max_upload_size_mb=1)

        response = _upload(client, content=b"\x00" * (1024 * 1024), filename="exact.bin")

        assert response.status_code == 201

    def test_failed_upload_leaves_no_temporary_file(self, client, temp_dir):
        uploader = MagicMock()
        uploader.upload.side_effect = StorageError("bucket unavailable")
        app.dependency_overrides[get_asset_uploader] = lambda: uploader

        response = _upload(client)

        assert response.status_code == 502
        uploader.upload.assert_called_once()
        local_path = uploader.upload.call_args.args[0]
        assert local_path.startswith(str(temp_dir))
        assert list(temp_dir.glob("upload-*")) == []

    def test_invalid_asset_returns_field_errors(self, client):
        uploader = MagicMock()
        uploader.upload.side_effect = AssetValidationError(
            [FieldViolation("bucket", "must be an absolute URL")]
        )
        app.dependency_overrides[get_asset_uploader] = lambda: uploader

        response = _upload(client)

        assert response.status_code == 422
        assert response.json()["errors"] == [
            {"field": "bucket", "message": "must be an absolute URL"}
        ]


class TestLookupEndpoints:

    def test_get_uploaded_asset(self, client):
        created = _upload(client).json()

        response = client.get(f"/api/v1/assets/{created['id']}", headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == created

    def test_get_unknown_asset_is_not_found(self, client):
        response = client.get("/api/v1/assets/no-such-id", headers=HEADERS)

        assert response.status_code == 404
        assert "no-such-id" in response.json()["detail"]

    def test_batch_lookup_reports_missing_ids(self, client):
        first = _upload(client).json()
        second = _upload(client).json()

        response = client.get(
            "/api/v1/assets",
            params={"ids": f"{second['id']},ghost,{first['id']}"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert [a["id"] for a in body["assets"]] == [second["id"], first["id"]]
        assert body["missing_ids"] == ["ghost"]

    def test_download_returns_payload(self, client):
        created = _upload(client).json()

        response = client.get(f"/api/v1/assets/{created['id']}/content", headers=HEADERS)

        assert response.status_code == 200
        assert response.content == PNG_BYTES
        assert response.headers["content-type"] == "image/png"
        assert created["filename"] in response.headers["content-disposition"]


class TestDeleteEndpoint:

    def test_delete_then_lookup_is_not_found(self, client):
        created = _upload(client).json()

        deleted = client.delete(f"/api/v1/assets/{created['id']}", headers=HEADERS)
        looked_up = client.get(f"/api/v1/assets/{created['id']}", headers=HEADERS)

        assert deleted.status_code == 204
        assert looked_up.status_code == 404

    def test_delete_unknown_is_not_found(self, client):
        response = client.delete("/api/v1/assets/no-such-id", headers=HEADERS)
        assert response.status_code == 404


class TestMisconfiguration:

    def test_empty_bucket_is_server_error(self, client, use_settings):
        use_settings(s3_bucket_name="")

        response = client.get("/api/v1/assets/anything", headers=HEADERS)

        assert response.status_code == 500
        assert response.json()["detail"] == "Service is misconfigured."


# ---------------------------------------------------------------------------
# Mixed Mock Modes
# ---------------------------------------------------------------------------

@pytest.fixture
def external_table(monkeypatch):
    """
    Stand in for a real DynamoDB (e.g. LocalStack): one table that
    outlives any single client built by the app.
    """
    table = MockDynamoDBClient()
    table.create_table("multimedia-assets", "id")
    monkeypatch.setattr(aws.boto3.session, "Session", MagicMock())
    monkeypatch.setattr(aws, "create_dynamodb_client", lambda **kwargs: table)
    return table


class TestMixedMockModes:
    """Only one backend mocked; the mocked one must still persist across requests."""

    def test_mocked_storage_is_shared_between_requests(self, use_settings, external_table):
        settings = use_settings(metadata_mock_mode=False)

        first = get_asset_uploader(settings)
        second = get_asset_uploader(settings)

        assert first.storage is second.storage

    def test_mocked_metadata_is_shared_between_requests(self, use_settings, monkeypatch):
        monkeypatch.setattr(aws.boto3.session, "Session", MagicMock())
        settings = use_settings(storage_mock_mode=False)
        asset = new_multimedia_asset("https://test-bucket.s3.amazonaws.com", "a.png", "image")

        get_asset_uploader(settings).repository.store(asset)

        assert get_asset_uploader(settings).find(asset.id) == asset

    def test_upload_then_download_with_only_storage_mocked(self, client, use_settings, external_table):
        use_settings(metadata_mock_mode=False)

        created = _upload(client).json()
        download = client.get(f"/api/v1/assets/{created['id']}/content", headers=HEADERS)
        deleted = client.delete(f"/api/v1/assets/{created['id']}", headers=HEADERS)

        assert download.status_code == 200
        assert download.content == PNG_BYTES
        assert deleted.status_code == 204


# ---------------------------------------------------------------------------
# Page Options
# ---------------------------------------------------------------------------

class TestOptionEndpoints:

    def test_put_and_get_option_with_wallpaper(self, client):
        wallpaper = _upload(client).json()

        put = client.put(
            "/api/v1/options/home",
            json={"terms": "Be nice.", "wallpaper_id": wallpaper["id"]},
            headers=HEADERS,
        )
        got = client.get("/api/v1/options/home", headers=HEADERS)

        assert put.status_code == 200
        assert got.status_code == 200
        assert got.json()["terms"] == "Be nice."
        assert got.json()["wallpaper"]["id"] == wallpaper["id"]

    def test_unknown_wallpaper_is_not_found(self, client):
        response = client.put(
            "/api/v1/options/home",
            json={"wallpaper_id": "ghost"},
            headers=HEADERS,
        )
        assert response.status_code == 404

    def test_unknown_option_is_not_found(self, client):
        response = client.get("/api/v1/options/missing", headers=HEADERS)
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class TestHealthEndpoints:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["details"]["mock_mode"] == {"storage": True, "metadata": True}

    def test_ready_when_configured(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_table(self, client, use_settings):
        use_settings(dynamodb_table_name="")

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
