"""Unit tests for wiring the uploader against AWS."""

from unittest.mock import MagicMock

import pytest

from multimedia.core.assets.errors import InvalidArgumentError
from multimedia.infrastructure import aws
from multimedia.infrastructure.aws import create_aws_uploader
from multimedia.infrastructure.dynamodb.repositories.assets import DynamoDBAssetRepository
from multimedia.infrastructure.storage.client import MockStorageClient, S3StorageClient


class TestCreateAwsUploader:

    @pytest.mark.parametrize("table_name, bucket, region", [
        ("", "bucket", "us-east-1"),
        ("table", "", "us-east-1"),
        ("table", "bucket", ""),
        ("", "", ""),
    ])
    def test_empty_argument_fails_before_any_client(self, monkeypatch, table_name, bucket, region):
        session_factory = MagicMock()
        monkeypatch.setattr(aws.boto3.session, "Session", session_factory)

        with pytest.raises(InvalidArgumentError, match="cannot be empty"):
            create_aws_uploader(table_name, bucket, region)

        session_factory.assert_not_called()

    def test_mock_mode_needs_no_session(self, monkeypatch, png_file):
        session_factory = MagicMock()
        monkeypatch.setattr(aws.boto3.session, "Session", session_factory)

        uploader = create_aws_uploader(
            "assets", "media", "eu-west-1",
            storage_mock_mode=True,
            metadata_mock_mode=True,
        )
        asset = uploader.upload(str(png_file), "photo.png")

        session_factory.assert_not_called()
        assert isinstance(uploader.storage, MockStorageClient)
        assert asset.bucket == "https://media.s3-eu-west-1.amazonaws.com"
        assert uploader.find(asset.id) == asset

    def test_clients_share_one_session(self):
        session = MagicMock()

        uploader = create_aws_uploader(
            "assets", "media", "us-east-1",
            endpoint_url="http://localhost:4566",
            session=session,
        )

        session.client.assert_any_call("dynamodb", endpoint_url="http://localhost:4566")
        session.client.assert_any_call("s3", endpoint_url="http://localhost:4566")
        assert isinstance(uploader.storage, S3StorageClient)
        assert isinstance(uploader.repository, DynamoDBAssetRepository)
        assert uploader.repository.table_name == "assets"

    def test_session_is_built_for_region(self, monkeypatch):
        session_factory = MagicMock()
        monkeypatch.setattr(aws.boto3.session, "Session", session_factory)

        create_aws_uploader("assets", "media", "ap-southeast-2")

        session_factory.assert_called_once_with(region_name="ap-southeast-2")

    def test_put_flags_reach_storage(self, tmp_path):
        session = MagicMock()
        s3_client = MagicMock()
        session.client.side_effect = lambda service, **kwargs: s3_client if service == "s3" else MagicMock()
        path = tmp_path / "a.txt"
        path.write_bytes(b"x")

        uploader = create_aws_uploader(
            "assets", "media", "us-east-1",
            acl="private",
            server_side_encryption="aws:kms",
            session=session,
        )
        uploader.storage.store(str(path), "a.txt")

        kwargs = s3_client.put_object.call_args.kwargs
        assert kwargs["ACL"] == "private"
        assert kwargs["ServerSideEncryption"] == "aws:kms"
        assert kwargs["ContentDisposition"] == "attachment"

    def test_prebuilt_clients_are_used_as_given(self, monkeypatch, dynamodb_client, storage):
        """Shared clients passed in replace both store builds, so no session is needed."""
        session_factory = MagicMock()
        monkeypatch.setattr(aws.boto3.session, "Session", session_factory)

        uploader = create_aws_uploader(
            "multimedia-assets", "test-bucket", "us-east-1",
            storage=storage,
            dynamodb_client=dynamodb_client,
        )

        session_factory.assert_not_called()
        assert uploader.storage is storage
        assert uploader.repository.table_name == "multimedia-assets"
