"""
Tests for file_manager.storage: StorageGateway against moto-mocked S3.
"""

import io
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from file_manager.errors import FileNotFoundInStorage, StorageBackendError
from file_manager.storage import StorageGateway, create_s3_client


def _put(storage: StorageGateway, key: str, data: bytes = b"data", content_type: str = "text/plain"):
    storage.put_object(key, io.BytesIO(data), content_type)


# ═════════════════════════════════════════════════════════════════════════════
# Public URLs and client construction
# ═════════════════════════════════════════════════════════════════════════════

class TestPublicUrl:

    def test_aws_virtual_hosted_url(self, settings):
        storage = StorageGateway(settings, client=MagicMock())
        assert storage.public_url("uploads/a.txt") == (
            "https://file-manager-test.s3.eu-west-1.amazonaws.com/uploads/a.txt"
        )

    def test_custom_endpoint_path_style(self, settings):
        settings.S3_ENDPOINT_URL = "http://minio:9000/"
        storage = StorageGateway(settings, client=MagicMock())
        assert storage.public_url("uploads/a.txt") == "http://minio:9000/file-manager-test/uploads/a.txt"

    def test_key_is_quoted(self, settings):
        storage = StorageGateway(settings, client=MagicMock())
        assert storage.public_url("uploads/my file.txt").endswith("uploads/my%20file.txt")


class TestCreateClient:

    def test_endpoint_url_applied(self, settings):
        settings.S3_ENDPOINT_URL = "http://localhost:9000"
        with patch("file_manager.storage.s3.boto3.client") as mock_client:
            create_s3_client(settings)
        kwargs = mock_client.call_args.kwargs
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        assert kwargs["region_name"] == settings.AWS_REGION
        assert kwargs["aws_access_key_id"] == "testing"

    def test_credentials_omitted_when_unset(self, settings):
        settings.AWS_ACCESS_KEY_ID = None
        settings.AWS_SECRET_ACCESS_KEY = None
        with patch("file_manager.storage.s3.boto3.client") as mock_client:
            create_s3_client(settings)
        kwargs = mock_client.call_args.kwargs
        assert "aws_access_key_id" not in kwargs
        assert "endpoint_url" not in kwargs


# ═════════════════════════════════════════════════════════════════════════════
# Gateway operations
# ═════════════════════════════════════════════════════════════════════════════

class TestGatewayOperations:

    def test_put_and_head(self, storage, mock_s3):
        _put(storage, "uploads/a.csv", b"a,b", "text/csv")
        head = storage.head_object("uploads/a.csv")
        assert head["ContentLength"] == 3
        assert head["ContentType"] == "text/csv"

    def test_head_missing_raises_not_found(self, storage):
        with pytest.raises(FileNotFoundInStorage) as exc_info:
            storage.head_object("uploads/missing.txt")
        assert exc_info.value.key == "uploads/missing.txt"

    def test_list_by_prefix(self, storage):
        _put(storage, "uploads/one.txt", b"1")
        _put(storage, "uploads/two.txt", b"22")
        _put(storage, "elsewhere/three.txt", b"333")

        objects = storage.list_objects("uploads/")
        assert sorted(o["key"] for o in objects) == ["uploads/one.txt", "uploads/two.txt"]
        assert {o["key"]: o["size"] for o in objects}["uploads/two.txt"] == 2
        assert all(o["last_modified"] is not None for o in objects)

    def test_list_empty_prefix(self, storage):
        assert storage.list_objects("uploads/") == []

    def test_list_truncated_logs_warning(self, settings):
        client = MagicMock()
        client.list_objects_v2.return_value = {
            "Contents": [{"Key": "uploads/a", "Size": 1, "LastModified": None}],
            "IsTruncated": True,
        }
        storage = StorageGateway(settings, client=client)

        with patch("file_manager.storage.s3.logger") as mock_logger:
            objects = storage.list_objects("uploads/")

        assert len(objects) == 1
        assert mock_logger.warning.call_args.args[0] == "s3_list_truncated"

    def test_presigned_url(self, storage):
        _put(storage, "uploads/p.txt")
        url = storage.generate_presigned_url("uploads/p.txt")
        parsed = urlparse(url)
        assert parsed.path.endswith("uploads/p.txt")
        assert parse_qs(parsed.query)["X-Amz-Expires"] == ["3600"]

    def test_presigned_url_custom_expiry(self, storage):
        url = storage.generate_presigned_url("uploads/p.txt", expires_in=60)
        assert parse_qs(urlparse(url).query)["X-Amz-Expires"] == ["60"]

    def test_delete(self, storage):
        _put(storage, "uploads/d.txt")
        storage.delete_object("uploads/d.txt")
        with pytest.raises(FileNotFoundInStorage):
            storage.head_object("uploads/d.txt")


# ═════════════════════════════════════════════════════════════════════════════
# Backend failures
# ═════════════════════════════════════════════════════════════════════════════

class TestGatewayFailures:

    def test_put_failure_wrapped(self, storage):
        with patch.object(
            storage.client, "upload_fileobj",
            side_effect=ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject"),
        ):
            with pytest.raises(StorageBackendError) as exc_info:
                _put(storage, "uploads/x.txt")
        assert "AccessDenied" in exc_info.value.detail

    def test_head_other_client_error_is_backend_error(self, storage):
        with patch.object(
            storage.client, "head_object",
            side_effect=ClientError({"Error": {"Code": "403"}}, "HeadObject"),
        ):
            with pytest.raises(StorageBackendError):
                storage.head_object("uploads/x.txt")

    def test_head_connection_error_is_backend_error(self, storage):
        with patch.object(
            storage.client, "head_object",
            side_effect=EndpointConnectionError(endpoint_url="http://nowhere"),
        ):
            with pytest.raises(StorageBackendError):
                storage.head_object("uploads/x.txt")

    def test_list_failure_wrapped(self, storage):
        with patch.object(
            storage.client, "list_objects_v2",
            side_effect=ClientError({"Error": {"Code": "NoSuchBucket"}}, "ListObjectsV2"),
        ):
            with pytest.raises(StorageBackendError):
                storage.list_objects("uploads/")

    def test_delete_failure_wrapped(self, storage):
        with patch.object(
            storage.client, "delete_object",
            side_effect=ClientError({"Error": {"Code": "AccessDenied"}}, "DeleteObject"),
        ):
            with pytest.raises(StorageBackendError):
                storage.delete_object("uploads/x.txt")
