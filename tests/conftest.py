"""
Shared pytest fixtures.

Provides:
- Test Settings pointing at a fake bucket/region
- moto-mocked S3 with the bucket created
- StorageGateway bound to the mocked bucket
- FastAPI TestClient built with create_app(settings, storage)
"""

from typing import Generator

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from file_manager.config import Settings
from file_manager.main import create_app
from file_manager.storage import StorageGateway

TEST_BUCKET = "file-manager-test"
TEST_REGION = "eu-west-1"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real AWS account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)


def make_settings(**overrides) -> Settings:
    values = {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_REGION": TEST_REGION,
        "S3_BUCKET_NAME": TEST_BUCKET,
        "LOG_LEVEL": "DEBUG",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def mock_s3():
    """
    Mock S3 with the test bucket created.

    Yields:
        boto3 S3 client for asserting on bucket contents.
    """
    with mock_aws():
        s3 = boto3.client("s3", region_name=TEST_REGION)
        s3.create_bucket(
            Bucket=TEST_BUCKET,
            CreateBucketConfiguration={"LocationConstraint": TEST_REGION},
        )
        yield s3


@pytest.fixture()
def storage(settings, mock_s3) -> StorageGateway:
    return StorageGateway(settings)


@pytest.fixture()
def client(settings, storage) -> Generator[TestClient, None, None]:
    """
    TestClient over a fresh app.

    Server exceptions are returned as responses so the catch-all 500
    handler can be asserted on.
    """
    app = create_app(settings=settings, storage=storage)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def bucket_keys(mock_s3):
    """Callable returning the sorted keys currently in the test bucket."""

    def _keys() -> list[str]:
        response = mock_s3.list_objects_v2(Bucket=TEST_BUCKET)
        return sorted(obj["Key"] for obj in response.get("Contents", []))

    return _keys


@pytest.fixture()
def debug_client(storage) -> Generator[TestClient, None, None]:
    """TestClient over an app with DEBUG on (error details exposed)."""
    app = create_app(settings=make_settings(DEBUG=True), storage=storage)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
