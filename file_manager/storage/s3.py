"""
File Manager S3/MinIO Storage Gateway

The only component that talks to the object store. Wraps a boto3 S3 client
built from an explicit Settings object and exposes the five calls the HTTP
layer needs: put, list, head, presign and delete.

Every botocore failure is re-raised as StorageBackendError; a missing object
on a head probe is reported as FileNotFoundInStorage.
"""

from typing import IO, Optional
from urllib.parse import quote

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from file_manager.config import Settings
from file_manager.errors import FileNotFoundInStorage, StorageBackendError

# Module-level logger
logger = structlog.get_logger(__name__)

# Error codes S3 and S3-compatible stores use for a missing key on HEAD
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def create_s3_client(settings: Settings):
    """
    Create and return a boto3 S3 client configured from settings.

    If S3_ENDPOINT_URL is set, uses it for MinIO compatibility.
    If not set, uses AWS S3 defaults.
    """
    client_config = Config(
        signature_version="s3v4",
        retries={"max_attempts": 3, "mode": "standard"},
    )

    client_kwargs = {
        "service_name": "s3",
        "region_name": settings.AWS_REGION,
        "config": client_config,
    }

    # Explicit credentials; otherwise boto3 resolves its own chain
    if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
        client_kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
        client_kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY

    if settings.S3_ENDPOINT_URL:
        client_kwargs["endpoint_url"] = settings.S3_ENDPOINT_URL

    return boto3.client(**client_kwargs)


class StorageGateway:
    """
    Object-store operations bound to one bucket.

    Args:
        settings: Application settings (bucket, region, credentials, endpoint)
        client: Optional pre-built boto3 S3 client
    """

    def __init__(self, settings: Settings, client=None):
        self.settings = settings
        self.bucket = settings.S3_BUCKET_NAME
        self.client = client if client is not None else create_s3_client(settings)

    def public_url(self, key: str) -> str:
        """Static URL of an object, as addressed without a signature."""
        quoted_key = quote(key, safe="/")
        if self.settings.S3_ENDPOINT_URL:
            endpoint = self.settings.S3_ENDPOINT_URL.rstrip("/")
            return f"{endpoint}/{self.bucket}/{quoted_key}"
        return f"https://{self.bucket}.s3.{self.settings.AWS_REGION}.amazonaws.com/{quoted_key}"

    def put_object(self, key: str, fileobj: IO[bytes], content_type: str) -> None:
        """
        Stream a file object to the bucket.

        Uses the managed transfer (upload_fileobj), which switches to a
        multipart upload for large bodies.

        Raises:
            StorageBackendError: On upload failure
        """
        log = logger.bind(s3_key=key, bucket=self.bucket)
        log.info("s3_upload_started", content_type=content_type)

        try:
            self.client.upload_fileobj(
                Fileobj=fileobj,
                Bucket=self.bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError) as e:
            log.error("s3_upload_failed", error=str(e))
            raise StorageBackendError(detail=str(e)) from e

        log.info("s3_upload_complete")

    def list_objects(self, prefix: str) -> list[dict]:
        """
        List objects under a prefix.

        Only the first page of results is read.

        Returns:
            List of dicts with key, size and last_modified

        Raises:
            StorageBackendError: On listing failure
        """
        try:
            response = self.client.list_objects_v2(Bucket=self.bucket, Prefix=prefix)
        except (BotoCoreError, ClientError) as e:
            logger.error("s3_list_failed", prefix=prefix, bucket=self.bucket, error=str(e))
            raise StorageBackendError(detail=str(e)) from e

        contents = response.get("Contents", [])
        if response.get("IsTruncated"):
            logger.warning(
                "s3_list_truncated",
                prefix=prefix,
                bucket=self.bucket,
                returned=len(contents),
            )

        logger.info("s3_list_complete", prefix=prefix, count=len(contents))
        return [
            {
                "key": obj["Key"],
                "size": obj.get("Size", 0),
                "last_modified": obj.get("LastModified"),
            }
            for obj in contents
        ]

    def head_object(self, key: str) -> dict:
        """
        Fetch an object's metadata.

        Raises:
            FileNotFoundInStorage: If the key does not exist
            StorageBackendError: On any other failure
        """
        try:
            return self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in NOT_FOUND_CODES:
                logger.info("s3_object_missing", s3_key=key, bucket=self.bucket)
                raise FileNotFoundInStorage(key) from e
            logger.error("s3_head_failed", s3_key=key, error=str(e))
            raise StorageBackendError(detail=str(e)) from e
        except BotoCoreError as e:
            logger.error("s3_head_failed", s3_key=key, error=str(e))
            raise StorageBackendError(detail=str(e)) from e

    def generate_presigned_url(self, key: str, expires_in: Optional[int] = None) -> str:
        """
        Generate a presigned GET URL for an object.

        Args:
            key: Object key
            expires_in: URL lifetime in seconds (default from settings, 1 hour)

        Raises:
            StorageBackendError: On failure to sign
        """
        if expires_in is None:
            expires_in = self.settings.PRESIGNED_URL_EXPIRES_SECONDS

        try:
            url = self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("s3_presigned_url_failed", s3_key=key, error=str(e))
            raise StorageBackendError(detail=str(e)) from e

        logger.info("s3_presigned_url_generated", s3_key=key, expires_in=expires_in)
        return url

    def delete_object(self, key: str) -> None:
        """
        Delete an object. There is no soft-delete.

        Raises:
            StorageBackendError: On deletion failure
        """
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("s3_delete_failed", s3_key=key, error=str(e))
            raise StorageBackendError(detail=str(e)) from e

        logger.info("s3_file_deleted", s3_key=key, bucket=self.bucket)
