"""
Storage module for S3/MinIO operations.

Exports:
    StorageGateway: Bucket-bound put/list/head/presign/delete operations
    create_s3_client: Build a boto3 S3 client from settings
"""

from file_manager.storage.s3 import StorageGateway, create_s3_client

__all__ = [
    "StorageGateway",
    "create_s3_client",
]
