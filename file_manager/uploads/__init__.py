"""
Upload handling: validation and object key generation.

Exports:
    ALLOWED_MIME_TYPES: MIME types accepted by POST /upload
    validate_mime_type: Reject types outside the allow-list
    check_upload_size: Enforce the size cap on a parsed upload
    detect_content_type: Content type to store an object with
    build_object_key: Generate a unique key for a new upload
"""

from file_manager.uploads.keys import build_object_key
from file_manager.uploads.validator import (
    ALLOWED_MIME_TYPES,
    check_upload_size,
    detect_content_type,
    validate_mime_type,
)

__all__ = [
    "ALLOWED_MIME_TYPES",
    "validate_mime_type",
    "check_upload_size",
    "detect_content_type",
    "build_object_key",
]
