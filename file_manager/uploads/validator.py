"""
File Manager Upload Validator

Checks an incoming upload before anything is written to the bucket:

    1. The declared MIME type must be in ALLOWED_MIME_TYPES.
    2. The file must not exceed the size cap. Requests whose body is larger
       than the cap plus multipart overhead are refused by
       UploadSizeLimitMiddleware before the form is parsed; the remainder is
       checked here against the size of the parsed part.
"""

import mimetypes
import os
from typing import Optional

import structlog
from fastapi import UploadFile

from file_manager.errors import FileTooLargeError, UnsupportedFileTypeError

logger = structlog.get_logger(__name__)

ALLOWED_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
})

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def normalize_mime_type(content_type: Optional[str]) -> str:
    """Strip parameters and case: 'Text/Plain; charset=utf-8' -> 'text/plain'."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def validate_mime_type(content_type: Optional[str]) -> str:
    """
    Return the normalized MIME type if it is allowed.

    Raises:
        UnsupportedFileTypeError: If the type is missing or not allowed
    """
    mime_type = normalize_mime_type(content_type)
    if mime_type not in ALLOWED_MIME_TYPES:
        logger.warning("upload_rejected_bad_type", content_type=content_type)
        raise UnsupportedFileTypeError(content_type=content_type)
    return mime_type


def detect_content_type(filename: Optional[str], declared: Optional[str] = None) -> str:
    """
    Content type to store the object with.

    Guessed from the filename extension with mimetypes; the bytes themselves
    are not inspected. Falls back to the declared type and then to
    application/octet-stream.
    """
    guessed = mimetypes.guess_type(filename)[0] if filename else None
    return guessed or normalize_mime_type(declared) or DEFAULT_CONTENT_TYPE


def check_upload_size(upload: UploadFile, max_bytes: int) -> int:
    """
    Enforce the size cap on a parsed upload and rewind it for streaming.

    The multipart parser has already spooled the part; its size is taken from
    UploadFile.size, or measured by seeking when the parser did not set it.

    Returns:
        Size of the upload in bytes

    Raises:
        FileTooLargeError: If the upload is larger than max_bytes
    """
    size = upload.size
    if size is None:
        upload.file.seek(0, os.SEEK_END)
        size = upload.file.tell()

    if size > max_bytes:
        logger.warning("upload_rejected_too_large", bytes=size, max_bytes=max_bytes)
        raise FileTooLargeError(max_bytes)

    upload.file.seek(0)
    return size
