"""
File Manager Files API Router

REST endpoints over the upload bucket. No endpoint keeps state between
requests; every call reads fresh from the object store.

Endpoints:
    POST   /upload          — Upload one file (multipart field "file")
    GET    /files           — List uploaded files
    GET    /files/{key}     — Redirect to a signed download URL
    DELETE /files/{key}     — Delete a file
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

import structlog
from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool

from file_manager.api.deps import get_app_settings, get_storage
from file_manager.config import Settings
from file_manager.errors import FileNotFoundInStorage, NoFileProvidedError, StorageBackendError
from file_manager.schemas import (
    ErrorResponse,
    FileListResponse,
    MessageResponse,
    StoredFile,
    UploadResponse,
)
from file_manager.storage import StorageGateway
from file_manager.uploads import (
    build_object_key,
    check_upload_size,
    detect_content_type,
    validate_mime_type,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Files"])

# Multipart field carrying the file; also the first segment of generated keys
UPLOAD_FIELD_NAME = "file"


@contextmanager
def backend_failure_message(message: str) -> Iterator[None]:
    """Re-raise storage backend errors with an endpoint-specific message."""
    try:
        yield
    except StorageBackendError as exc:
        raise StorageBackendError(message, detail=exc.detail) from exc


# =============================================================================
# POST /upload
# =============================================================================
@router.post(
    "/upload",
    response_model=UploadResponse,
    response_model_exclude_none=True,
    summary="Upload a file",
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def upload_file(
    file: Optional[UploadFile] = File(None, description="File to store (max 10MB)"),
    storage: StorageGateway = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    """
    Upload a single file to the bucket.

    The MIME type and size are checked before anything is written. The part
    spooled by the multipart parser is then streamed to the object store
    under a freshly generated key.
    """
    if file is None or not file.filename:
        raise NoFileProvidedError()

    log = logger.bind(filename=file.filename, content_type=file.content_type)
    log.info("upload_received")

    mime_type = validate_mime_type(file.content_type)
    size = check_upload_size(file, settings.MAX_UPLOAD_SIZE_BYTES)

    key = build_object_key(settings.UPLOAD_PREFIX, UPLOAD_FIELD_NAME, file.filename)
    content_type = detect_content_type(file.filename, mime_type)

    with backend_failure_message("Failed to upload file"):
        await run_in_threadpool(storage.put_object, key, file.file, content_type)

    log.info("upload_stored", s3_key=key, bytes=size)

    return UploadResponse(
        message="File uploaded successfully",
        file=StoredFile(
            id=key,
            filename=key,
            original_name=file.filename,
            mimetype=mime_type,
            size=size,
            upload_date=datetime.now(timezone.utc),
            url=storage.public_url(key),
        ),
    )


# =============================================================================
# GET /files
# =============================================================================
@router.get(
    "/files",
    response_model=FileListResponse,
    response_model_exclude_none=True,
    summary="List uploaded files",
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
)
def list_files(
    storage: StorageGateway = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    """List every object under the upload prefix (first page only)."""
    with backend_failure_message("Failed to retrieve file list"):
        objects = storage.list_objects(settings.UPLOAD_PREFIX)

    return FileListResponse(
        files=[
            StoredFile(
                id=obj["key"],
                filename=obj["key"],
                size=obj["size"],
                upload_date=obj["last_modified"],
                url=storage.public_url(obj["key"]),
            )
            for obj in objects
        ]
    )


# =============================================================================
# GET /files/{key}
# =============================================================================
@router.get(
    "/files/{key:path}",
    status_code=status.HTTP_302_FOUND,
    response_class=RedirectResponse,
    summary="Download a file",
    responses={
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
def download_file(
    key: str,
    storage: StorageGateway = Depends(get_storage),
):
    """
    Redirect to a signed URL for the object.

    The object store serves the bytes; the URL stays valid for one hour.
    """
    if not key:
        raise FileNotFoundInStorage(key)

    with backend_failure_message("Failed to download file"):
        storage.head_object(key)
        url = storage.generate_presigned_url(key)

    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


# =============================================================================
# DELETE /files/{key}
# =============================================================================
@router.delete(
    "/files/{key:path}",
    response_model=MessageResponse,
    summary="Delete a file",
    responses={
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
def delete_file(
    key: str,
    storage: StorageGateway = Depends(get_storage),
):
    """Delete an object after confirming it exists."""
    if not key:
        raise FileNotFoundInStorage(key)

    with backend_failure_message("Failed to delete file"):
        storage.head_object(key)
        storage.delete_object(key)

    logger.info("file_deleted", s3_key=key)
    return MessageResponse(message="File deleted successfully")
