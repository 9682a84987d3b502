"""
Request / Response schemas.

StoredFile is serialised with camelCase aliases (originalName, uploadDate).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StoredFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Object key")
    filename: str = Field(..., description="Object key")
    original_name: Optional[str] = Field(None, alias="originalName")
    mimetype: Optional[str] = None
    size: int
    upload_date: datetime = Field(..., alias="uploadDate")
    url: str


class UploadResponse(BaseModel):
    message: str
    file: StoredFile


class FileListResponse(BaseModel):
    files: list[StoredFile]


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: Optional[str] = None
