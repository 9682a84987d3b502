"""
File Manager Error Taxonomy

Every failure the validator or the storage gateway can raise is one of the
classes below. Each class carries an ErrorKind; the HTTP layer maps kinds to
status codes in file_manager.api.errors.
"""

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    BACKEND = "backend"


class FileManagerError(Exception):
    """Base class for all expected failures."""

    kind: ErrorKind
    code: str
    default_message: str

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class NoFileProvidedError(FileManagerError):
    kind = ErrorKind.INVALID_INPUT
    code = "no_file"
    default_message = "No file selected"


class UnsupportedFileTypeError(FileManagerError):
    kind = ErrorKind.INVALID_INPUT
    code = "unsupported_type"
    default_message = "File type not allowed"

    def __init__(self, content_type: Optional[str] = None, **kwargs):
        self.content_type = content_type
        super().__init__(**kwargs)


class FileTooLargeError(FileManagerError):
    kind = ErrorKind.INVALID_INPUT
    code = "file_too_large"
    default_message = "File is too large (maximum 10MB)"

    def __init__(self, max_bytes: int, message: Optional[str] = None, **kwargs):
        self.max_bytes = max_bytes
        if message is None:
            message = f"File is too large (maximum {max_bytes // (1024 * 1024)}MB)"
        super().__init__(message=message, **kwargs)


class FileNotFoundInStorage(FileManagerError):
    kind = ErrorKind.NOT_FOUND
    code = "not_found"
    default_message = "File not found"

    def __init__(self, key: str, **kwargs):
        self.key = key
        super().__init__(**kwargs)


class StorageBackendError(FileManagerError):
    """The object store rejected or failed a call."""

    kind = ErrorKind.BACKEND
    code = "storage_error"
    default_message = "Storage backend error"
