"""
API module for endpoint routes, error handling and request logging.

Exports:
    files_router: File upload/list/download/delete endpoints
    register_error_handlers: Install the JSON error normalizer on an app
    log_requests: HTTP middleware logging every request/response
    UploadSizeLimitMiddleware: ASGI middleware refusing oversize uploads early
"""

from file_manager.api.errors import register_error_handlers
from file_manager.api.files import router as files_router
from file_manager.api.limits import UploadSizeLimitMiddleware
from file_manager.api.middleware import log_requests

__all__ = [
    "files_router",
    "register_error_handlers",
    "log_requests",
    "UploadSizeLimitMiddleware",
]
