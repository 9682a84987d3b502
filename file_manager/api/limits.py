"""
File Manager Upload Size Limit Middleware

Refuses oversize upload requests before the multipart form is parsed.
Starlette spools the whole form ahead of the route, so the cap has to be
enforced below the router:

    - A Content-Length above the limit is answered with 400 straight away;
      the body is never read.
    - Bodies without a usable Content-Length (chunked) are counted as they
      arrive. Once the count crosses the limit the app sees a disconnect and
      the client gets the same 400.

The limit is MAX_UPLOAD_SIZE_BYTES plus UPLOAD_BODY_OVERHEAD_BYTES for the
multipart framing; the exact file size is checked again in the route.
"""

import structlog
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from file_manager.api.errors import error_response
from file_manager.errors import FileTooLargeError

logger = structlog.get_logger(__name__)

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class UploadSizeLimitMiddleware:
    """
    ASGI middleware capping request bodies on the upload paths.

    Args:
        app: Wrapped ASGI application
        max_file_bytes: Size cap for the uploaded file (used in the error message)
        overhead_bytes: Allowance for multipart boundaries and part headers
        paths: Request paths the cap applies to
        debug: Expose error detail in the response body
    """

    def __init__(
        self,
        app: ASGIApp,
        max_file_bytes: int,
        overhead_bytes: int = 64 * 1024,
        paths: tuple[str, ...] = ("/upload",),
        debug: bool = False,
    ) -> None:
        self.app = app
        self.max_file_bytes = max_file_bytes
        self.max_body_bytes = max_file_bytes + overhead_bytes
        self.paths = frozenset(paths)
        self.debug = debug

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] != "http"
            or scope["method"] not in BODY_METHODS
            or scope["path"] not in self.paths
        ):
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length", "")
        if content_length.isdigit() and int(content_length) > self.max_body_bytes:
            logger.warning(
                "upload_rejected_too_large",
                content_length=int(content_length),
                max_bytes=self.max_file_bytes,
            )
            await self._reject(scope, receive, send)
            return

        received = 0
        exceeded = False
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received, exceeded
            if exceeded:
                return {"type": "http.disconnect"}

            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    exceeded = True
                    logger.warning(
                        "upload_rejected_too_large",
                        bytes=received,
                        max_bytes=self.max_file_bytes,
                    )
                    return {"type": "http.disconnect"}
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            # Whatever the app answers to the cut-off body is replaced below
            if exceeded and not response_started:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, guarded_send)
        except Exception:
            if not exceeded or response_started:
                raise

        if exceeded and not response_started:
            await self._reject(scope, receive, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = error_response(FileTooLargeError(self.max_file_bytes), debug=self.debug)
        await response(scope, receive, send)
