"""
File Manager Request Logging Middleware

Wraps every request: logs a start event before the handler runs and a
completion event (status, duration, JSON payload or redirect target) after
it returns. Observational only; responses pass through unchanged.
"""

import json
import time
import uuid

import structlog
from fastapi import Request
from starlette.concurrency import iterate_in_threadpool

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def _decode_payload(body: bytes):
    try:
        return json.loads(body)
    except ValueError:
        return body.decode("utf-8", errors="replace")


async def log_requests(request: Request, call_next):
    """HTTP middleware; register with app.middleware("http")(log_requests)."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    start = time.perf_counter()
    logger.info(
        "request_started",
        query=request.url.query or None,
        client_ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent", "N/A"),
        content_type=request.headers.get("content-type"),
        content_length=request.headers.get("content-length"),
    )

    try:
        response = await call_next(request)
    except Exception:
        logger.error("request_failed", duration_ms=_elapsed_ms(start), exc_info=True)
        raise

    duration_ms = _elapsed_ms(start)
    location = response.headers.get("location")

    if location and 300 <= response.status_code < 400:
        logger.info(
            "request_redirected",
            status_code=response.status_code,
            duration_ms=duration_ms,
            location=location,
        )
    else:
        fields = {}
        log_body = request.app.state.settings.LOG_RESPONSE_BODIES
        if log_body and response.headers.get("content-type", "").startswith("application/json"):
            chunks = [chunk async for chunk in response.body_iterator]
            response.body_iterator = iterate_in_threadpool(iter(chunks))
            fields["response"] = _decode_payload(b"".join(chunks))

        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=duration_ms,
            **fields,
        )

    response.headers[REQUEST_ID_HEADER] = request_id
    return response
