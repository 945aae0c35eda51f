"""Webhook ingestion endpoint for the network server HTTP integration."""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from ..config import settings
from ..services.classifier import EventType, classify_event
from ..services.rate_limiter import RateLimitDecision

logger = logging.getLogger(__name__)
router = APIRouter(tags=["webhook"])


class RateLimitExceeded(Exception):
    """Raised by the admission dependency when a caller is over its quota."""

    def __init__(self, decision: RateLimitDecision):
        super().__init__("Too many requests")
        self.decision = decision


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    decision = exc.decision
    headers = decision.headers()
    headers["Retry-After"] = str(decision.retry_after)
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests",
            "message": (
                f"Rate limit exceeded. Maximum {decision.limit} requests "
                f"per {decision.window_seconds:g} seconds."
            ),
            "retryAfter": decision.retry_after,
        },
        headers=headers,
    )


def client_identity(request: Request) -> str:
    """Caller address, honouring reverse-proxy headers when configured."""
    if settings.trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        real_ip = request.headers.get("x-real-ip")
        if real_ip and real_ip.strip():
            return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def enforce_rate_limit(request: Request) -> RateLimitDecision:
    """Admit the caller or reject with 429."""
    identity = client_identity(request)
    decision = request.app.state.rate_limiter.check(identity)
    if not decision.allowed:
        logger.warning(f"Rate limit exceeded for {identity}")
        raise RateLimitExceeded(decision)
    return decision


async def read_limited_body(request: Request, limit: int) -> Optional[bytes]:
    """Read the request body, or return None as soon as it exceeds ``limit`` bytes.

    A declared Content-Length over the limit is rejected without reading.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        return None

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            return None
    return bytes(body)


@router.post("/")
async def receive_event(request: Request, decision: RateLimitDecision = Depends(enforce_rate_limit)):
    """Accept a webhook event and process it in the background.

    The sender always gets an empty 200 once admitted; processing failures
    are only visible in the logs.
    """
    raw = await read_limited_body(request, settings.max_request_size_bytes)
    if raw is None:
        logger.warning(f"Webhook body from {client_identity(request)} exceeds {settings.max_request_size_bytes} bytes")
        return JSONResponse(status_code=413, content={"error": "Payload too large"}, headers=decision.headers())

    try:
        body = json.loads(raw) if raw.strip() else {}
    except (ValueError, UnicodeDecodeError) as e:
        logger.error(f"Invalid JSON payload from {client_identity(request)}: {e}")
        return JSONResponse(status_code=400, content={"error": "Invalid JSON payload"}, headers=decision.headers())

    tag = classify_event(request.query_params.getlist("event"), request.headers, body)
    event_type = EventType.from_tag(tag)
    logger.debug(f"Webhook event {tag!r} ({len(raw)} bytes) from {client_identity(request)}")

    request.app.state.task_queue.submit(
        request.app.state.dispatcher.dispatch(event_type, body),
        name=f"webhook-{event_type.value}",
    )
    return Response(status_code=200, headers=decision.headers())
