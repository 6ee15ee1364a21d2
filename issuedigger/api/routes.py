"""API routes for the GitHub webhook."""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from issuedigger.config import Settings, get_settings
from issuedigger.exceptions import ConfigurationError, ErrorCode, IssueDiggerError, ValidationError
from issuedigger.github.webhook import (
    SIGNATURE_HEADER,
    SIGNATURE_LENGTH,
    ValidationToken,
    verify_webhook_signature,
)
from issuedigger.logging_config import get_logger
from issuedigger.observability import track_webhook_event
from issuedigger.routing import EventRouter, PlanStatus

logger = get_logger(__name__)

EVENT_HEADER = "x-github-event"

router = APIRouter(tags=["Webhook"])


def get_event_router(request: Request) -> EventRouter:
    """Router of the running service graph."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise ConfigurationError("Services are not started")
    return container.router


@router.get("/", include_in_schema=False)
async def homepage(settings: Settings = Depends(get_settings)) -> RedirectResponse:
    """Redirect to the project homepage."""
    return RedirectResponse(settings.homepage_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)


@router.post("/webhook", status_code=status.HTTP_201_CREATED)
async def webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    event_router: EventRouter = Depends(get_event_router),
) -> Response:
    """Verify a GitHub webhook delivery and queue the work it triggers.

    GitHub waits only ten seconds for a response, so nothing but routing
    happens here; all real work is deferred to the queue.
    """
    logger.info("Webhook received")
    try:
        event_name, payload, token = await _verified_payload(request, settings)
        outcome = await event_router.route(event_name, payload, token)
    except IssueDiggerError:
        track_webhook_event(request.headers.get(EVENT_HEADER, "unknown"), "rejected")
        raise

    if outcome.status is PlanStatus.NOOP:
        logger.info("Event not relevant, skipping", extra={"event": event_name})
        track_webhook_event(event_name, "skipped")
        # 204 responses must not carry a body.
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    track_webhook_event(event_name, "processed")
    return PlainTextResponse("Event processed", status_code=status.HTTP_201_CREATED)


async def _verified_payload(
    request: Request,
    settings: Settings,
) -> tuple[str, dict[str, Any], ValidationToken]:
    """Verify the signature, then return the event name and JSON payload."""
    signature = request.headers.get(SIGNATURE_HEADER)
    if signature is None:
        logger.warning("No signature in headers")
        raise ValidationError(
            "Can only process signed requests",
            code=ErrorCode.SIGNATURE_MISSING,
        )

    # Reject unreasonable header values before any HMAC work.
    if len(signature) != SIGNATURE_LENGTH:
        logger.warning("Signature length unexpected", extra={"length": len(signature)})
        raise ValidationError(
            "Signature length unexpected",
            code=ErrorCode.SIGNATURE_MISSING,
        )

    raw = await request.body()
    token = verify_webhook_signature(raw, settings.github.webhook_secret.get_secret_value(), signature)
    logger.info("Signature verified")

    event_name = request.headers.get(EVENT_HEADER)
    if event_name is None:
        raise ValidationError(
            "No event name in headers",
            code=ErrorCode.EVENT_MALFORMED,
        )

    try:
        body = json.loads(raw)
    except ValueError as e:
        raise ValidationError(
            "Request body is not valid JSON",
            code=ErrorCode.EVENT_MALFORMED,
            details={"event": event_name},
        ) from e

    if not isinstance(body, dict):
        raise ValidationError(
            "Request body is not a JSON object",
            code=ErrorCode.EVENT_MALFORMED,
            details={"event": event_name},
        )

    return event_name, body, token
