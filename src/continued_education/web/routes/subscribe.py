# ABOUTME: Public subscription routes for the blog's email notifications.
# ABOUTME: Handles subscribe (form or JSON) and the unsubscribe link and fallback form.

import json

import structlog
from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, ValidationError

from continued_education.models import SubscriptionResult, UnsubscribeOutcome
from continued_education.web.dependencies import Renderer, Resolver, SubscriptionSvc

router = APIRouter(tags=["subscribe"])
log = structlog.get_logger()

# Result error codes to HTTP status
ERROR_STATUS = {
    "invalid_email": 400,
    "already_subscribed": 409,
    "store_unavailable": 503,
    "unknown": 503,
}


class SubscribeRequest(BaseModel):
    """Signup payload from the blog's subscribe form."""

    email: str = ""
    first_name: str | None = None
    last_name: str | None = None


async def _read_payload(request: Request) -> SubscribeRequest | None:
    """Parse a JSON or form-encoded signup; None if it cannot be read."""
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith("application/json"):
            data = await request.json()
        else:
            data = dict(await request.form())
        return SubscribeRequest.model_validate(data)
    except (json.JSONDecodeError, ValidationError, ValueError) as e:
        log.info("subscribe_payload_invalid", error=str(e))
        return None


@router.post("/subscribe", response_model=SubscriptionResult)
async def subscribe(request: Request, service: SubscriptionSvc):
    """Subscribe an email address to new-post notifications."""
    payload = await _read_payload(request)
    if payload is None:
        result = SubscriptionResult(
            success=False, message="Please enter a valid email address.", error="invalid_email"
        )
    else:
        result = await service.subscribe(payload.email, payload.first_name, payload.last_name)

    status_code = 200 if result.success else ERROR_STATUS.get(result.error or "", 400)
    return JSONResponse(status_code=status_code, content=result.model_dump())


def _page(renderer: Renderer, outcome: UnsubscribeOutcome) -> HTMLResponse:
    return HTMLResponse(
        content=renderer.render_unsubscribe_page(outcome),
        status_code=outcome.status_code,
    )


@router.get("/unsubscribe", response_class=HTMLResponse)
async def unsubscribe_link(
    resolver: Resolver,
    renderer: Renderer,
    token: str | None = None,
    email: str | None = None,
):
    """Landing page for the unsubscribe link in notification emails."""
    if token:
        outcome = await resolver.resolve_token(token)
    elif email:
        outcome = await resolver.resolve_email(email)
    else:
        log.info("unsubscribe_link_missing_params")
        outcome = await resolver.resolve_token(None)
    return _page(renderer, outcome)


@router.post("/unsubscribe", response_class=HTMLResponse)
async def unsubscribe_form(
    resolver: Resolver,
    renderer: Renderer,
    email: str = Form(""),
):
    """Unsubscribe by typing an email address."""
    outcome = await resolver.resolve_email(email)
    return _page(renderer, outcome)
