# ABOUTME: Admin routes for subscriber management and the post-published hook.
# ABOUTME: All endpoints require the admin bearer token when ADMIN_API_KEY is set.

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from continued_education.contacts.errors import StoreUnavailableError
from continued_education.models import (
    PostRef,
    SubscriberView,
    SubscriptionResult,
    SubscriptionStats,
)
from continued_education.services.subscription_service import (
    ADMIN_FAILED_MSG,
    SubscriptionService,
)
from continued_education.web.dependencies import SubscriptionSvc
from continued_education.web.middleware.admin_auth import verify_admin_token

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(verify_admin_token)],
)
log = structlog.get_logger()


class TaskResponse(BaseModel):
    """Response model for async tasks."""

    status: str
    message: str


def _result_response(result: SubscriptionResult) -> JSONResponse:
    if result.success:
        status_code = 200
    elif result.error == "not_found":
        status_code = 404
    else:
        status_code = 503
    return JSONResponse(status_code=status_code, content=result.model_dump())


@router.get("/subscribers", response_model=list[SubscriberView])
async def list_subscribers(service: SubscriptionSvc, active_only: bool = False):
    """List subscribers, newest first."""
    return await service.list_subscribers(active_only=active_only)


@router.get("/subscribers/stats", response_model=SubscriptionStats)
async def subscriber_stats(service: SubscriptionSvc):
    """Total and active subscriber counts."""
    return await service.stats()


@router.get("/subscribers/export")
async def export_subscribers(service: SubscriptionSvc):
    """Download all subscribers as CSV; 503 if the subscriber list is unavailable."""
    try:
        content = await service.export_csv()
    except StoreUnavailableError:
        return JSONResponse(
            status_code=503,
            content=SubscriptionResult(
                success=False, message=ADMIN_FAILED_MSG, error="store_unavailable"
            ).model_dump(),
        )
    filename = SubscriptionService.export_filename()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/subscribers/{subscriber_id}/reactivate", response_model=SubscriptionResult)
async def reactivate_subscriber(subscriber_id: str, service: SubscriptionSvc):
    return _result_response(await service.reactivate_subscriber(subscriber_id))


@router.post("/subscribers/{subscriber_id}/deactivate", response_model=SubscriptionResult)
async def deactivate_subscriber(subscriber_id: str, service: SubscriptionSvc):
    return _result_response(await service.deactivate_subscriber(subscriber_id))


@router.delete("/subscribers/{subscriber_id}", response_model=SubscriptionResult)
async def remove_subscriber(subscriber_id: str, service: SubscriptionSvc):
    return _result_response(await service.remove_subscriber(subscriber_id))


async def _run_notify(service: SubscriptionService, post: PostRef) -> None:
    """Run new-post notification in background."""
    log.info("api_notify_start", post_id=post.id)
    result = await service.notify_of_new_post(post)
    log.info(
        "api_notify_complete",
        post_id=post.id,
        success=result.success,
        sent_count=result.sent_count,
        mode=result.mode.value,
    )


@router.post("/posts/published", response_model=TaskResponse, status_code=202)
async def post_published(
    post: PostRef,
    background_tasks: BackgroundTasks,
    service: SubscriptionSvc,
):
    """Hook called once a post is committed; notifies subscribers in the background.

    The response does not wait for delivery and delivery failures never
    surface here.
    """
    log.info("api_notify_triggered", post_id=post.id)
    background_tasks.add_task(_run_notify, service, post)
    return TaskResponse(status="accepted", message=f"Notification scheduled for post {post.id}")
