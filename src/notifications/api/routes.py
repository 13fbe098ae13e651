"""FastAPI routes for the notification outbox.

``POST /notifications/process`` is meant to be hit by a cron job; it
re-sends failed notifications whose backoff has elapsed.
"""

from fastapi import APIRouter, Depends

from notifications.api.schemas import FailedNotificationsResponse, ProcessResponse, StatusResponse
from shared.api import get_container, require_admin
from shared.container import Container

router = APIRouter(prefix="/notifications", tags=["notifications"], dependencies=[Depends(require_admin)])


@router.post("/process", response_model=ProcessResponse)
def process_due(container: Container = Depends(get_container)) -> ProcessResponse:
    """Retry every failed notification that is due."""
    return ProcessResponse(**container.outbox.process_due())


@router.get("/failed", response_model=FailedNotificationsResponse)
def failed_notifications(container: Container = Depends(get_container)) -> FailedNotificationsResponse:
    return FailedNotificationsResponse(
        notifications=container.outbox.failed(),
        counts=container.outbox.counts(),
    )


@router.post("/{notification_id}/retry", response_model=StatusResponse)
def retry_notification(notification_id: str, container: Container = Depends(get_container)) -> StatusResponse:
    """Re-send one failed notification now, ignoring its backoff."""
    return StatusResponse(status=container.outbox.retry(notification_id))
