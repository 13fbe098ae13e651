"""Pydantic response models for the Notifications API."""

from pydantic import BaseModel


class ProcessResponse(BaseModel):
    processed: int
    sent: int
    failed: int


class NotificationResponse(BaseModel):
    id: str
    dedupe_key: str
    recipient: str
    recipient_type: str
    notification_type: str
    subject: str | None = None
    status: str
    retry_count: int
    max_retries: int
    failure_reason: str | None = None
    sent_at: str | None = None


class FailedNotificationsResponse(BaseModel):
    notifications: list[NotificationResponse]
    counts: dict[str, int]


class StatusResponse(BaseModel):
    status: str
