"""Web push subscription schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PushKeys(BaseModel):
    p256dh: str = Field(..., max_length=255)
    auth: str = Field(..., max_length=64)


class PushSubscriptionCreate(BaseModel):
    """The browser's ``PushSubscription.toJSON()`` payload."""

    endpoint: str = Field(..., min_length=1)
    keys: PushKeys


class PushSubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    endpoint: str
    created_at: datetime


class VapidPublicKeyResponse(BaseModel):
    """Key the browser needs to subscribe; null when push is not configured."""

    public_key: str | None
