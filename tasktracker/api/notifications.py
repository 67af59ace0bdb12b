"""Registration of devices for reminder push notifications."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tasktracker.api.dependencies import get_current_user
from tasktracker.config import get_settings
from tasktracker.database import get_db
from tasktracker.models import PushSubscription
from tasktracker.models.user import User
from tasktracker.schemas.notification import (
    PushSubscriptionCreate,
    PushSubscriptionResponse,
    VapidPublicKeyResponse,
)

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


def _find_subscription(db: Session, user_id: int, endpoint: str) -> PushSubscription | None:
    return (
        db.query(PushSubscription)
        .filter(PushSubscription.user_id == user_id, PushSubscription.endpoint == endpoint)
        .first()
    )


@router.get("/vapid-public-key", response_model=VapidPublicKeyResponse)
def get_vapid_public_key() -> VapidPublicKeyResponse:
    return VapidPublicKeyResponse(public_key=get_settings().vapid_public_key)


@router.post(
    "/subscribe", response_model=PushSubscriptionResponse, status_code=status.HTTP_201_CREATED
)
def subscribe_push(
    subscription: PushSubscriptionCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> PushSubscription:
    """Register this device for reminder pushes.

    Subscribing the same endpoint again refreshes its keys, since browsers
    rotate them without changing the endpoint.
    """
    push_sub = _find_subscription(db, current_user.id, subscription.endpoint)
    if push_sub is None:
        push_sub = PushSubscription(user_id=current_user.id, endpoint=subscription.endpoint)
        db.add(push_sub)

    push_sub.p256dh_key = subscription.keys.p256dh
    push_sub.auth_key = subscription.keys.auth
    db.commit()
    db.refresh(push_sub)
    return push_sub


@router.delete("/subscribe", status_code=status.HTTP_204_NO_CONTENT)
def unsubscribe_push(
    endpoint: str,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    """Stop pushing reminders to a device. Unknown endpoints are ignored."""
    push_sub = _find_subscription(db, current_user.id, endpoint)
    if push_sub is not None:
        db.delete(push_sub)
        db.commit()
