"""Browser push endpoints that receive fired reminders."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from tasktracker.database import Base
from tasktracker.models.mixins import TimestampMixin


class PushSubscription(Base, TimestampMixin):
    """One device registered for reminder pushes.

    Rows are removed by the notification service when the push service
    answers 410 Gone for the endpoint.
    """

    __tablename__ = "push_subscriptions"
    __table_args__ = (UniqueConstraint("user_id", "endpoint", name="uq_push_user_endpoint"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    endpoint = Column(Text, nullable=False)
    # Base64url encoded keys from PushSubscription.getKey()
    p256dh_key = Column(String(255), nullable=False)
    auth_key = Column(String(64), nullable=False)

    owner = relationship("User", backref="push_subscriptions")
