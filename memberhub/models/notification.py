"""
Notification model.

In-app notifications created as a side effect of fulfillment and revocation.
"""
import uuid
import enum
from sqlalchemy import String, Text, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from memberhub.models.base import Base, TimestampMixin, enum_column


class NotificationType(str, enum.Enum):
    """Notification type enum."""
    PURCHASE = "purchase"
    REFUND = "refund"


class Notification(Base, TimestampMixin):
    """In-app notification for a community member."""
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    type: Mapped[NotificationType] = mapped_column(enum_column(NotificationType), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, type={self.type})>"
