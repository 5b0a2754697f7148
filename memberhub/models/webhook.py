"""
Webhook Delivery Model

Audit record of every inbound payment webhook delivery.
"""
import uuid
import enum
from sqlalchemy import String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from memberhub.models.base import Base, TimestampMixin, enum_column


class DeliveryStatus(str, enum.Enum):
    """Lifecycle of a delivery: processing, then exactly one terminal state."""
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


class WebhookDelivery(Base, TimestampMixin):
    """
    One row per inbound delivery.

    Inserted as processing before any business logic runs and updated
    once with the terminal outcome. Rows are never deleted.
    """
    __tablename__ = "webhook_deliveries"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    event_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    order_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    product_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[DeliveryStatus] = mapped_column(
        enum_column(DeliveryStatus),
        nullable=False,
        default=DeliveryStatus.PROCESSING,
        index=True
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    raw_payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    def __repr__(self):
        return f"<WebhookDelivery(id={self.id}, event_type={self.event_type}, status={self.status})>"
