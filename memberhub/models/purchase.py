"""
Purchase model.

One row per paid order, keyed by the payment provider's order id.
"""
import uuid
import enum
from datetime import datetime
from sqlalchemy import String, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from memberhub.models.base import Base, TimestampMixin, enum_column


class PurchaseStatus(str, enum.Enum):
    """Purchase status enum."""
    PAID = "paid"
    REFUNDED = "refunded"


class Purchase(Base, TimestampMixin):
    """
    Purchase granting community access.

    access_granted is true only while status is paid and no revocation
    has been recorded for the order.
    """
    __tablename__ = "purchases"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    order_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    product_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    status: Mapped[PurchaseStatus] = mapped_column(
        enum_column(PurchaseStatus),
        nullable=False,
        default=PurchaseStatus.PAID
    )
    access_granted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    purchase_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    access_revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    raw_payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    def __repr__(self):
        return f"<Purchase(id={self.id}, order_id={self.order_id}, status={self.status}, access_granted={self.access_granted})>"
