"""
Audit Log Service

Durable per-delivery record of inbound webhooks.

Every write uses its own short-lived session so a failing handler
transaction can never roll back the audit trail. Write failures are
logged and swallowed: an unavailable audit table degrades auditing,
it does not stop fulfillment.
"""
import uuid
from datetime import datetime, timedelta, timezone
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from memberhub.logging_config import get_logger
from memberhub.models.webhook import WebhookDelivery, DeliveryStatus
from memberhub.services.normalizer import NormalizedEvent, UNKNOWN


STALE_DELIVERY_MESSAGE = "processing timed out"


class AuditLogService:
    """Service for recording webhook delivery outcomes."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def start(self, event: NormalizedEvent, raw_payload: dict) -> str | None:
        """
        Insert the processing row for a new delivery.

        Args:
            event: Normalized event fields
            raw_payload: Full body as received, kept for replay

        Returns:
            Delivery id, or None if the row could not be written
        """
        delivery_id = str(uuid.uuid4())
        try:
            async with self.session_factory() as db:
                db.add(WebhookDelivery(
                    id=delivery_id,
                    event_type=event.event_type,
                    customer_email=event.customer_email or UNKNOWN,
                    customer_name=event.customer_name,
                    order_id=event.order_id,
                    product_id=event.product_id,
                    status=DeliveryStatus.PROCESSING,
                    raw_payload=raw_payload,
                ))
                await db.commit()
        except Exception as e:
            get_logger(event_type=event.event_type).warning(
                "audit_log_insert_failed",
                error=str(e)
            )
            return None
        return delivery_id

    async def finish(
        self,
        delivery_id: str | None,
        status: DeliveryStatus,
        message: str | None = None
    ) -> None:
        """
        Move a delivery to its terminal status.

        No-op when the processing row was never written.
        """
        if delivery_id is None:
            return
        try:
            async with self.session_factory() as db:
                await db.execute(
                    update(WebhookDelivery)
                    .where(WebhookDelivery.id == delivery_id)
                    .where(WebhookDelivery.status == DeliveryStatus.PROCESSING)
                    .values(status=status, error_message=message)
                )
                await db.commit()
        except Exception as e:
            get_logger(delivery_id=delivery_id).warning(
                "audit_log_update_failed",
                status=status.value,
                error=str(e)
            )

    async def get(self, delivery_id: str) -> WebhookDelivery | None:
        """Get a delivery by id."""
        async with self.session_factory() as db:
            stmt = select(WebhookDelivery).where(WebhookDelivery.id == delivery_id)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()

    async def recent(self, limit: int = 20) -> list[WebhookDelivery]:
        """
        Get the latest deliveries.

        Args:
            limit: Maximum number of deliveries to return

        Returns:
            List of deliveries (most recent first)
        """
        async with self.session_factory() as db:
            stmt = (
                select(WebhookDelivery)
                .order_by(WebhookDelivery.created_at.desc())
                .limit(limit)
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def reconcile_stale(self, older_than: timedelta) -> int:
        """
        Mark deliveries stuck in processing as failed.

        A crash between the processing insert and the terminal update
        leaves the row open forever; this sweep closes it.

        Returns:
            Number of deliveries marked as error
        """
        cutoff = datetime.now(timezone.utc) - older_than
        async with self.session_factory() as db:
            result = await db.execute(
                update(WebhookDelivery)
                .where(WebhookDelivery.status == DeliveryStatus.PROCESSING)
                .where(WebhookDelivery.created_at < cutoff)
                .values(status=DeliveryStatus.ERROR, error_message=STALE_DELIVERY_MESSAGE)
            )
            await db.commit()
        return result.rowcount
