"""
Notifier

In-app notifications and transactional email for fulfillment and revocation.

Both are secondary effects: failures are logged and never fail a delivery.
"""
from sqlalchemy.ext.asyncio import async_sessionmaker

from memberhub.exceptions import EmailDeliveryError
from memberhub.logging_config import get_logger
from memberhub.models.notification import Notification, NotificationType
from memberhub.services.email_service import (
    REFUND_SUBJECT,
    WELCOME_SUBJECT,
    render_refund_email,
    render_welcome_email,
)


class Notifier:
    """Sends member-facing notices for access changes."""

    def __init__(self, session_factory: async_sessionmaker, email_client):
        self.session_factory = session_factory
        self.email_client = email_client

    async def notify_purchase(self, user_id: str, product_label: str | None) -> bool:
        """Insert the purchase-confirmed notification."""
        product = product_label or "your product"
        return await self._notify(
            user_id,
            NotificationType.PURCHASE,
            f"Welcome to the community! Your purchase of {product} has been confirmed."
        )

    async def notify_refund(self, user_id: str) -> bool:
        """Insert the access-removed notification."""
        return await self._notify(
            user_id,
            NotificationType.REFUND,
            "Your refund was processed and your community access has been removed."
        )

    async def send_welcome_email(self, email: str, name: str | None) -> bool:
        """Send the welcome email with first sign-in instructions."""
        return await self._send(email, WELCOME_SUBJECT, render_welcome_email(name, email))

    async def send_refund_email(self, email: str, name: str | None) -> bool:
        """Send the refund confirmation email."""
        return await self._send(email, REFUND_SUBJECT, render_refund_email(name))

    async def _notify(self, user_id: str, type_: NotificationType, content: str) -> bool:
        try:
            async with self.session_factory() as db:
                db.add(Notification(user_id=user_id, type=type_, content=content, is_read=False))
                await db.commit()
        except Exception as e:
            get_logger(user_id=user_id).error(
                "notification_insert_failed",
                notification_type=type_.value,
                error=str(e)
            )
            return False
        return True

    async def _send(self, email: str, subject: str, html_body: str) -> bool:
        log = get_logger(customer_email=email)
        try:
            message_id = await self.email_client.send(email, subject, html_body)
        except EmailDeliveryError as e:
            log.error("email_send_failed", subject=subject, error=str(e))
            return False
        log.info("email_sent", subject=subject, message_id=message_id)
        return True
