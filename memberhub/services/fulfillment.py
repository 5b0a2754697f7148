"""
Fulfillment and Revocation Handlers

Grant community access for paid orders and remove it for refunds,
chargebacks and cancellations. Both handlers are safe to repeat for the
same delivery: accounts are keyed by email and purchases by order id.
"""
import secrets
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.exceptions import (
    AccountAlreadyExistsError,
    IdentityProviderError,
    IncompleteWebhookDataError,
)
from memberhub.logging_config import get_logger
from memberhub.routes.metrics import (
    track_access_revoked,
    track_account_provisioned,
    track_purchase_recorded,
)
from memberhub.services.normalizer import NormalizedEvent
from memberhub.services.notifier import Notifier
from memberhub.services.profile_service import ProfileService
from memberhub.services.purchase_service import PurchaseService


PROFILE_INSERT_ATTEMPTS = 3


class FulfillmentHandler:
    """Provisions an account and records the purchase for a paid order."""

    def __init__(self, db: AsyncSession, identity_provider, notifier: Notifier):
        self.db = db
        self.identity_provider = identity_provider
        self.notifier = notifier
        self.profiles = ProfileService(db)
        self.purchases = PurchaseService(db)

    async def handle(self, event: NormalizedEvent, raw_payload: dict) -> str:
        """
        Fulfill an approved order.

        Raises:
            IncompleteWebhookDataError: order id or customer email missing
            IdentityProviderError: the account could not be created
        """
        if not event.order_id or not event.customer_email:
            raise IncompleteWebhookDataError()

        log = get_logger(order_id=event.order_id, customer_email=event.customer_email)

        profile = await self.profiles.get_by_email(event.customer_email)
        if profile:
            user_id = profile.id
            log.info("account_reused", user_id=user_id)
        else:
            user_id = await self._provision_account(event)

        await self._record_purchase(event, user_id, raw_payload)
        return "order fulfilled"

    async def _provision_account(self, event: NormalizedEvent) -> str:
        """
        Create the account, its profile, and send first-access notices.

        Returns:
            User id of the new account, or of the account a concurrent
            delivery created first
        """
        log = get_logger(order_id=event.order_id, customer_email=event.customer_email)

        # Never surfaced; the member sets a real password via "forgot password"
        password = secrets.token_urlsafe(32)

        try:
            user_id = await self.identity_provider.create_user(
                email=event.customer_email,
                password=password,
                full_name=event.customer_name
            )
        except AccountAlreadyExistsError:
            profile = await self.profiles.get_by_email(event.customer_email)
            if profile:
                self._log_concurrent_account(event, profile.id)
                return profile.id
            user_id = await self._adopt_existing_account(event)

        profile_id, created = await self._create_profile(event, user_id)
        if not created:
            self._log_concurrent_account(event, profile_id)
            return profile_id

        track_account_provisioned()
        log.info("account_provisioned", user_id=user_id)

        await self.notifier.send_welcome_email(event.customer_email, event.customer_name)
        await self.notifier.notify_purchase(user_id, event.product_id)
        return user_id

    async def _adopt_existing_account(self, event: NormalizedEvent) -> str:
        """
        Resolve the id of a provider account that has no profile.

        Happens when an earlier delivery created the account and then
        failed before the profile was written.
        """
        user_id = await self.identity_provider.find_user_id(event.customer_email)
        if not user_id:
            raise IdentityProviderError("account reported as existing but not found at identity provider")
        get_logger(order_id=event.order_id, customer_email=event.customer_email).info(
            "account_adopted",
            user_id=user_id
        )
        return user_id

    async def _create_profile(self, event: NormalizedEvent, user_id: str) -> tuple[str, bool]:
        """
        Insert the profile for a provider account.

        Returns:
            (profile_id, created). When a concurrent delivery created the
            profile for the same email first, its id and False.

        Raises:
            IntegrityError: username clashes persisted across every attempt
        """
        for attempt in range(1, PROFILE_INSERT_ATTEMPTS + 1):
            try:
                await self.profiles.create(
                    user_id=user_id,
                    email=event.customer_email,
                    full_name=event.customer_name
                )
                return user_id, True
            except IntegrityError:
                await self.db.rollback()
                profile = await self.profiles.get_by_email(event.customer_email)
                if profile:
                    return profile.id, False
                if attempt == PROFILE_INSERT_ATTEMPTS:
                    raise
                # Another email took the derived username; pick the next free one
                get_logger(order_id=event.order_id, user_id=user_id).info(
                    "username_taken_concurrently",
                    attempt=attempt
                )

    def _log_concurrent_account(self, event: NormalizedEvent, user_id: str) -> None:
        get_logger(order_id=event.order_id, customer_email=event.customer_email).info(
            "account_created_concurrently",
            user_id=user_id
        )

    async def _record_purchase(self, event: NormalizedEvent, user_id: str, raw_payload: dict) -> None:
        log = get_logger(order_id=event.order_id, user_id=user_id)

        existing = await self.purchases.get_by_order_id(event.order_id)
        if existing:
            log.info("purchase_already_recorded", purchase_id=existing.id, status=existing.status.value)
            return

        try:
            purchase = await self.purchases.record_paid(
                order_id=event.order_id,
                product_id=event.product_id,
                customer_email=event.customer_email,
                customer_name=event.customer_name,
                user_id=user_id,
                raw_payload=raw_payload
            )
        except SQLAlchemyError as e:
            # Account access stays granted; the purchase row is secondary
            await self.db.rollback()
            log.error("purchase_insert_failed", error=str(e))
            return

        track_purchase_recorded(event.product_id)
        log.info("purchase_recorded", purchase_id=purchase.id)


class RevocationHandler:
    """Removes access for a refunded, charged back or cancelled order."""

    def __init__(self, db: AsyncSession, notifier: Notifier):
        self.db = db
        self.notifier = notifier
        self.purchases = PurchaseService(db)

    async def handle(self, event: NormalizedEvent, raw_payload: dict) -> str:
        """
        Revoke access for the order referenced by the event.

        An event without an order reference, or for an unknown order,
        is acknowledged without changes.
        """
        if not event.order_id:
            get_logger(event_type=event.event_type).info("revocation_without_order_id")
            return "no order reference"

        log = get_logger(order_id=event.order_id, event_type=event.event_type)

        purchase = await self.purchases.get_by_order_id(event.order_id)
        if not purchase:
            log.info("revocation_purchase_not_found")
            return "purchase not found"

        await self.purchases.revoke_access(purchase, raw_payload)
        track_access_revoked(event.event_type)
        log.info("access_revoked", purchase_id=purchase.id, user_id=purchase.user_id)

        if purchase.user_id:
            await self.notifier.notify_refund(purchase.user_id)
            await self.notifier.send_refund_email(purchase.customer_email, purchase.customer_name)

        return "access revoked"
