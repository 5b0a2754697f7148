"""
Tests for access revocation on refunds, chargebacks and cancellations.
"""
from datetime import datetime, timezone

import pytest_asyncio

from conftest import order_approved
from memberhub.models.notification import Notification, NotificationType
from memberhub.models.purchase import Purchase, PurchaseStatus
from memberhub.models.webhook import WebhookDelivery, DeliveryStatus


WEBHOOK_URL = "/api/webhooks/payments"


@pytest_asyncio.fixture
async def fulfilled_order(api_client, active_integration, identity_provider):
    response = await api_client.post(WEBHOOK_URL, json=order_approved(order_id="o1"))
    assert response.status_code == 200
    return identity_provider.created[0]["id"]


async def test_refund_revokes_access(api_client, fulfilled_order, email_client, fetch):
    response = await api_client.post(
        WEBHOOK_URL,
        json={"webhook_event_type": "order_refunded", "order_id": "o1"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}

    purchase = (await fetch(Purchase, Purchase.order_id == "o1"))[0]
    assert purchase.status == PurchaseStatus.REFUNDED
    assert purchase.access_granted is False
    assert purchase.access_revoked_at is not None
    assert purchase.raw_payload == {"webhook_event_type": "order_refunded", "order_id": "o1"}

    refunds = await fetch(Notification, Notification.type == NotificationType.REFUND)
    assert len(refunds) == 1
    assert refunds[0].user_id == fulfilled_order

    assert email_client.sent[-1]["to"] == "a@x.com"
    assert email_client.sent[-1]["subject"] == "Your refund has been processed"


async def test_cancellation_resolves_transaction_id(api_client, fulfilled_order, fetch):
    response = await api_client.post(
        WEBHOOK_URL,
        json={"webhook_event_type": "subscription_canceled", "transaction_id": "o1"}
    )

    assert response.status_code == 200
    purchase = (await fetch(Purchase, Purchase.order_id == "o1"))[0]
    assert purchase.access_granted is False
    assert purchase.status == PurchaseStatus.REFUNDED


async def test_chargeback_uses_event_field(api_client, fulfilled_order, fetch):
    response = await api_client.post(WEBHOOK_URL, json={"event": "chargeback", "id": "o1"})

    assert response.status_code == 200
    purchase = (await fetch(Purchase, Purchase.order_id == "o1"))[0]
    assert purchase.access_granted is False


async def test_refund_for_unknown_order_is_a_no_op(api_client, fulfilled_order, fetch):
    response = await api_client.post(
        WEBHOOK_URL,
        json={"webhook_event_type": "order_refunded", "order_id": "missing"}
    )

    assert response.status_code == 200
    purchase = (await fetch(Purchase, Purchase.order_id == "o1"))[0]
    assert purchase.access_granted is True
    assert purchase.status == PurchaseStatus.PAID
    assert await fetch(Notification, Notification.type == NotificationType.REFUND) == []

    delivery = (await fetch(WebhookDelivery, WebhookDelivery.order_id == "missing"))[0]
    assert delivery.status == DeliveryStatus.SUCCESS


async def test_refund_without_order_reference_is_acknowledged(api_client, active_integration, fetch):
    response = await api_client.post(WEBHOOK_URL, json={"webhook_event_type": "chargeback"})

    assert response.status_code == 200
    deliveries = await fetch(WebhookDelivery)
    assert deliveries[0].status == DeliveryStatus.SUCCESS


async def test_refund_without_user_skips_notices(
    api_client, active_integration, session_factory, email_client, fetch
):
    async with session_factory() as db:
        db.add(Purchase(
            order_id="legacy",
            customer_email="old@x.com",
            status=PurchaseStatus.PAID,
            access_granted=True,
            purchase_date=datetime(2026, 1, 15, tzinfo=timezone.utc),
            raw_payload={}
        ))
        await db.commit()

    response = await api_client.post(
        WEBHOOK_URL,
        json={"webhook_event_type": "order_refunded", "order_id": "legacy"}
    )

    assert response.status_code == 200
    purchase = (await fetch(Purchase, Purchase.order_id == "legacy"))[0]
    assert purchase.access_granted is False
    assert await fetch(Notification) == []
    assert email_client.sent == []


async def test_paid_again_after_refund_keeps_revocation(api_client, fulfilled_order, fetch):
    await api_client.post(WEBHOOK_URL, json={"webhook_event_type": "order_refunded", "order_id": "o1"})
    await api_client.post(WEBHOOK_URL, json=order_approved(order_id="o1"))

    purchases = await fetch(Purchase, Purchase.order_id == "o1")
    assert len(purchases) == 1
    assert purchases[0].access_granted is False



async def test_notification_failure_does_not_block_revocation(
    api_client, fulfilled_order, db_engine, email_client, fetch
):
    async with db_engine.begin() as conn:
        await conn.run_sync(Notification.__table__.drop)

    response = await api_client.post(
        WEBHOOK_URL,
        json={"webhook_event_type": "order_refunded", "order_id": "o1"}
    )

    assert response.status_code == 200
    purchase = (await fetch(Purchase, Purchase.order_id == "o1"))[0]
    assert purchase.status == PurchaseStatus.REFUNDED
    assert purchase.access_granted is False
    assert email_client.sent[-1]["subject"] == "Your refund has been processed"

    refund = await fetch(WebhookDelivery, WebhookDelivery.event_type == "order_refunded")
    assert refund[0].status == DeliveryStatus.SUCCESS
