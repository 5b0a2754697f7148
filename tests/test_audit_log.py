"""
Tests for the webhook delivery audit log.
"""
from datetime import datetime, timedelta, timezone

from memberhub.models.webhook import WebhookDelivery, DeliveryStatus
from memberhub.services.audit_log import AuditLogService, STALE_DELIVERY_MESSAGE
from memberhub.services.normalizer import normalize_event


async def test_start_records_processing_row(session_factory):
    audit_log = AuditLogService(session_factory)
    payload = {"webhook_event_type": "order_approved", "order_id": "o1", "Customer": {"email": "a@x.com"}}

    delivery_id = await audit_log.start(normalize_event(payload), payload)

    delivery = await audit_log.get(delivery_id)
    assert delivery.status == DeliveryStatus.PROCESSING
    assert delivery.event_type == "order_approved"
    assert delivery.order_id == "o1"
    assert delivery.customer_email == "a@x.com"
    assert delivery.raw_payload == payload


async def test_finish_sets_terminal_status_once(session_factory):
    audit_log = AuditLogService(session_factory)
    delivery_id = await audit_log.start(normalize_event({}), {})

    await audit_log.finish(delivery_id, DeliveryStatus.ERROR, "boom")
    await audit_log.finish(delivery_id, DeliveryStatus.SUCCESS, "late")

    delivery = await audit_log.get(delivery_id)
    assert delivery.status == DeliveryStatus.ERROR
    assert delivery.error_message == "boom"


async def test_finish_without_row_is_a_no_op(session_factory):
    await AuditLogService(session_factory).finish(None, DeliveryStatus.SUCCESS)


async def test_reconcile_marks_stale_processing_rows(session_factory):
    now = datetime.now(timezone.utc)
    async with session_factory() as db:
        db.add_all([
            WebhookDelivery(
                id="stale",
                event_type="order_approved",
                customer_email="a@x.com",
                status=DeliveryStatus.PROCESSING,
                raw_payload={},
                created_at=now - timedelta(hours=2),
            ),
            WebhookDelivery(
                id="fresh",
                event_type="order_approved",
                customer_email="b@x.com",
                status=DeliveryStatus.PROCESSING,
                raw_payload={},
                created_at=now,
            ),
            WebhookDelivery(
                id="done",
                event_type="order_approved",
                customer_email="c@x.com",
                status=DeliveryStatus.SUCCESS,
                raw_payload={},
                created_at=now - timedelta(hours=3),
            ),
        ])
        await db.commit()

    audit_log = AuditLogService(session_factory)
    count = await audit_log.reconcile_stale(timedelta(minutes=30))

    assert count == 1
    stale = await audit_log.get("stale")
    assert stale.status == DeliveryStatus.ERROR
    assert stale.error_message == STALE_DELIVERY_MESSAGE
    assert (await audit_log.get("fresh")).status == DeliveryStatus.PROCESSING
    assert (await audit_log.get("done")).status == DeliveryStatus.SUCCESS


async def test_recent_returns_latest_first(session_factory):
    now = datetime.now(timezone.utc)
    async with session_factory() as db:
        for i in range(3):
            db.add(WebhookDelivery(
                id=f"d{i}",
                event_type="order_approved",
                customer_email="a@x.com",
                status=DeliveryStatus.SUCCESS,
                raw_payload={},
                created_at=now - timedelta(minutes=10 - i),
            ))
        await db.commit()

    deliveries = await AuditLogService(session_factory).recent(limit=2)

    assert [d.id for d in deliveries] == ["d2", "d1"]
