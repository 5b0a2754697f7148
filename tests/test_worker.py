"""
Tests for the stale delivery reconciliation job.
"""
from datetime import datetime, timedelta, timezone

from memberhub import worker
from memberhub.models.webhook import WebhookDelivery, DeliveryStatus


async def test_reconcile_job_uses_configured_threshold(session_factory, monkeypatch, fetch):
    monkeypatch.setattr(worker, "AsyncSessionLocal", session_factory)
    monkeypatch.setattr(worker.settings, "STALE_DELIVERY_MINUTES", 10)

    async with session_factory() as db:
        db.add(WebhookDelivery(
            id="stuck",
            event_type="order_approved",
            customer_email="a@x.com",
            status=DeliveryStatus.PROCESSING,
            raw_payload={},
            created_at=datetime.now(timezone.utc) - timedelta(minutes=15),
        ))
        await db.commit()

    result = await worker.reconcile_stale_deliveries({})

    assert result == {"reconciled": 1}
    delivery = (await fetch(WebhookDelivery))[0]
    assert delivery.status == DeliveryStatus.ERROR
