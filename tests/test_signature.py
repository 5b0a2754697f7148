"""
Tests for delivery signature verification.
"""
import json

from conftest import order_approved, save_integration
from memberhub.models.purchase import Purchase
from memberhub.models.webhook import WebhookDelivery, DeliveryStatus
from memberhub.services.integration_service import generate_webhook_signature, verify_webhook_signature


WEBHOOK_URL = "/api/webhooks/payments"
SECRET = "whsec_test_secret"


def signed_body(payload, secret=SECRET):
    body = json.dumps(payload).encode()
    return body, generate_webhook_signature(body, secret)


def test_verify_accepts_plain_and_prefixed_digest():
    body = b'{"order_id": "o1"}'
    digest = generate_webhook_signature(body, SECRET)

    assert verify_webhook_signature(body, digest, SECRET)
    assert verify_webhook_signature(body, f"sha256={digest}", SECRET)
    assert verify_webhook_signature(body, digest.upper(), SECRET)


def test_verify_rejects_missing_or_tampered():
    body = b'{"order_id": "o1"}'
    digest = generate_webhook_signature(body, SECRET)

    assert not verify_webhook_signature(body, None, SECRET)
    assert not verify_webhook_signature(body, "", SECRET)
    assert not verify_webhook_signature(b'{"order_id": "o2"}', digest, SECRET)
    assert not verify_webhook_signature(body, digest, "other-secret")


async def test_signed_delivery_is_processed(api_client, session_factory, fetch):
    await save_integration(session_factory, shared_secret=SECRET)
    body, signature = signed_body(order_approved())

    response = await api_client.post(
        WEBHOOK_URL,
        content=body,
        headers={"Content-Type": "application/json", "X-Webhook-Signature": signature}
    )

    assert response.status_code == 200
    assert len(await fetch(Purchase)) == 1


async def test_unsigned_delivery_rejected_when_secret_configured(
    api_client, session_factory, identity_provider, fetch
):
    await save_integration(session_factory, shared_secret=SECRET)

    response = await api_client.post(WEBHOOK_URL, json=order_approved())

    assert response.status_code == 401
    assert response.json() == {"error": "invalid signature"}
    assert identity_provider.created == []
    assert await fetch(Purchase) == []

    deliveries = await fetch(WebhookDelivery)
    assert deliveries[0].status == DeliveryStatus.ERROR
    assert deliveries[0].error_message == "invalid signature"


async def test_wrong_secret_rejected(api_client, session_factory, fetch):
    await save_integration(session_factory, shared_secret=SECRET)
    body, signature = signed_body(order_approved(), secret="guessed")

    response = await api_client.post(
        WEBHOOK_URL,
        content=body,
        headers={"Content-Type": "application/json", "X-Webhook-Signature": signature}
    )

    assert response.status_code == 401
    assert await fetch(Purchase) == []


async def test_inactive_check_runs_before_signature(api_client, session_factory):
    await save_integration(session_factory, is_active=False, shared_secret=SECRET)

    response = await api_client.post(WEBHOOK_URL, json=order_approved())

    assert response.status_code == 400
    assert response.json() == {"error": "integration not active"}
