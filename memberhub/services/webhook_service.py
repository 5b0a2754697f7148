"""
Webhook Service

Processes inbound payment provider deliveries end to end:
normalize, audit, gate, verify, route to a handler, close the audit row.

The provider retries deliveries that get a non-2xx response; that is the
only retry mechanism, so every failure that should be retried must
surface as an error response.
"""
import json
from sqlalchemy.ext.asyncio import async_sessionmaker

from memberhub.exceptions import InvalidPayloadError, InvalidSignatureError, PipelineError, RateLimitedError
from memberhub.logging_config import get_logger
from memberhub.models.webhook import DeliveryStatus
from memberhub.routes.metrics import track_delivery, track_signature_rejected
from memberhub.sentry_config import capture_exception
from memberhub.services.audit_log import AuditLogService
from memberhub.services.fulfillment import FulfillmentHandler, RevocationHandler
from memberhub.services.integration_service import IntegrationService, ensure_active, ensure_signed
from memberhub.services.normalizer import NormalizedEvent, normalize_event
from memberhub.services.notifier import Notifier


UNHANDLED_MESSAGE = "received but not processed"
INTERNAL_ERROR = "Internal error"


def parse_payload(body: bytes) -> dict | None:
    """Decode a JSON object body. Returns None for anything else."""
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, ValueError):
        return None
    return payload if isinstance(payload, dict) else None


class WebhookPipeline:
    """Runs one delivery through the fulfillment pipeline."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        identity_provider,
        email_client,
        audit_log: AuditLogService | None = None
    ):
        self.session_factory = session_factory
        self.identity_provider = identity_provider
        self.notifier = Notifier(session_factory, email_client)
        self.audit_log = audit_log or AuditLogService(session_factory)

    async def process(
        self,
        body: bytes,
        signature: str | None = None,
        rate_limited: bool = False
    ) -> tuple[int, dict]:
        """
        Process one delivery.

        Args:
            body: Raw request body
            signature: Value of the signature header, if sent
            rate_limited: Caller is over its rate limit; the delivery is
                audited and rejected without being processed

        Returns:
            (status_code, response_body)
        """
        payload = parse_payload(body)
        if payload is None:
            raw_payload = {"raw": body.decode("utf-8", errors="replace")}
            event = NormalizedEvent(event_type="unknown")
        else:
            raw_payload = payload
            event = normalize_event(payload)

        delivery_id = await self.audit_log.start(event, raw_payload)
        log = get_logger(delivery_id=delivery_id, event_type=event.event_type, order_id=event.order_id)
        log.info("webhook_received")

        try:
            if rate_limited:
                raise RateLimitedError()
            if payload is None:
                raise InvalidPayloadError()
            await self.check_gate(body, signature)
            message = await self.route(event, payload)
        except PipelineError as e:
            if isinstance(e, InvalidSignatureError):
                track_signature_rejected()
            if e.status_code >= 500:
                capture_exception(e)
            log.warning("webhook_rejected", error=e.message, status_code=e.status_code)
            return await self._fail(delivery_id, event, e.message, e.status_code)
        except Exception as e:
            log.exception("webhook_failed", error=str(e))
            capture_exception(e)
            return await self._fail(delivery_id, event, str(e) or type(e).__name__, 500)

        await self.audit_log.finish(delivery_id, DeliveryStatus.SUCCESS, message)
        track_delivery(event.event_type, DeliveryStatus.SUCCESS.value)
        log.info("webhook_processed", result=message)
        return 200, {"success": True}

    async def check_gate(self, body: bytes, signature: str | None) -> None:
        """
        Reject the delivery unless the integration is on and, when a
        secret is configured, the signature matches.
        """
        async with self.session_factory() as db:
            integration = await IntegrationService(db).get_settings()
        integration = ensure_active(integration)
        ensure_signed(integration, body, signature)

    async def route(self, event: NormalizedEvent, payload: dict) -> str:
        """
        Dispatch to the handler for the event type.

        Returns:
            Outcome message stored on the audit row
        """
        if event.is_fulfillment:
            async with self.session_factory() as db:
                handler = FulfillmentHandler(db, self.identity_provider, self.notifier)
                return await handler.handle(event, payload)

        if event.is_revocation:
            async with self.session_factory() as db:
                handler = RevocationHandler(db, self.notifier)
                return await handler.handle(event, payload)

        return UNHANDLED_MESSAGE

    async def _fail(
        self,
        delivery_id: str | None,
        event: NormalizedEvent,
        message: str,
        status_code: int
    ) -> tuple[int, dict]:
        await self.audit_log.finish(delivery_id, DeliveryStatus.ERROR, message)
        track_delivery(event.event_type, DeliveryStatus.ERROR.value)
        error = message if status_code < 500 else INTERNAL_ERROR
        return status_code, {"error": error}
