"""
Integration Gate

Loads the integration switch and authenticates deliveries against the
shared secret stored with it.
"""
import hmac
import hashlib
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.exceptions import IntegrationInactiveError, InvalidSignatureError
from memberhub.models.integration import IntegrationSettings


SIGNATURE_PREFIX = "sha256="


def generate_webhook_signature(payload: bytes, secret: str) -> str:
    """Generate HMAC-SHA256 signature for webhook payload."""
    return hmac.new(
        secret.encode(),
        payload,
        hashlib.sha256
    ).hexdigest()


def verify_webhook_signature(payload: bytes, signature: str | None, secret: str) -> bool:
    """
    Check a delivery signature in constant time.

    Accepts a bare hex digest or one prefixed with "sha256=".
    """
    if not signature:
        return False
    signature = signature.strip()
    if signature.startswith(SIGNATURE_PREFIX):
        signature = signature[len(SIGNATURE_PREFIX):]
    expected = generate_webhook_signature(payload, secret)
    return hmac.compare_digest(expected, signature.lower())


def ensure_active(integration: IntegrationSettings | None) -> IntegrationSettings:
    """Raise unless the integration exists and is switched on."""
    if integration is None or not integration.is_active:
        raise IntegrationInactiveError()
    return integration


def ensure_signed(integration: IntegrationSettings, payload: bytes, signature: str | None) -> None:
    """
    Authenticate the delivery when a shared secret is configured.

    Without a secret, deliveries are accepted unsigned.
    """
    if not integration.shared_secret:
        return
    if not verify_webhook_signature(payload, signature, integration.shared_secret):
        raise InvalidSignatureError()


class IntegrationService:
    """Service for reading and updating the integration settings singleton."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_settings(self) -> IntegrationSettings | None:
        """
        Get the integration settings row.

        Returns:
            IntegrationSettings or None if never configured
        """
        stmt = select(IntegrationSettings).order_by(IntegrationSettings.created_at).limit(1)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def save_settings(
        self,
        is_active: bool,
        shared_secret: str | None = None
    ) -> IntegrationSettings:
        """
        Create or update the integration settings row.

        Args:
            is_active: Whether deliveries are processed
            shared_secret: Secret used to verify signatures (None or "" disables checks)

        Returns:
            The saved IntegrationSettings
        """
        integration = await self.get_settings()
        if integration is None:
            integration = IntegrationSettings()
            self.db.add(integration)

        integration.is_active = is_active
        integration.shared_secret = shared_secret or None

        await self.db.commit()
        await self.db.refresh(integration)
        return integration
