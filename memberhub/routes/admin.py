"""
Admin API routes.

Integration settings and the webhook delivery log.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from memberhub.database import get_db, get_session_factory
from memberhub.dependencies.auth import require_admin, TokenPayload
from memberhub.logging_config import get_logger
from memberhub.models.webhook import WebhookDelivery
from memberhub.services.audit_log import AuditLogService
from memberhub.services.integration_service import IntegrationService


router = APIRouter(prefix="/api/admin", tags=["admin"])


class IntegrationSettingsRequest(BaseModel):
    """Request model for updating integration settings."""
    is_active: bool
    shared_secret: str | None = None


class IntegrationSettingsResponse(BaseModel):
    """Integration settings without the secret itself."""
    is_active: bool
    has_secret: bool


class WebhookDeliveryResponse(BaseModel):
    """Response model for a logged delivery."""
    id: str
    event_type: str
    customer_email: str
    order_id: str | None = None
    status: str
    error_message: str | None = None
    created_at: str | None = None


def delivery_to_response(delivery: WebhookDelivery) -> WebhookDeliveryResponse:
    """Convert WebhookDelivery model to WebhookDeliveryResponse."""
    return WebhookDeliveryResponse(
        id=delivery.id,
        event_type=delivery.event_type,
        customer_email=delivery.customer_email,
        order_id=delivery.order_id,
        status=delivery.status.value,
        error_message=delivery.error_message,
        created_at=delivery.created_at.isoformat() if delivery.created_at else None,
    )


@router.get("/integration", response_model=IntegrationSettingsResponse)
async def get_integration(
    admin: TokenPayload = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Get the payment integration settings."""
    integration = await IntegrationService(db).get_settings()

    if not integration:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Integration not configured"
        )

    return IntegrationSettingsResponse(
        is_active=integration.is_active,
        has_secret=bool(integration.shared_secret)
    )


@router.put("/integration", response_model=IntegrationSettingsResponse)
async def update_integration(
    request: IntegrationSettingsRequest,
    admin: TokenPayload = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Turn the payment integration on or off and set the shared secret.

    An empty secret disables signature verification.
    """
    integration = await IntegrationService(db).save_settings(
        is_active=request.is_active,
        shared_secret=request.shared_secret
    )

    get_logger(user_id=admin.sub).info(
        "integration_settings_updated",
        is_active=integration.is_active,
        has_secret=bool(integration.shared_secret)
    )

    return IntegrationSettingsResponse(
        is_active=integration.is_active,
        has_secret=bool(integration.shared_secret)
    )


@router.get("/webhook-deliveries", response_model=list[WebhookDeliveryResponse])
async def list_webhook_deliveries(
    limit: int = Query(20, ge=1, le=100),
    admin: TokenPayload = Depends(require_admin),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    """Get the latest webhook deliveries, newest first."""
    deliveries = await AuditLogService(session_factory).recent(limit)
    return [delivery_to_response(d) for d in deliveries]
