"""
Webhook API routes.

Receives payment provider deliveries.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from memberhub.config import settings
from memberhub.dependencies.pipeline import get_pipeline
from memberhub.dependencies.rate_limit import check_webhook_rate_limit
from memberhub.services.webhook_service import WebhookPipeline


router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/payments")
async def receive_payment_webhook(
    request: Request,
    pipeline: WebhookPipeline = Depends(get_pipeline),
    retry_after: int | None = Depends(check_webhook_rate_limit)
):
    """
    Receive a payment provider event.

    Responds 200 for processed and acknowledged-but-ignored events,
    400/401 for rejected deliveries, 429 when the caller is over its
    rate limit and 500 for failures the provider should retry.
    """
    body = await request.body()
    signature = request.headers.get(settings.WEBHOOK_SIGNATURE_HEADER)

    status_code, content = await pipeline.process(
        body,
        signature,
        rate_limited=retry_after is not None
    )
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)
