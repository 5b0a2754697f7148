"""
Webhook pipeline dependencies.

Collaborators are provided through dependencies so they can be
replaced with fakes in tests.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from memberhub.database import get_session_factory
from memberhub.services.email_service import ResendEmailClient
from memberhub.services.identity_provider import SupabaseIdentityProvider
from memberhub.services.webhook_service import WebhookPipeline


def get_identity_provider() -> SupabaseIdentityProvider:
    """Admin client for the hosted auth provider."""
    return SupabaseIdentityProvider()


def get_email_client() -> ResendEmailClient:
    """Transactional email client."""
    return ResendEmailClient()


def get_pipeline(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    identity_provider=Depends(get_identity_provider),
    email_client=Depends(get_email_client),
) -> WebhookPipeline:
    """Build the pipeline for one delivery."""
    return WebhookPipeline(session_factory, identity_provider, email_client)
