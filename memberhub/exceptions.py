"""
Exceptions raised while processing payment webhook deliveries.

Each pipeline error carries the HTTP status the delivery response uses.
"""


class PipelineError(Exception):
    """Base class for errors that terminate a delivery with a known response."""
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidPayloadError(PipelineError):
    """Body is not a JSON object."""
    status_code = 400
    default_message = "invalid JSON payload"


class IntegrationInactiveError(PipelineError):
    """Integration settings are missing or switched off."""
    status_code = 400
    default_message = "integration not active"


class InvalidSignatureError(PipelineError):
    """Delivery signature is missing or does not match the shared secret."""
    status_code = 401
    default_message = "invalid signature"


class RateLimitedError(PipelineError):
    """Caller exceeded the inbound delivery rate limit."""
    status_code = 429
    default_message = "rate limited"


class IncompleteWebhookDataError(PipelineError):
    """Fulfillment needs both an order id and a customer email."""
    status_code = 400
    default_message = "incomplete webhook data"


class IdentityProviderError(PipelineError):
    """Account creation at the hosted auth provider failed."""
    status_code = 500


class AccountAlreadyExistsError(Exception):
    """The auth provider already has an account for this email."""


class EmailDeliveryError(Exception):
    """Transactional email API refused or failed to send a message."""
