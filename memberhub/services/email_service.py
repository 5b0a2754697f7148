"""
Email Service

Sends transactional email through the Resend HTTP API.
"""
import html
import httpx

from memberhub.config import settings
from memberhub.exceptions import EmailDeliveryError


WELCOME_SUBJECT = "Welcome to the community!"
REFUND_SUBJECT = "Your refund has been processed"


def render_welcome_email(name: str | None, email: str) -> str:
    """Welcome message pointing the new member at "forgot password"."""
    reset_url = f"{settings.SITE_URL.rstrip('/')}/auth/reset-password"
    return f"""
<p>Hi <strong>{html.escape(name or 'there')}</strong>,</p>
<p>Your purchase was confirmed and your community account is ready.</p>
<p>To sign in for the first time:</p>
<ol>
  <li>Open the platform</li>
  <li>Click "Forgot password"</li>
  <li>Enter your email: <strong>{html.escape(email)}</strong></li>
  <li>Choose a password and sign in</li>
</ol>
<p><a href="{reset_url}">Create my password</a></p>
"""


def render_refund_email(name: str | None) -> str:
    """Notice that access was removed after a refund."""
    return f"""
<p>Hi <strong>{html.escape(name or 'there')}</strong>,</p>
<p>Your refund has been processed and your access to the community has been removed.</p>
<p>If you have any questions, just reply to this email.</p>
"""


class ResendEmailClient:
    """Client for the transactional email API."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        sender: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.api_key = api_key or settings.RESEND_API_KEY
        self.api_url = api_url or settings.RESEND_API_URL
        self.sender = sender or settings.EMAIL_FROM
        self.timeout = timeout
        self.transport = transport

    async def send(self, to: str, subject: str, html_body: str) -> str | None:
        """
        Send one email.

        Returns:
            Message id reported by the API, if any

        Raises:
            EmailDeliveryError: API key missing, transport failure or non-2xx response
        """
        if not self.api_key:
            raise EmailDeliveryError("RESEND_API_KEY not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.api_url,
                    json={
                        "from": self.sender,
                        "to": [to],
                        "subject": subject,
                        "html": html_body,
                    },
                    headers={"Authorization": f"Bearer {self.api_key}"}
                )
        except httpx.HTTPError as e:
            raise EmailDeliveryError(str(e)) from e

        if response.status_code < 200 or response.status_code >= 300:
            raise EmailDeliveryError(f"email API returned HTTP {response.status_code}")

        return response.json().get("id")
