"""
Identity Provider client.

Creates and looks up accounts through the hosted auth provider's admin API.
"""
import httpx

from memberhub.config import settings
from memberhub.exceptions import AccountAlreadyExistsError, IdentityProviderError


DUPLICATE_ERROR_CODES = {"email_exists", "user_already_exists"}
USERS_PAGE_SIZE = 200


class SupabaseIdentityProvider:
    """Admin client for the hosted auth provider."""

    def __init__(
        self,
        base_url: str | None = None,
        service_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.service_key = service_key or settings.SUPABASE_SERVICE_ROLE_KEY
        self.timeout = timeout
        self.transport = transport

    async def create_user(self, email: str, password: str, full_name: str | None) -> str:
        """
        Create a pre-confirmed account.

        Args:
            email: Account email
            password: Initial password (never shown to the customer)
            full_name: Display name stored in user metadata

        Returns:
            The provider's user id

        Raises:
            AccountAlreadyExistsError: an account already uses this email
            IdentityProviderError: any other provider or transport failure
        """
        body = {
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": {
                "full_name": full_name,
                "from_payment": True,
                "needs_password": True,
            },
        }

        response = await self._request("POST", "/auth/v1/admin/users", json=body)

        if response.status_code in (409, 422) and _is_duplicate(response):
            raise AccountAlreadyExistsError(email)

        _raise_for_status(response)

        user_id = response.json().get("id")
        if not user_id:
            raise IdentityProviderError("identity provider response missing user id")
        return user_id

    async def find_user_id(self, email: str) -> str | None:
        """
        Look up an existing account by email.

        The admin API has no exact email filter, so this pages through
        the user list.

        Returns:
            The provider's user id, or None if no account uses this email

        Raises:
            IdentityProviderError: provider or transport failure
        """
        email = email.lower()
        page = 1
        while True:
            response = await self._request(
                "GET",
                "/auth/v1/admin/users",
                params={"page": page, "per_page": USERS_PAGE_SIZE}
            )
            _raise_for_status(response)

            users = response.json().get("users") or []
            for user in users:
                if (user.get("email") or "").lower() == email:
                    return user.get("id")

            if len(users) < USERS_PAGE_SIZE:
                return None
            page += 1

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if not self.service_key:
            raise IdentityProviderError("SUPABASE_SERVICE_ROLE_KEY not configured")

        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=headers,
                    **kwargs
                )
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"identity provider unreachable: {e}") from e


def _raise_for_status(response: httpx.Response) -> None:
    if response.status_code < 200 or response.status_code >= 300:
        raise IdentityProviderError(
            f"identity provider returned HTTP {response.status_code}"
        )


def _is_duplicate(response: httpx.Response) -> bool:
    try:
        data = response.json()
    except ValueError:
        return False
    if not isinstance(data, dict):
        return False
    code = data.get("error_code") or data.get("code")
    if code in DUPLICATE_ERROR_CODES:
        return True
    message = str(data.get("msg") or data.get("message") or "")
    return "already" in message.lower()
