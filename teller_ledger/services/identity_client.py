"""
Identity provider admin client.

Creates internet-banking logins through the provider's admin API
(GoTrue-compatible: ``POST {base}/admin/users``). The HTTP client
is injectable so tests can swap in an httpx.MockTransport.
"""

import httpx

from teller_ledger.config import get_settings
from teller_ledger.exceptions import IdentityNotConfigured, IdentityProvisioningFailed
from teller_ledger.logging_config import get_logger

logger = get_logger(__name__)


class IdentityAdminClient:
    """REST client for the identity provider's admin endpoints."""

    def __init__(
        self,
        base_url: str,
        admin_token: str,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.admin_token = admin_token
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls) -> "IdentityAdminClient":
        settings = get_settings()
        return cls(
            base_url=settings.IDENTITY_API_URL,
            admin_token=settings.IDENTITY_ADMIN_TOKEN,
            timeout=settings.IDENTITY_TIMEOUT,
        )

    def ensure_configured(self) -> None:
        if not self.admin_token or not self.base_url:
            raise IdentityNotConfigured(
                "IDENTITY_ADMIN_TOKEN and IDENTITY_API_URL must be set"
            )

    def create_user(self, email: str, password: str, metadata: dict) -> dict:
        """
        Create a confirmed user. Returns the provider's user record.

        Raises IdentityProvisioningFailed on a transport error or a
        non-2xx response; the provider status and body travel in
        the exception's extra data.
        """
        self.ensure_configured()
        try:
            response = self._client.post(
                f"{self.base_url}/admin/users",
                headers={"Authorization": f"Bearer {self.admin_token}"},
                json={
                    "email": email,
                    "password": password,
                    "user_metadata": metadata,
                },
            )
        except httpx.HTTPError as e:
            logger.error("identity provider unreachable: %s", e)
            raise IdentityProvisioningFailed(f"Identity provider unreachable: {e}")

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if response.is_error:
            logger.error(
                "identity user creation failed with %s", response.status_code
            )
            raise IdentityProvisioningFailed(
                "Identity account creation failed",
                status=response.status_code,
                response=body,
            )
        return body
