"""Client for the external identity provider's admin API.

Only account removal is needed: after a successful cascade the user's
external identity is deleted so they can no longer sign in.
"""

from functools import lru_cache

import httpx

from src.config import settings
from src.logging_config import get_logger

logger = get_logger(__name__)


class IdentityProviderError(Exception):
    """The identity provider rejected or failed a request."""


class IdentityProviderClient:
    """Thin async wrapper over the identity provider's REST API."""

    def __init__(
        self,
        base_url: str,
        api_secret: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_secret = api_secret
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        h: dict[str, str] = {"Accept": "application/json"}
        if self._api_secret:
            h["Authorization"] = f"Bearer {self._api_secret}"
        return h

    async def delete_external_account(self, external_id: str) -> None:
        """DELETE /v1/users/{external_id}.

        A 404 means the identity is already gone and counts as success.

        Raises:
            IdentityProviderError: On transport errors or any other non-2xx status.
        """
        url = f"{self._base_url}/v1/users/{external_id}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.delete(url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise IdentityProviderError(
                f"Identity provider unreachable: {exc}"
            ) from exc

        if resp.status_code == 404:
            logger.info("External identity already deleted", external_id=external_id)
            return
        if resp.is_error:
            raise IdentityProviderError(
                f"Identity provider returned {resp.status_code} deleting {external_id}"
            )
        logger.info("External identity deleted", external_id=external_id)


@lru_cache
def get_identity_provider() -> IdentityProviderClient:
    """FastAPI dependency returning the configured identity provider client."""
    return IdentityProviderClient(
        settings.identity_provider_url,
        api_secret=settings.identity_provider_secret,
        timeout=settings.identity_provider_timeout_seconds,
    )
