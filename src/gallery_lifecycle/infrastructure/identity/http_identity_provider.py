"""HTTP adapter for the auth provider's admin API.

Implements IdentityProviderPort against the provider's admin endpoints using
httpx. Every failure (transport error, timeout, non-2xx response) surfaces as
IdentityProviderError so callers can fall back to manual cleanup.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ...config import Settings
from ...domain.identity.ports import IdentityProviderError, IdentityProviderPort

logger = logging.getLogger(__name__)


class HttpIdentityProviderAdapter(IdentityProviderPort):

    REVOKE_SESSIONS_PATH = "/admin/revoke-user-sessions"
    REMOVE_USER_PATH = "/admin/remove-user"

    def __init__(
        self,
        base_url: str,
        admin_token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {admin_token}"},
            transport=transport,
        )

    def revoke_user_sessions(self, user_id: str) -> None:
        self._post(self.REVOKE_SESSIONS_PATH, {"userId": user_id})
        logger.info(f"Revoked identity provider sessions for user {user_id}", extra={"user_id": user_id})

    def remove_user(self, user_id: str) -> None:
        self._post(self.REMOVE_USER_PATH, {"userId": user_id})
        logger.info(f"Removed user {user_id} via identity provider", extra={"user_id": user_id})

    def close(self) -> None:
        self._client.close()

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.post(path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise IdentityProviderError(
                f"Identity provider returned {e.response.status_code} for {path}"
            ) from e
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"Identity provider request to {path} failed: {e}") from e

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            return {}

        # The provider reports some failures with a 200 and an error body
        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise IdentityProviderError(f"Identity provider error for {path}: {message}")
        return body if isinstance(body, dict) else {}


def build_identity_provider(settings: Settings) -> Optional[HttpIdentityProviderAdapter]:
    """Create the HTTP adapter from settings, or None when not configured."""
    if not settings.identity_provider_configured:
        logger.warning("Identity provider not configured, provider calls will be skipped")
        return None
    return HttpIdentityProviderAdapter(
        base_url=settings.IDENTITY_PROVIDER_URL,
        admin_token=settings.IDENTITY_PROVIDER_ADMIN_TOKEN,
        timeout=settings.IDENTITY_PROVIDER_TIMEOUT_SECONDS,
    )
