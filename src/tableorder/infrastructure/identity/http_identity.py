from __future__ import annotations

import logging
import os

import httpx

from tableorder.application.errors import TransportError
from tableorder.application.ports.identity import IdentityProvider
from tableorder.domain.common.ids import UserId

logger = logging.getLogger(__name__)


def _identity_user_url() -> str:
    url = os.getenv("IDENTITY_USER_URL")
    if not url:
        raise RuntimeError("IDENTITY_USER_URL is not set")
    return url


class HttpIdentityProvider(IdentityProvider):
    """Resolves bearer tokens through a GoTrue-compatible ``/auth/v1/user`` endpoint."""

    def __init__(
        self,
        user_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float = 2.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._user_url = user_url or _identity_user_url()
        self._api_key = api_key if api_key is not None else os.getenv("IDENTITY_API_KEY", "")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def resolve_user(self, bearer_token: str) -> UserId | None:
        headers = {"Authorization": f"Bearer {bearer_token}"}
        if self._api_key:
            headers["apikey"] = self._api_key
        try:
            with httpx.Client(timeout=self._timeout_seconds, transport=self._transport) as client:
                response = client.get(self._user_url, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError("identity provider unreachable") from exc

        if response.status_code in (401, 403):
            return None
        if response.status_code >= 400:
            logger.warning(
                "identity_lookup_failed",
                extra={"status_code": response.status_code},
            )
            raise TransportError(f"identity provider returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError("identity provider returned a malformed body") from exc
        if not isinstance(payload, dict):
            raise TransportError("identity provider returned a malformed body")
        user_id = payload.get("id")
        if not user_id:
            return None
        return UserId(str(user_id))
