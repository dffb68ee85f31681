from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone

from tableorder.application.callers import TableSession
from tableorder.domain.common.ids import RestaurantId, TableId

DEFAULT_TTL_SECONDS = 4 * 60 * 60


def hash_session_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TableSessionIssuer:
    """Issues and verifies customer session tokens.

    A token is ``<payload>.<signature>`` where the payload binds the
    restaurant, the table, the issue time and a random nonce. Only the
    SHA-256 hash of a token is ever stored next to an order.
    """

    def __init__(self, secret: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        if not secret:
            raise ValueError("secret must be non-empty")
        self._secret = secret.encode("utf-8")
        self._ttl = timedelta(seconds=ttl_seconds)

    def issue(
        self,
        restaurant_id: RestaurantId,
        table_id: TableId,
        now: datetime | None = None,
    ) -> TableSession:
        issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        raw = "|".join(
            [
                str(restaurant_id),
                str(table_id),
                str(int(issued_at.timestamp())),
                secrets.token_urlsafe(24),
            ]
        )
        payload = base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")
        token = f"{payload}.{self._sign(payload)}"
        return TableSession(
            restaurant_id=restaurant_id,
            table_id=table_id,
            issued_at=issued_at,
            token=token,
        )

    def verify(self, token: str, now: datetime | None = None) -> TableSession | None:
        payload, _, signature = token.partition(".")
        if not payload or not signature:
            return None
        if not hmac.compare_digest(signature, self._sign(payload)):
            return None
        try:
            padded = payload + "=" * (-len(payload) % 4)
            raw = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
            restaurant_id, table_id, issued_raw, _nonce = raw.split("|", 3)
            issued_at = datetime.fromtimestamp(int(issued_raw), tz=timezone.utc)
        except ValueError:
            return None

        current = now or datetime.now(timezone.utc)
        if current - issued_at > self._ttl:
            return None
        return TableSession(
            restaurant_id=RestaurantId(restaurant_id),
            table_id=TableId(table_id),
            issued_at=issued_at,
            token=token,
        )

    def _sign(self, payload: str) -> str:
        return hmac.new(self._secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()
