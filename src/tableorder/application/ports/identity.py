from __future__ import annotations

from typing import Protocol

from tableorder.domain.common.ids import UserId


class IdentityProvider(Protocol):
    def resolve_user(self, bearer_token: str) -> UserId | None: ...
