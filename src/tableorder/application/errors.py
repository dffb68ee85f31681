from __future__ import annotations

from typing import Any


class ValidationError(Exception):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class InvalidStateError(Exception):
    def __init__(self, message: str, status: str | None = None) -> None:
        super().__init__(message)
        self.details = {"status": status} if status else {}


class AuthorizationError(Exception):
    pass


class NotFoundError(Exception):
    def __init__(self, message: str, resource: str) -> None:
        super().__init__(message)
        self.resource = resource
        self.details = {"resource": resource}


class ConflictError(Exception):
    def __init__(self, message: str, current_version: int | None = None) -> None:
        super().__init__(message)
        self.current_version = current_version
        self.details = {"currentVersion": current_version} if current_version is not None else {}


class TransportError(Exception):
    pass
