"""Exception types shared by the core and adapters."""

from __future__ import annotations

from typing import Iterable


class InvalidTenantError(ValueError):
    """Raised when a tenant id fails the storage-key format check."""

    def __init__(self, tenant_id: object) -> None:
        super().__init__(f"Invalid tenant id: {tenant_id!r}")
        self.tenant_id = tenant_id


class ConfigValidationError(ValueError):
    """Raised when a tenant config update is rejected.

    Carries every field-level message so callers can surface them at once.
    """

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class UpstreamError(RuntimeError):
    """A non-2xx response from Crisp or the notification endpoint."""

    def __init__(self, operation: str, status: int, body: str) -> None:
        super().__init__(f"{operation} failed with {status}: {body}")
        self.operation = operation
        self.status = status
        self.body = body


class ScorerNotReadyError(RuntimeError):
    """Raised when a scorer is used before its warm-up completed."""
