"""Secret store calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .utils import DaprClientError

__all__ = ["GetSecretRequest", "GetBulkSecretRequest", "SecretMixin"]


@dataclass
class GetSecretRequest:
    """Request for one secret."""

    store_name: str
    key: str
    metadata: Mapping[str, str] | None = None


@dataclass
class GetBulkSecretRequest:
    """Request for every secret the application may read."""

    store_name: str
    metadata: Mapping[str, str] | None = None


class SecretMixin:
    """Secret calls; expects a ``runtime`` attribute."""

    runtime: Any

    def get_secret(
        self, store_name: str, key: str, metadata: Mapping[str, str] | None = None
    ) -> dict[str, str] | None:
        """Fetch a secret from a store by key."""
        if not store_name:
            raise DaprClientError("empty store_name")
        if not key:
            raise DaprClientError("empty key")
        request = GetSecretRequest(store_name=store_name, key=key, metadata=metadata)
        try:
            data = self.runtime.get_secret(request)
        except Exception as exc:
            raise DaprClientError(f"error invoking service: {exc}") from exc
        return None if data is None else dict(data)

    def get_bulk_secret(
        self, store_name: str, metadata: Mapping[str, str] | None = None
    ) -> dict[str, dict[str, str]] | None:
        """Fetch all secrets from a store, keyed by secret name."""
        if not store_name:
            raise DaprClientError("empty store_name")
        request = GetBulkSecretRequest(store_name=store_name, metadata=metadata)
        try:
            data = self.runtime.get_bulk_secret(request)
        except Exception as exc:
            raise DaprClientError(f"error invoking service: {exc}") from exc
        if data is None:
            return None
        return {name: dict(secrets) for name, secrets in data.items()}