"""Distributed lock calls."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from .utils import DaprClientError

__all__ = [
    "UnlockStatus",
    "LockRequest",
    "UnlockRequest",
    "LockResponse",
    "UnlockResponse",
    "TryLockRequest",
    "UnlockStoreRequest",
    "LockMixin",
]


class UnlockStatus(IntEnum):
    """Outcome reported by the runtime for an unlock."""

    SUCCESS = 0
    LOCK_DOES_NOT_EXIST = 1
    LOCK_BELONGS_TO_OTHERS = 2
    INTERNAL_ERROR = 3


@dataclass
class LockRequest:
    """A request to acquire a lock."""

    resource_id: str = ""
    lock_owner: str = ""
    expiry_in_seconds: int = 0


@dataclass
class UnlockRequest:
    """A request to release a lock."""

    resource_id: str = ""
    lock_owner: str = ""


@dataclass
class LockResponse:
    """Whether the lock was acquired."""

    success: bool


@dataclass
class UnlockResponse:
    """Status of an unlock, as code and name."""

    status_code: int
    status: str


@dataclass
class TryLockRequest:
    """Lock request as sent to the runtime."""

    store_name: str
    resource_id: str
    lock_owner: str
    expiry_in_seconds: int


@dataclass
class UnlockStoreRequest:
    """Unlock request as sent to the runtime."""

    store_name: str
    resource_id: str
    lock_owner: str


def _status_name(code: int) -> str:
    try:
        return UnlockStatus(code).name
    except ValueError:
        return ""


class LockMixin:
    """Lock calls; expects a ``runtime`` attribute."""

    runtime: Any

    def try_lock_alpha1(self, store_name: str, request: LockRequest | None) -> LockResponse:
        """Try to acquire a lock from a lock store."""
        if not store_name:
            raise DaprClientError("store_name is empty")
        if request is None:
            raise DaprClientError("request is None")
        outgoing = TryLockRequest(
            store_name=store_name,
            resource_id=request.resource_id,
            lock_owner=request.lock_owner,
            expiry_in_seconds=request.expiry_in_seconds,
        )
        try:
            response = self.runtime.try_lock_alpha1(outgoing)
        except Exception as exc:
            raise DaprClientError(f"error getting lock: {exc}") from exc
        return LockResponse(success=bool(response.success))

    def unlock_alpha1(self, store_name: str, request: UnlockRequest | None) -> UnlockResponse:
        """Release a lock held in a lock store."""
        if not store_name:
            raise DaprClientError("store_name is empty")
        if request is None:
            raise DaprClientError("request is None")
        outgoing = UnlockStoreRequest(
            store_name=store_name,
            resource_id=request.resource_id,
            lock_owner=request.lock_owner,
        )
        try:
            response = self.runtime.unlock_alpha1(outgoing)
        except Exception as exc:
            raise DaprClientError(f"error getting lock: {exc}") from exc
        code = int(response.status)
        return UnlockResponse(status_code=code, status=_status_name(code))