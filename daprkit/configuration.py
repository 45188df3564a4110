"""Configuration store calls, including subscriptions."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from .utils import DaprClientError

__all__ = [
    "ConfigurationItem",
    "GetConfigurationRequest",
    "SubscribeConfigurationRequest",
    "SubscribeConfigurationResponse",
    "UnsubscribeConfigurationRequest",
    "UnsubscribeConfigurationResponse",
    "ConfigurationMixin",
]

logger = logging.getLogger(__name__)

ConfigurationHandler = Callable[[str, "dict[str, ConfigurationItem]"], None]


@dataclass
class ConfigurationItem:
    """One configuration value with its version and metadata."""

    value: str = ""
    version: str = ""
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class GetConfigurationRequest:
    """Request for configuration values."""

    store_name: str
    keys: list[str]
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class SubscribeConfigurationRequest:
    """Request to watch configuration values."""

    store_name: str
    keys: list[str]
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class SubscribeConfigurationResponse:
    """One message of a configuration subscription stream."""

    id: str
    items: dict[str, ConfigurationItem] = field(default_factory=dict)


@dataclass
class UnsubscribeConfigurationRequest:
    """Request to stop a configuration subscription."""

    store_name: str
    id: str


@dataclass
class UnsubscribeConfigurationResponse:
    """Outcome of an unsubscribe."""

    ok: bool
    message: str = ""


def _copy_items(items: Mapping[str, Any] | None) -> dict[str, ConfigurationItem]:
    return {
        key: ConfigurationItem(
            value=item.value,
            version=item.version,
            metadata=dict(item.metadata or {}),
        )
        for key, item in (items or {}).items()
    }


def _receive(
    stream: Iterable[SubscribeConfigurationResponse | None],
    handler: ConfigurationHandler,
    first_id: queue.Queue,
) -> None:
    announced = False
    try:
        responses = iter(stream)
        while True:
            try:
                response = next(responses)
            except StopIteration:
                break
            except Exception:
                logger.debug("configuration stream failed", exc_info=True)
                break
            if response is None:
                break
            items = _copy_items(response.items)
            if not announced:
                first_id.put(response.id)
                announced = True
            if items:
                handler(response.id, items)
    finally:
        if not announced:
            first_id.put(None)
        logger.info("dapr configuration subscribe finished.")


class ConfigurationMixin:
    """Configuration calls; expects a ``runtime`` attribute."""

    runtime: Any

    def get_configuration_item(
        self, store_name: str, key: str, metadata: Mapping[str, str] | None = None
    ) -> ConfigurationItem | None:
        """Fetch one configuration item, or None when the store has none."""
        items = self.get_configuration_items(store_name, [key], metadata)
        if not items:
            return None
        return items.get(key)

    def get_configuration_items(
        self,
        store_name: str,
        keys: Iterable[str],
        metadata: Mapping[str, str] | None = None,
    ) -> dict[str, ConfigurationItem]:
        """Fetch several configuration items keyed by name."""
        request = GetConfigurationRequest(
            store_name=store_name, keys=list(keys), metadata=dict(metadata or {})
        )
        return _copy_items(self.runtime.get_configuration_alpha1(request))

    def subscribe_configuration_items(
        self,
        store_name: str,
        keys: Iterable[str],
        handler: ConfigurationHandler,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        """Watch configuration items and return the subscription id.

        Updates are delivered to ``handler`` on a background thread; messages
        without items are not passed on.
        """
        request = SubscribeConfigurationRequest(
            store_name=store_name, keys=list(keys), metadata=dict(metadata or {})
        )
        try:
            stream = self.runtime.subscribe_configuration_alpha1(request)
        except Exception as exc:
            raise DaprClientError(f"subscribe configuration failed with error = {exc}") from exc

        first_id: queue.Queue = queue.Queue(maxsize=1)
        threading.Thread(
            target=_receive,
            args=(stream, handler, first_id),
            name="configuration-subscription",
            daemon=True,
        ).start()
        subscription_id = first_id.get()
        if subscription_id is None:
            raise DaprClientError("configuration subscription closed before its first response")
        return subscription_id

    def unsubscribe_configuration_items(self, store_name: str, subscription_id: str) -> None:
        """Stop a configuration subscription."""
        request = UnsubscribeConfigurationRequest(store_name=store_name, id=subscription_id)
        try:
            response = self.runtime.unsubscribe_configuration_alpha1(request)
        except Exception as exc:
            raise DaprClientError(f"unsubscribe failed with error = {exc}") from exc
        if not response.ok:
            raise DaprClientError(f"unsubscribe error message = {response.message}")