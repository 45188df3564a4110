"""Publishing events to pub/sub topics, one at a time or in bulk."""

from __future__ import annotations

import uuid
import warnings
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from .invoke import _encode_json
from .utils import DaprClientError, is_cloud_event

__all__ = [
    "PublishEventRequest",
    "BulkPublishRequestEntry",
    "BulkPublishRequest",
    "BulkPublishResponseFailedEntry",
    "BulkPublishResponse",
    "PublishEventsEvent",
    "PublishEventsResponse",
    "PubSubMixin",
    "publish_event_with_content_type",
    "publish_event_with_metadata",
    "publish_event_with_raw_payload",
    "publish_events_with_content_type",
    "publish_events_with_metadata",
    "publish_events_with_raw_payload",
    "create_bulk_publish_request_entry",
]

_RAW_PAYLOAD = "rawPayload"
_TRUE_VALUE = "true"


@dataclass
class PublishEventRequest:
    """A single event as sent to the runtime."""

    pubsub_name: str
    topic: str
    data: bytes | None = None
    data_content_type: str = ""
    metadata: dict[str, str] | None = None


@dataclass
class BulkPublishRequestEntry:
    """One event inside a bulk publish request."""

    entry_id: str = ""
    event: bytes = b""
    content_type: str = ""
    metadata: dict[str, str] | None = None


@dataclass
class BulkPublishRequest:
    """Several events for one topic, as sent to the runtime."""

    pubsub_name: str
    topic: str
    entries: list[BulkPublishRequestEntry] = field(default_factory=list)
    metadata: dict[str, str] | None = None


@dataclass
class BulkPublishResponseFailedEntry:
    """An entry the runtime could not publish."""

    entry_id: str
    error: str = ""


@dataclass
class BulkPublishResponse:
    """The runtime's answer to a bulk publish."""

    failed_entries: list[BulkPublishResponseFailedEntry] = field(default_factory=list)


@dataclass
class PublishEventsEvent:
    """An event for bulk publishing with its own id, content type and metadata."""

    entry_id: str = ""
    data: bytes = b""
    content_type: str = ""
    metadata: dict[str, str] | None = None


@dataclass
class PublishEventsResponse:
    """Outcome of a bulk publish: an error, if any, and the events that failed."""

    error: Exception | None = None
    failed_events: list[Any] = field(default_factory=list)


PublishEventOption = Callable[[PublishEventRequest], None]
PublishEventsOption = Callable[[BulkPublishRequest], None]


def publish_event_with_content_type(content_type: str) -> PublishEventOption:
    """Option that sets an explicit content type on a single event."""

    def apply(request: PublishEventRequest) -> None:
        request.data_content_type = content_type

    return apply


def publish_event_with_metadata(metadata: Mapping[str, str]) -> PublishEventOption:
    """Option that sets the metadata of a single event."""

    def apply(request: PublishEventRequest) -> None:
        request.metadata = dict(metadata)

    return apply


def publish_event_with_raw_payload() -> PublishEventOption:
    """Option that marks a single event as a raw payload."""

    def apply(request: PublishEventRequest) -> None:
        request.metadata = {**(request.metadata or {}), _RAW_PAYLOAD: _TRUE_VALUE}

    return apply


def publish_events_with_content_type(content_type: str) -> PublishEventsOption:
    """Option that sets the same content type on every entry of a bulk publish."""

    def apply(request: BulkPublishRequest) -> None:
        for entry in request.entries:
            entry.content_type = content_type

    return apply


def publish_events_with_metadata(metadata: Mapping[str, str]) -> PublishEventsOption:
    """Option that sets the metadata of a bulk publish request."""

    def apply(request: BulkPublishRequest) -> None:
        request.metadata = dict(metadata)

    return apply


def publish_events_with_raw_payload() -> PublishEventsOption:
    """Option that marks a bulk publish request as carrying raw payloads."""

    def apply(request: BulkPublishRequest) -> None:
        request.metadata = {**(request.metadata or {}), _RAW_PAYLOAD: _TRUE_VALUE}

    return apply


def create_bulk_publish_request_entry(data: Any) -> BulkPublishRequestEntry:
    """Build a bulk entry, choosing the content type from the kind of data."""
    entry = BulkPublishRequestEntry()
    if isinstance(data, PublishEventsEvent):
        entry.entry_id = data.entry_id
        entry.event = data.data
        entry.content_type = data.content_type
        entry.metadata = data.metadata
    elif isinstance(data, (bytes, bytearray)):
        entry.event = bytes(data)
        entry.content_type = "application/octet-stream"
    elif isinstance(data, str):
        entry.event = data.encode("utf-8")
        entry.content_type = "text/plain"
    else:
        entry.event = _encode_json(data)
        entry.content_type = (
            "application/cloudevents+json"
            if is_cloud_event(entry.event)
            else "application/json"
        )
    if not entry.entry_id:
        entry.entry_id = str(uuid.uuid4())
    return entry


class PubSubMixin:
    """Publishing calls; expects a ``runtime`` attribute."""

    runtime: Any

    def publish_event(
        self,
        pubsub_name: str,
        topic_name: str,
        data: Any = None,
        *options: PublishEventOption,
    ) -> None:
        """Publish one event; values other than bytes and str are sent as JSON."""
        if not pubsub_name:
            raise DaprClientError("pubsubName name required")
        if not topic_name:
            raise DaprClientError("topic name required")

        request = PublishEventRequest(pubsub_name=pubsub_name, topic=topic_name)
        for option in options:
            option(request)

        if isinstance(data, (bytes, bytearray)):
            request.data = bytes(data)
        elif isinstance(data, str):
            request.data = data.encode("utf-8")
        elif data is not None:
            request.data_content_type = "application/json"
            request.data = _encode_json(data)

        try:
            self.runtime.publish_event(request)
        except Exception as exc:
            raise DaprClientError(
                f"error publishing event unto {topic_name} topic: {exc}"
            ) from exc

    def publish_event_from_custom_content(
        self, pubsub_name: str, topic_name: str, data: Any
    ) -> None:
        """Publish a value serialized as JSON. Deprecated in favour of publish_event."""
        warnings.warn(
            "publish_event_from_custom_content is deprecated; use publish_event instead",
            DeprecationWarning,
            stacklevel=2,
        )
        encoded = _encode_json(data)
        self.publish_event(
            pubsub_name,
            topic_name,
            encoded,
            publish_event_with_content_type("application/json"),
        )

    def publish_events(
        self,
        pubsub_name: str,
        topic_name: str,
        events: Iterable[Any] | None,
        *options: PublishEventsOption,
    ) -> PublishEventsResponse:
        """Publish several events; failures are reported in the response, not raised."""
        event_list = list(events or ())
        if not pubsub_name:
            return PublishEventsResponse(
                error=DaprClientError("pubsubName name required"), failed_events=event_list
            )
        if not topic_name:
            return PublishEventsResponse(
                error=DaprClientError("topic name required"), failed_events=event_list
            )

        failed_events: list[Any] = []
        by_entry_id: dict[str, Any] = {}
        entries: list[BulkPublishRequestEntry] = []
        for event in event_list:
            try:
                entry = create_bulk_publish_request_entry(event)
            except DaprClientError:
                failed_events.append(event)
                continue
            by_entry_id[entry.entry_id] = event
            entries.append(entry)

        request = BulkPublishRequest(pubsub_name=pubsub_name, topic=topic_name, entries=entries)
        for option in options:
            option(request)

        try:
            response = self.runtime.bulk_publish_event_alpha1(request)
        except Exception as exc:
            return PublishEventsResponse(
                error=DaprClientError(
                    f"error publishing events unto {topic_name} topic: {exc}"
                ),
                failed_events=event_list,
            )

        for failed in getattr(response, "failed_entries", None) or ():
            failed_events.append(by_entry_id.get(failed.entry_id, failed.entry_id))

        if failed_events:
            return PublishEventsResponse(
                error=DaprClientError(f"error publishing events unto {topic_name} topic"),
                failed_events=failed_events,
            )
        return PublishEventsResponse(error=None, failed_events=[])