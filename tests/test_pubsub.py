import uuid
from dataclasses import dataclass, field

import pytest

from daprkit.pubsub import (
    BulkPublishResponse,
    BulkPublishResponseFailedEntry,
    PublishEventRequest,
    PublishEventsEvent,
    PubSubMixin,
    create_bulk_publish_request_entry,
    publish_event_with_content_type,
    publish_event_with_metadata,
    publish_event_with_raw_payload,
    publish_events_with_content_type,
    publish_events_with_metadata,
    publish_events_with_raw_payload,
)
from daprkit.utils import DaprClientError


@dataclass
class _TextStruct:
    Key1: str
    Key2: str


@dataclass
class _TextAndNumbers:
    Key1: str
    Key2: int


@dataclass
class _Slices:
    Key1: list = field(default_factory=list)
    Key2: list = field(default_factory=list)


@dataclass
class _JSONStruct:
    key1: str
    key2: str


@dataclass
class _CloudEventStruct:
    id: str
    source: str
    specversion: str
    type: str
    data: str


class FakeRuntime:
    def __init__(self):
        self.published = []
        self.bulk = []

    def publish_event(self, request):
        self.published.append(request)

    def bulk_publish_event_alpha1(self, request):
        self.bulk.append(request)
        if any(entry.event.startswith(b"failall-") for entry in request.entries):
            raise RuntimeError("bulk publish failed")
        return BulkPublishResponse(
            failed_entries=[
                BulkPublishResponseFailedEntry(entry_id=entry.entry_id, error="failed")
                for entry in request.entries
                if entry.event.startswith(b"fail-")
            ]
        )


class _Client(PubSubMixin):
    def __init__(self, runtime):
        self.runtime = runtime


def _request(metadata=None):
    return PublishEventRequest(
        pubsub_name="messages",
        topic="test",
        data=b"ping",
        data_content_type="",
        metadata=metadata,
    )


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def client(runtime):
    return _Client(runtime)


def test_publish_with_data(client, runtime):
    result = PubSubMixin.publish_event(client, "messages", "test", b"ping")
    assert result is None
    assert len(runtime.published) == 1
    request = runtime.published[-1]
    assert request.data == b"ping"
    assert request.pubsub_name == "messages"
    assert request.topic == "test"


def test_publish_without_data(client, runtime):
    result = PubSubMixin.publish_event(client, "messages", "test", None)
    assert result is None
    assert len(runtime.published) == 1
    assert runtime.published[-1].data is None


def test_publish_string_data(client, runtime):
    result = PubSubMixin.publish_event(client, "messages", "test", "ping")
    assert result is None
    assert runtime.published[-1].data == b"ping"
    assert runtime.published[-1].data_content_type == ""


def test_publish_with_empty_topic(client, runtime):
    with pytest.raises(DaprClientError):
        PubSubMixin.publish_event(client, "messages", "", b"ping")
    assert runtime.published == []


def test_publish_with_empty_pubsub(client):
    with pytest.raises(DaprClientError, match="pubsubName"):
        PubSubMixin.publish_event(client, "", "test", b"ping")


def test_publish_struct_as_json(client, runtime):
    result = PubSubMixin.publish_event(client, "messages", "test", _TextStruct("value1", "value2"))
    assert result is None
    request = runtime.published[-1]
    assert request.data == b'{"Key1":"value1","Key2":"value2"}'
    assert request.data_content_type == "application/json"


@pytest.mark.parametrize(
    "data, expected",
    [
        (_TextStruct("value1", "value2"), b'{"Key1":"value1","Key2":"value2"}'),
        (_TextAndNumbers("value1", 2500), b'{"Key1":"value1","Key2":2500}'),
        (
            _Slices(["value1", "value2", "value3"], [25, 40, 600]),
            b'{"Key1":["value1","value2","value3"],"Key2":[25,40,600]}',
        ),
    ],
)
def test_publish_from_custom_content(client, runtime, data, expected):
    with pytest.warns(DeprecationWarning):
        PubSubMixin.publish_event_from_custom_content(client, "messages", "test", data)
    request = runtime.published[-1]
    assert request.data == expected
    assert request.data_content_type == "application/json"


def test_publish_from_custom_content_serialization_error(client, runtime):
    with pytest.warns(DeprecationWarning):
        with pytest.raises(DaprClientError, match="error serializing input struct"):
            PubSubMixin.publish_event_from_custom_content(client, "messages", "test", object())
    assert runtime.published == []


def test_publish_raw_payload():
    request = _request()
    publish_event_with_raw_payload()(request)
    assert request.metadata == {"rawPayload": "true"}


def test_publish_raw_payload_keeps_metadata():
    request = _request()
    publish_event_with_metadata({"key": "value"})(request)
    publish_event_with_raw_payload()(request)
    assert request.metadata == {"key": "value", "rawPayload": "true"}


def test_publish_content_type_option():
    request = _request()
    publish_event_with_content_type("text/plain")(request)
    assert request.data_content_type == "text/plain"


def test_publish_options_reach_runtime(client, runtime):
    result = PubSubMixin.publish_event(
        client,
        "messages",
        "test",
        b"ping",
        publish_event_with_content_type("text/plain"),
        publish_event_with_raw_payload(),
    )
    assert result is None
    request = runtime.published[-1]
    assert request.data_content_type == "text/plain"
    assert request.metadata == {"rawPayload": "true"}


def test_publish_runtime_error_is_wrapped(client, runtime):
    def fail(request):
        raise RuntimeError("down")

    runtime.publish_event = fail
    with pytest.raises(DaprClientError, match="error publishing event unto test topic"):
        PubSubMixin.publish_event(client, "messages", "test", b"ping")


def test_publish_events_without_pubsub_name(client):
    res = PubSubMixin.publish_events(client, "", "test", ["ping", "pong"])
    assert isinstance(res.error, DaprClientError)
    assert res.failed_events == ["ping", "pong"]


def test_publish_events_without_topic_name(client):
    res = PubSubMixin.publish_events(client, "messages", "", ["ping", "pong"])
    assert isinstance(res.error, DaprClientError)
    assert res.failed_events == ["ping", "pong"]


def test_publish_events_with_data(client, runtime):
    res = PubSubMixin.publish_events(client, "messages", "test", ["ping", "pong"])
    assert res.error is None
    assert res.failed_events == []
    assert [entry.event for entry in runtime.bulk[-1].entries] == [b"ping", b"pong"]


def test_publish_events_without_data(client):
    res = PubSubMixin.publish_events(client, "messages", "test", None)
    assert res.error is None
    assert res.failed_events == []


@pytest.mark.parametrize(
    "data",
    [
        _TextStruct("value1", "value2"),
        _TextAndNumbers("value1", 2500),
        _Slices(["value1", "value2", "value3"], [25, 40, 600]),
    ],
)
def test_publish_events_with_struct_data(client, runtime, data):
    res = PubSubMixin.publish_events(client, "messages", "test", [data])
    assert res.error is None
    assert res.failed_events == []
    assert runtime.bulk[-1].entries[0].content_type == "application/json"


def test_publish_events_serialization_error(client):
    bad = object()
    res = PubSubMixin.publish_events(client, "messages", "test", [bad, "pong"])
    assert isinstance(res.error, DaprClientError)
    assert len(res.failed_events) == 1
    assert res.failed_events[0] is bad


def test_publish_events_raw_payload(client, runtime):
    res = PubSubMixin.publish_events(
        client, "messages", "test", ["ping", "pong"], publish_events_with_raw_payload()
    )
    assert res.error is None
    assert runtime.bulk[-1].metadata == {"rawPayload": "true"}


def test_publish_events_metadata(client, runtime):
    res = PubSubMixin.publish_events(
        client, "messages", "test", ["ping", "pong"], publish_events_with_metadata({"key": "value"})
    )
    assert res.error is None
    assert runtime.bulk[-1].metadata == {"key": "value"}


def test_publish_events_content_type(client, runtime):
    res = PubSubMixin.publish_events(
        client, "messages", "test", [b"ping", "pong"], publish_events_with_content_type("text/plain")
    )
    assert res.failed_events == []
    assert [entry.content_type for entry in runtime.bulk[-1].entries] == ["text/plain", "text/plain"]


def test_publish_events_some_fail(client):
    res = PubSubMixin.publish_events(client, "messages", "test", ["ping", "pong", "fail-ping"])
    assert isinstance(res.error, DaprClientError)
    assert res.failed_events == ["fail-ping"]


def test_publish_events_all_fail(client):
    res = PubSubMixin.publish_events(client, "messages", "test", ["ping", "pong", "failall-ping"])
    assert isinstance(res.error, DaprClientError)
    assert len(res.failed_events) == 3
    assert set(res.failed_events) == {"ping", "pong", "failall-ping"}


@pytest.mark.parametrize(
    "data, expected_event, expected_content_type",
    [
        ("ping", b"ping", "text/plain"),
        (b"ping", b"ping", "application/octet-stream"),
        (_JSONStruct("value1", "value2"), b'{"key1":"value1","key2":"value2"}', "application/json"),
        (
            _CloudEventStruct("123", "test", "1.0", "test", "foo"),
            b'{"id":"123","source":"test","specversion":"1.0","type":"test","data":"foo"}',
            "application/cloudevents+json",
        ),
    ],
)
def test_create_entry_serializes_and_sets_content_type(data, expected_event, expected_content_type):
    entry = create_bulk_publish_request_entry(data)
    assert entry.event == expected_event
    assert entry.content_type == expected_content_type


def test_create_entry_invalid_json():
    with pytest.raises(DaprClientError):
        create_bulk_publish_request_entry(object())


def test_create_entry_keeps_entry_id_and_metadata():
    entry = create_bulk_publish_request_entry(
        PublishEventsEvent(
            content_type="text/plain",
            data=b"ping",
            entry_id="123",
            metadata={"key": "value"},
        )
    )
    assert entry.entry_id == "123"
    assert entry.metadata == {"key": "value"}
    assert entry.event == b"ping"


@pytest.mark.parametrize(
    "data",
    ["ping", PublishEventsEvent(content_type="text/plain", data=b"ping")],
)
def test_create_entry_generates_uuid(data):
    entry = create_bulk_publish_request_entry(data)
    assert entry.entry_id
    assert entry.metadata is None
    assert str(uuid.UUID(entry.entry_id)) == entry.entry_id