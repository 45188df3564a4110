# daprkit

daprkit is a Python client for a Dapr sidecar. It does three things:

- It builds the runtime's request messages.
- It checks arguments before anything is sent.
- It turns replies into plain dataclasses.

It uses only the standard library.

## What it covers

- **State** (`daprkit.state`)
  - Save: `save_state`, `save_state_with_etag`, `save_bulk_state`
  - Read: `get_state`, `get_state_with_consistency`, `get_bulk_state`
  - Query: `query_state_alpha1`
  - Delete: `delete_state`, `delete_state_with_etag`, `delete_bulk_state`, `delete_bulk_state_items`
  - Transactions: `execute_state_transaction`
- **Pub/sub** (`daprkit.pubsub`): `publish_event`, `publish_event_from_custom_content`, `publish_events`
- **Service invocation** (`daprkit.invoke`): `invoke_method`, `invoke_method_with_content`, `invoke_method_with_custom_content`
- **Secrets** (`daprkit.secret`): `get_secret`, `get_bulk_secret`
- **Configuration** (`daprkit.configuration`): `get_configuration_item`, `get_configuration_items`, `subscribe_configuration_items`, `unsubscribe_configuration_items`
- **Distributed locks** (`daprkit.lock`): `try_lock_alpha1`, `unlock_alpha1`
- **Readiness** (`daprkit.client`): `DaprClient.wait(timeout)`

All of these are methods of `daprkit.client.DaprClient`.

## Creating a client

```python
from daprkit.client import DaprClient

client = DaprClient(runtime, connection)
```

`DaprClient` takes two objects.

**`runtime`** carries out the calls. Each client method passes a request dataclass to the runtime method with the matching name. The runtime methods are:

- State: `save_state`, `get_state`, `get_bulk_state`, `query_state_alpha1`, `delete_state`, `delete_bulk_state`, `execute_state_transaction`
- Pub/sub: `publish_event`, `bulk_publish_event_alpha1`
- Invocation: `invoke_service`
- Secrets: `get_secret`, `get_bulk_secret`
- Configuration: `get_configuration_alpha1`, `subscribe_configuration_alpha1`, `unsubscribe_configuration_alpha1`
- Locks: `try_lock_alpha1`, `unlock_alpha1`

**`connection`** is optional. Only `wait` uses it. It must provide:

- `get_state()`, which returns a `ConnectivityState` value.
- `wait_for_state_change(state, timeout)`.

### Waiting for the connection

```python
client.wait(5.0)  # a float in seconds or a datetime.timedelta
```

`wait` returns as soon as the connection reports `ConnectivityState.READY`. Otherwise:

- It raises `WaitTimeoutError` when the timeout runs out.
- It raises `DaprClientError` when the client was built without a connection.

## State

```python
from daprkit.state import StateConcurrency, StateConsistency, with_concurrency, with_consistency

client.save_state("statestore", "order", b"1")
item = client.get_state("statestore", "order")
print(item.key, item.etag, item.value)

client.save_state_with_etag(
    "statestore", "order", b"2", "1", {"meta1": "value1"},
    with_consistency(StateConsistency.EVENTUAL),
    with_concurrency(StateConcurrency.FIRST_WRITE),
)
client.delete_state("statestore", "order")
```

Default options:

- When no options are passed, saves use strong consistency and last-write concurrency.
- Deletes without `StateOptions` use the same defaults.
- `get_state` reads with strong consistency.

`to_proto_duration` splits a `timedelta` into a `ProtoDuration`. The result holds seconds and nanoseconds.

## Publishing

```python
from daprkit.pubsub import publish_event_with_raw_payload

client.publish_event("messages", "neworder", b"ping")
client.publish_event("messages", "neworder", {"id": 1}, publish_event_with_raw_payload())

result = client.publish_events("messages", "neworder", ["multi-ping", "multi-pong"])
if result.error is not None:
    print("failed:", result.failed_events)
```

How `publish_event` sends the data depends on its type:

- Bytes are sent unchanged.
- A string is sent as UTF-8.
- Any other value is sent as JSON, with content type `application/json`.

JSON encoding works as follows:

- Dataclasses are converted to dictionaries.
- Bytes inside a value become base64 text.

`publish_events` does not raise. It returns a `PublishEventsResponse` with `error` and `failed_events`. In a bulk publish, the content type of each entry is set as follows:

| Data | Content type |
| --- | --- |
| Bytes | `application/octet-stream` |
| String | `text/plain` |
| JSON | `application/json` |
| JSON with non-empty `id`, `source`, `specversion` and `type` | `application/cloudevents+json` |
| `PublishEventsEvent` | its own content type |

`PublishEventsEvent` also carries its own entry id and metadata. When an entry has no id, it gets a random UUID.

These options change the bulk request:

- `publish_events_with_content_type`
- `publish_events_with_metadata`
- `publish_events_with_raw_payload`

`publish_event_from_custom_content` is deprecated. It issues a `DeprecationWarning`.

## Service invocation

```python
from daprkit.invoke import DataContent

reply = client.invoke_method_with_content(
    "serving", "echo?foo=bar", "post", DataContent(data=b"hello", content_type="text/plain")
)
```

The method name is split at its first `?`. The part after it is sent as the query string.

The verb is matched without regard to case. An unknown verb becomes `HTTPVerb.NONE`, and the query string is then dropped.

## Configuration subscriptions

`subscribe_configuration_items` works like this:

- It reads the runtime's stream on a background thread.
- It returns the subscription id taken from the first response.
- It calls the handler with `(id, items)` for every response that has items.
- If the stream ends before its first response, it raises `DaprClientError`.

## Errors

- Missing or empty arguments raise `daprkit.utils.DaprClientError`.
- Most failures raised by the runtime are wrapped in `DaprClientError`. Two calls pass them through unchanged: `get_configuration_items` and `delete_bulk_state_items`.
- `wait` raises `WaitTimeoutError` on timeout. It is a subclass of `DaprClientError`.

## What this package does not do

- **No transport.** There is no gRPC or HTTP connection to a sidecar. You supply the `runtime` and `connection` objects.
- **No service side.** There is no server to receive topic events, invocations or bindings.
- **No actors.** There is no support for actors.
- **No command-line tool.**