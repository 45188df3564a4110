"""Shared helpers and the client's error type."""

from __future__ import annotations

import json

__all__ = ["DaprClientError", "is_cloud_event"]

_CLOUD_EVENT_FIELDS = ("id", "source", "specversion", "type")


class DaprClientError(Exception):
    """Raised when a client call cannot be made or the runtime rejects it."""


class _Pairs(list):
    """Key/value pairs of a JSON object, in document order."""


def _match_field(key: str) -> str | None:
    if key in _CLOUD_EVENT_FIELDS:
        return key
    folded = key.casefold()
    for field in _CLOUD_EVENT_FIELDS:
        if folded == field:
            return field
    return None


def is_cloud_event(event: bytes | bytearray | str) -> bool:
    """Tell whether a JSON document carries non-empty id, source, specversion and type."""
    try:
        document = json.loads(event, object_pairs_hook=_Pairs)
    except ValueError:
        return False
    if not isinstance(document, _Pairs):
        return False

    fields = dict.fromkeys(_CLOUD_EVENT_FIELDS, "")
    for key, value in document:
        name = _match_field(key)
        if name is None or value is None:
            continue
        if not isinstance(value, str):
            return False
        fields[name] = value
    return all(fields.values())