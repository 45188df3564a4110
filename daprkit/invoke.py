"""Service invocation through the runtime."""

from __future__ import annotations

import base64
import dataclasses
import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from .utils import DaprClientError

__all__ = [
    "HTTPVerb",
    "HTTPExtension",
    "InvokeRequest",
    "InvokeServiceRequest",
    "InvokeResponse",
    "DataContent",
    "InvokeMixin",
    "query_and_verb_to_http_extension",
    "extract_method_and_query",
]


class HTTPVerb(IntEnum):
    """HTTP verb attached to an invocation."""

    NONE = 0
    GET = 1
    HEAD = 2
    POST = 3
    PUT = 4
    DELETE = 5
    CONNECT = 6
    OPTIONS = 7
    TRACE = 8
    PATCH = 9


@dataclass
class HTTPExtension:
    """HTTP verb and query string of an invocation."""

    verb: HTTPVerb = HTTPVerb.NONE
    querystring: str = ""


@dataclass
class InvokeRequest:
    """The message delivered to the target application."""

    method: str
    http_extension: HTTPExtension = field(default_factory=HTTPExtension)
    data: bytes | None = None
    content_type: str = ""


@dataclass
class InvokeServiceRequest:
    """An invocation addressed to an application."""

    app_id: str
    message: InvokeRequest


@dataclass
class InvokeResponse:
    """What the invoked application answered."""

    data: bytes | None = None
    content_type: str = ""


@dataclass
class DataContent:
    """Raw invocation payload with its content type."""

    data: bytes
    content_type: str = ""


def query_and_verb_to_http_extension(query: str, verb: str) -> HTTPExtension:
    """Build the HTTP extension; an unknown verb yields NONE and drops the query."""
    member = HTTPVerb.__members__.get(verb.upper())
    if member is None:
        return HTTPExtension(verb=HTTPVerb.NONE)
    return HTTPExtension(verb=member, querystring=query)


def extract_method_and_query(name: str) -> tuple[str, str]:
    """Split a method name at its first '?' into method and query string."""
    method, _, query = name.partition("?")
    return method, query


def _check_invoke_args(app_id: str, method_name: str, verb: str) -> None:
    for name, value in (("app_id", app_id), ("method_name", method_name), ("verb", verb)):
        if not value:
            raise DaprClientError(f"missing required parameter: {name}")


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def _encode_json(content: Any) -> bytes:
    try:
        text = json.dumps(
            content,
            default=_json_default,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise DaprClientError(f"error serializing input struct: {exc}") from exc
    return text.encode("utf-8")


class InvokeMixin:
    """Service invocation calls; expects a ``runtime`` attribute."""

    runtime: Any

    def _invoke_service(self, request: InvokeServiceRequest) -> bytes | None:
        response = self.runtime.invoke_service(request)
        if response is None or response.data is None:
            return None
        return response.data

    def _build_request(
        self,
        app_id: str,
        method_name: str,
        verb: str,
        data: bytes | None = None,
        content_type: str = "",
    ) -> InvokeServiceRequest:
        method, query = extract_method_and_query(method_name)
        return InvokeServiceRequest(
            app_id=app_id,
            message=InvokeRequest(
                method=method,
                http_extension=query_and_verb_to_http_extension(query, verb),
                data=data,
                content_type=content_type,
            ),
        )

    def invoke_method(self, app_id: str, method_name: str, verb: str) -> bytes | None:
        """Invoke a method without a payload."""
        _check_invoke_args(app_id, method_name, verb)
        return self._invoke_service(self._build_request(app_id, method_name, verb))

    def invoke_method_with_content(
        self, app_id: str, method_name: str, verb: str, content: DataContent | None
    ) -> bytes | None:
        """Invoke a method with raw data and its content type."""
        _check_invoke_args(app_id, method_name, verb)
        if content is None:
            raise DaprClientError("content required")
        request = self._build_request(
            app_id, method_name, verb, data=content.data, content_type=content.content_type
        )
        return self._invoke_service(request)

    def invoke_method_with_custom_content(
        self, app_id: str, method_name: str, verb: str, content_type: str, content: Any
    ) -> bytes | None:
        """Invoke a method with a value serialized as JSON."""
        _check_invoke_args(app_id, method_name, verb)
        if not content_type:
            raise DaprClientError("content type required")
        if content is None:
            raise DaprClientError("content required")
        data = _encode_json(content)
        request = self._build_request(
            app_id, method_name, verb, data=data, content_type=content_type
        )
        return self._invoke_service(request)