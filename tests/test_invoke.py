from dataclasses import dataclass

import pytest

from daprkit.invoke import (
    DataContent,
    HTTPVerb,
    InvokeMixin,
    InvokeResponse,
    extract_method_and_query,
    query_and_verb_to_http_extension,
)
from daprkit.utils import DaprClientError


@dataclass
class StructWithText:
    Key1: str
    Key2: str


@dataclass
class StructWithTextAndNumbers:
    Key1: str
    Key2: int


@dataclass
class StructWithSlices:
    Key1: list
    Key2: list


class FakeRuntime:
    def __init__(self):
        self.requests = []

    def invoke_service(self, request):
        self.requests.append(request)
        if request.message.data is None:
            return None
        return InvokeResponse(
            data=request.message.data, content_type=request.message.content_type
        )


class FailingRuntime:
    def invoke_service(self, request):
        raise RuntimeError("unavailable")


class Client(InvokeMixin):
    def __init__(self, runtime):
        self.runtime = runtime


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def client(runtime):
    return Client(runtime)


def test_with_content(client, runtime):
    content = DataContent(data=b"ping", content_type="text/plain")
    assert InvokeMixin.invoke_method_with_content(client, "test", "fn", "post", content) == b"ping"
    request = runtime.requests[-1]
    assert request.app_id == "test"
    assert request.message.method == "fn"
    assert request.message.content_type == "text/plain"
    assert request.message.http_extension.verb == HTTPVerb.POST


def test_with_content_and_querystring(client, runtime):
    content = DataContent(data=b"ping", content_type="text/plain")
    resp = InvokeMixin.invoke_method_with_content(
        client, "test", "fn?foo=bar&url=http://dapr.io", "get", content
    )
    assert resp == b"ping"
    message = runtime.requests[-1].message
    assert message.method == "fn"
    assert message.http_extension.verb == HTTPVerb.GET
    assert message.http_extension.querystring == "foo=bar&url=http://dapr.io"


def test_without_content(client):
    assert InvokeMixin.invoke_method(client, "test", "fn", "get") is None


@pytest.mark.parametrize(
    ("app_id", "method", "verb", "missing"),
    [
        ("", "fn", "get", "app_id"),
        ("test", "", "get", "method_name"),
        ("test", "fn", "", "verb"),
    ],
)
def test_missing_required_arguments(client, app_id, method, verb, missing):
    with pytest.raises(DaprClientError, match=f"missing required parameter: {missing}"):
        InvokeMixin.invoke_method(client, app_id, method, verb)


def test_content_required(client):
    with pytest.raises(DaprClientError, match="content required"):
        InvokeMixin.invoke_method_with_content(client, "test", "fn", "post", None)


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (StructWithText("value1", "value2"), b'{"Key1":"value1","Key2":"value2"}'),
        (StructWithTextAndNumbers("value1", 2500), b'{"Key1":"value1","Key2":2500}'),
        (
            StructWithSlices(["value1", "value2", "value3"], [25, 40, 600]),
            b'{"Key1":["value1","value2","value3"],"Key2":[25,40,600]}',
        ),
    ],
)
def test_custom_content(client, runtime, data, expected):
    resp = InvokeMixin.invoke_method_with_custom_content(
        client, "test", "fn", "post", "text/plain", data
    )
    assert resp == expected
    assert runtime.requests[-1].message.content_type == "text/plain"


def test_custom_content_requires_content_type(client):
    with pytest.raises(DaprClientError, match="content type required"):
        InvokeMixin.invoke_method_with_custom_content(client, "test", "fn", "post", "", {"a": 1})


def test_custom_content_requires_content(client):
    with pytest.raises(DaprClientError, match="content required"):
        InvokeMixin.invoke_method_with_custom_content(
            client, "test", "fn", "post", "text/plain", None
        )


def test_custom_content_serialization_error(client, runtime):
    with pytest.raises(DaprClientError, match="error serializing input struct"):
        InvokeMixin.invoke_method_with_custom_content(
            client, "test", "fn", "post", "text/plain", object()
        )
    assert runtime.requests == []


def test_runtime_error_propagates():
    with pytest.raises(RuntimeError, match="unavailable"):
        InvokeMixin.invoke_method(Client(FailingRuntime()), "test", "fn", "get")


def test_verb_lower_case():
    v = query_and_verb_to_http_extension("", "post")
    assert v.verb == HTTPVerb.POST
    assert v.querystring == ""


def test_verb_upper_case():
    assert query_and_verb_to_http_extension("", "GET").verb == HTTPVerb.GET


def test_invalid_verb():
    v = query_and_verb_to_http_extension("a=b", "BAD")
    assert v.verb == HTTPVerb.NONE
    assert v.querystring == ""


def test_verb_with_query():
    v = query_and_verb_to_http_extension("foo=bar&url=http://dapr.io", "post")
    assert v.verb == HTTPVerb.POST
    assert v.querystring == "foo=bar&url=http://dapr.io"


@pytest.mark.parametrize(
    ("name", "method", "query"),
    [
        ("method", "method", ""),
        ("/", "/", ""),
        ("method?foo=bar", "method", "foo=bar"),
        ("method?foo=bar&url=http://dapr.io", "method", "foo=bar&url=http://dapr.io"),
    ],
)
def test_extract_method_and_query(name, method, query):
    assert extract_method_and_query(name) == (method, query)