"""
Tests for ApiClient: dispatch, failure taxonomy, events, copy-on-write.
"""

import re

import pytest
import requests

from conftest import FakeTransport, json_response
from src.api_client.core.builder import REQUEST_ID_HEADER, REQUEST_DEPTH_HEADER
from src.api_client.core.client import RESPONSE_TIME_HEADER, ApiClient
from src.api_client.core.config import ApiClientConfig
from src.api_client.core.events import REQUEST_FAIL, REQUEST_POST, REQUEST_PRE, EventManager
from src.api_client.core.exceptions import (
    BadResponseError,
    ClientError,
    ConnectionError,
    RequestFailure,
    RuntimeError,
    ServerError,
)
from src.api_client.core.logging.filters import get_correlation_id
from src.api_client.core.message import Request, Response
from src.api_client.core.resource import ApiResource
from src.api_client.cache.memory import MemoryCache


def _requests_response(status: int) -> requests.Response:
    raw = requests.Response()
    raw.status_code = status
    raw._content = b""
    raw.url = "https://api.test/items"
    return raw


class TestClientInit:
    """Test ApiClient construction."""

    def test_default_headers(self, client, transport):
        client.get("/items")
        sent = transport.sent[0]
        assert sent.get_header_line("User-Agent") == "ApiClient"
        assert "application/hal+json" in sent.get_header_line("Accept")
        assert "application/vnd.error+json" in sent.get_header_line("Accept")

    def test_constructor_headers_sent_once(self, root_url, transport):
        client = ApiClient(root_url, {"headers": {"X-Api-Key": "k"}}, transport=transport)
        client.get("/items")
        assert transport.sent[0].get_header("X-Api-Key") == ["k"]

    def test_constructor_options_become_defaults(self, root_url, transport):
        client = ApiClient(root_url, {"query": {"lang": "en"}, "default_ttl": 60}, transport=transport)
        client.get("/items", {"query": {"page": 2}})

        assert transport.sent[0].uri == "https://api.test/items?lang=en&page=2"
        assert client.config.default_ttl == 60
        assert "default_ttl" not in client.config.default_options

    def test_string_default_query_kept(self, root_url, transport):
        client = ApiClient(root_url, {"query": "lang=en"}, transport=transport)
        client.get("/items", {"query": {"page": 2}})

        assert transport.sent[0].uri == "https://api.test/items?lang=en&page=2"

    def test_nested_query_uses_brackets(self, client, transport):
        client.get("/items", {"query": {"filter": {"status": "open"}}})
        assert transport.sent[0].uri == "https://api.test/items?filter%5Bstatus%5D=open"

    def test_config_and_options_combined(self, transport):
        config = ApiClientConfig.create("https://api.test/", headers={"X-A": "1"}, default_ttl=30)
        client = ApiClient(config=config, options={"headers": {"X-B": "2"}}, transport=transport)

        assert client.config.default_ttl == 30
        assert client.get_header("X-A") == ["1"]
        assert client.get_header("X-B") == ["2"]

    def test_root_url(self, client):
        assert client.root_url == "https://api.test/"

    def test_is_immutable(self, client):
        with pytest.raises(AttributeError):
            client._config = None

    def test_context_manager_closes_transport(self, root_url):
        transport = FakeTransport()
        with ApiClient(root_url, transport=transport):
            pass
        assert transport.closed is True

    def test_default_transport(self, root_url):
        from src.api_client.core.transport import RequestsTransport

        client = ApiClient(root_url)
        assert isinstance(client.transport, RequestsTransport)
        client.close()


class TestVerbs:
    """Test verb helpers."""

    @pytest.mark.parametrize("verb,method", [
        ("get", "GET"),
        ("post", "POST"),
        ("put", "PUT"),
        ("patch", "PUT"),
        ("delete", "DELETE"),
    ])
    def test_verb_method(self, client, transport, verb, method):
        getattr(client, verb)("/items/1")
        assert transport.sent[0].method == method
        assert transport.sent[0].uri == "https://api.test/items/1"

    def test_post_json_body(self, client, transport):
        client.post("/items", {"body": {"name": "x"}})
        sent = transport.sent[0]
        assert sent.body == b'{"name":"x"}'
        assert sent.get_header_line("Content-Type") == "application/json"

    def test_create_request_matches_sent(self, client, transport):
        options = {"query": {"a": 1}, "headers": {"X-A": "1"}, "add_request_id": True}
        built = client.create_request("GET", "/items", options)
        client.request("GET", "/items", options)
        assert transport.sent[0] == built


class TestResponseHandling:
    """Test status policy and result shaping."""

    def test_returns_resource(self, root_url):
        transport = FakeTransport([json_response(200, b'{"id": 1, "_links": {"self": {"href": "/items/1"}}}')])
        client = ApiClient(root_url, transport=transport)

        resource = client.get("/items/1")

        assert isinstance(resource, ApiResource)
        assert resource["id"] == 1
        assert resource.get_link("self") == {"href": "/items/1"}

    @pytest.mark.parametrize("status", [200, 204, 301, 399])
    def test_success_boundaries(self, root_url, status):
        client = ApiClient(root_url, transport=FakeTransport([Response(status)]))
        assert client.get("/items") is not None

    @pytest.mark.parametrize("status", [100, 199, 400, 404, 500, 503])
    def test_bad_response(self, root_url, status):
        response = Response(status, body=b"{}")
        client = ApiClient(root_url, transport=FakeTransport([response]))

        with pytest.raises(BadResponseError) as exc_info:
            client.get("/items")

        assert exc_info.value.response is response
        assert exc_info.value.status_code == status
        assert exc_info.value.request.uri == "https://api.test/items"

    def test_bad_response_message(self, root_url):
        client = ApiClient(root_url, transport=FakeTransport([Response(404)]))
        with pytest.raises(BadResponseError, match="HTTP 404 Not Found"):
            client.get("/items")

    def test_http_errors_disabled(self, root_url):
        transport = FakeTransport([json_response(404, b'{"message": "missing"}', "application/vnd.error+json")])
        client = ApiClient(root_url, transport=transport)

        resource = client.get("/items", {"http_errors": False})

        assert resource.is_error_resource()
        assert resource["message"] == "missing"

    def test_http_errors_disabled_by_default_options(self, root_url):
        client = ApiClient(root_url, {"http_errors": False}, transport=FakeTransport([Response(500)]))
        assert client.get("/items") is not None

    def test_raw_response(self, root_url):
        response = json_response()
        client = ApiClient(root_url, transport=FakeTransport([response]))

        assert client.get("/items", {"raw_response": True}) is None
        assert client.response is response

    def test_last_response_recorded(self, root_url):
        response = Response(404)
        client = ApiClient(root_url, transport=FakeTransport([response]))
        with pytest.raises(BadResponseError):
            client.get("/items")
        assert client.response is response

    def test_custom_resource_factory(self, root_url):
        client = ApiClient(
            root_url,
            transport=FakeTransport([json_response(200, b'{"a": 1}')]),
            resource_factory=lambda response: response.json(),
        )
        assert client.get("/items") == {"a": 1}

    def test_response_time_header(self, root_url):
        client = ApiClient(root_url, transport=FakeTransport([json_response()]))
        client.get("/items", {"add_request_time": True})
        assert re.match(r"^\d+\.\d{2}ms$", client.response.get_header_line(RESPONSE_TIME_HEADER))

    def test_no_response_time_by_default(self, client):
        client.get("/items")
        assert not client.response.has_header(RESPONSE_TIME_HEADER)

    def test_add_response_time_replaces(self):
        response = Response(200, {RESPONSE_TIME_HEADER: "1.00ms"})
        assert ApiClient.add_response_time(response, 12.3456).get_header(RESPONSE_TIME_HEADER) == ["12.35ms"]


class TestFailureTaxonomy:
    """Test transport failure classification."""

    @pytest.mark.parametrize("exc,expected", [
        (requests.exceptions.ConnectionError("refused"), ConnectionError),
        (requests.exceptions.ConnectTimeout("timeout"), ConnectionError),
        (requests.exceptions.ReadTimeout("timeout"), ConnectionError),
        (requests.exceptions.HTTPError("404", response=_requests_response(404)), ClientError),
        (requests.exceptions.HTTPError("503", response=_requests_response(503)), ServerError),
        (ValueError("boom"), RuntimeError),
    ])
    def test_classification(self, root_url, exc, expected):
        client = ApiClient(root_url, transport=FakeTransport([exc]))

        with pytest.raises(expected) as exc_info:
            client.get("/items")

        assert exc_info.value.__cause__ is exc
        assert exc_info.value.request.uri == "https://api.test/items"

    def test_runtime_error_status(self, root_url):
        client = ApiClient(root_url, transport=FakeTransport([KeyError("x")]))
        with pytest.raises(RuntimeError) as exc_info:
            client.get("/items")
        assert exc_info.value.status_code == 500

    def test_client_error_keeps_response(self, root_url):
        exc = requests.exceptions.HTTPError("404", response=_requests_response(404))
        client = ApiClient(root_url, transport=FakeTransport([exc]))
        with pytest.raises(ClientError) as exc_info:
            client.get("/items")
        assert exc_info.value.status_code == 404
        assert exc_info.value.response.status_code == 404

    def test_classified_failure_passes_through(self, root_url):
        error = ServerError("upstream down", status_code=502)
        client = ApiClient(root_url, transport=FakeTransport([error]))

        with pytest.raises(ServerError) as exc_info:
            client.get("/items")

        assert exc_info.value is error
        assert error.request is not None

    def test_all_failures_share_base(self, root_url):
        client = ApiClient(root_url, transport=FakeTransport([OSError("x")]))
        with pytest.raises(RequestFailure):
            client.get("/items")

    def test_no_retries(self, root_url):
        transport = FakeTransport([requests.exceptions.ConnectionError("x"), json_response()])
        client = ApiClient(root_url, transport=transport)
        with pytest.raises(ConnectionError):
            client.get("/items")
        assert len(transport.sent) == 1


class TestEvents:
    """Test lifecycle notifications."""

    def test_pre_and_post(self, root_url):
        events = EventManager()
        seen = []
        events.attach(REQUEST_PRE, lambda e: seen.append((e.name, e.params["request"].uri)))
        events.attach(REQUEST_POST, lambda e: seen.append((e.name, e.params["response"].status_code)))
        client = ApiClient(root_url, transport=FakeTransport(), events=events)

        client.get("/items")

        assert seen == [(REQUEST_PRE, "https://api.test/items"), (REQUEST_POST, 200)]

    def test_fail_on_transport_error(self, root_url):
        events = EventManager()
        errors = []
        events.attach(REQUEST_FAIL, lambda e: errors.append(e.params["error"]))
        client = ApiClient(root_url, transport=FakeTransport([requests.exceptions.ConnectionError()]), events=events)

        with pytest.raises(ConnectionError) as exc_info:
            client.get("/items")

        assert errors == [exc_info.value]

    def test_fail_on_bad_response(self, root_url):
        events = EventManager()
        names = []
        for name in (REQUEST_PRE, REQUEST_POST, REQUEST_FAIL):
            events.attach(name, lambda e: names.append(e.name))
        client = ApiClient(root_url, transport=FakeTransport([Response(500)]), events=events)

        with pytest.raises(BadResponseError):
            client.get("/items")

        assert names == [REQUEST_PRE, REQUEST_POST, REQUEST_FAIL]

    def test_event_target_is_client(self, root_url):
        events = EventManager()
        targets = []
        events.attach(REQUEST_PRE, lambda e: targets.append(e.target))
        client = ApiClient(root_url, transport=FakeTransport(), events=events)
        client.get("/items")
        assert targets == [client]

    def test_failing_listener_does_not_break_request(self, root_url):
        events = EventManager()

        def broken(event):
            raise ValueError("listener bug")

        events.attach(REQUEST_PRE, broken)
        client = ApiClient(root_url, transport=FakeTransport(), events=events)
        assert client.get("/items") is not None


class TestCopyOnWrite:
    """Test with_* mutators."""

    def test_with_header(self, client, transport):
        other = client.with_header("X-Tenant", "a")

        assert other is not client
        assert other.get_header("X-Tenant") == ["a"]
        assert client.get_header("X-Tenant") == []

    def test_with_header_replaces(self, client):
        other = client.with_header("User-Agent", "Custom/1.0")
        assert other.get_header("user-agent") == ["Custom/1.0"]
        assert client.get_header("User-Agent") == ["ApiClient"]

    def test_with_root_url(self, client, transport):
        other = client.with_root_url("https://other.test/v2/")
        other.get("items")

        assert client.root_url == "https://api.test/"
        assert other.root_url == "https://other.test/v2/"
        assert transport.sent[-1].uri == "https://other.test/v2/items"

    def test_with_transport(self, client):
        new_transport = FakeTransport()
        other = client.with_transport(new_transport)
        assert other.transport is new_transport
        assert client.transport is not new_transport

    def test_transport_cloned(self, client):
        other = client.with_header("X-A", "1")
        assert other.transport is not client.transport

    def test_with_cache(self, client):
        cache = MemoryCache()
        other = client.with_cache(cache)
        assert other.cache is cache
        assert client.cache is None

    def test_set_extra_returns_self(self, client):
        assert client.set_extra({"tenant": "a"}) is client
        assert client.extra == {"tenant": "a"}


class TestServiceHeaders:
    """Test request id / depth through the client."""

    def test_request_id_from_constructor(self, root_url, transport):
        client = ApiClient(root_url, {"request_id": "process-id", "add_request_id": True}, transport=transport)
        client.get("/items")
        assert transport.sent[0].get_header_line(REQUEST_ID_HEADER) == "process-id"

    def test_request_id_generated(self, client, transport):
        client.get("/items", {"add_request_id": True})
        assert transport.sent[0].get_header_line(REQUEST_ID_HEADER) == "generated-id"

    def test_request_depth(self, client, transport):
        client.get("/items", {"add_request_depth": True, "headers": {REQUEST_DEPTH_HEADER: "1"}})
        assert transport.sent[0].get_header(REQUEST_DEPTH_HEADER) == ["2"]

    def test_add_request_id_helper(self, client):
        request = client.add_request_id(Request("GET", "/"))
        assert request.get_header_line(REQUEST_ID_HEADER) == "generated-id"

    def test_correlation_id_cleared_after_request(self, client):
        seen = []
        client.events.attach(REQUEST_PRE, lambda e: seen.append(get_correlation_id()))
        client.get("/items", {"add_request_id": True})
        assert seen == ["generated-id"]
        assert get_correlation_id() is None
