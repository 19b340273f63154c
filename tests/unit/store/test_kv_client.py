"""Unit tests for the KV REST client, against an httpx mock transport."""

from __future__ import annotations

import json

import httpx
import pytest

from pulse.errors import BackendIOError
from pulse.store import RemoteListStore
from pulse.store.kv import KVRestClient

URL = "https://kv.example.com"
TOKEN = "tok-123"


class _Recorder:
    def __init__(self, reply=None, status=200) -> None:
        self.requests = []
        self.reply = reply if reply is not None else {"result": "OK"}
        self.status = status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.reply)


def _client(handler) -> KVRestClient:
    return KVRestClient(URL, TOKEN, transport=httpx.MockTransport(handler))


def test_lpush_posts_command_with_bearer_token() -> None:
    recorder = _Recorder({"result": 1})

    assert _client(recorder).lpush("submissions", '{"id": "1"}') == 1

    request = recorder.requests[0]
    assert request.url.host == "kv.example.com"
    assert request.url.path in ("", "/")
    assert request.headers["Authorization"] == f"Bearer {TOKEN}"
    assert json.loads(request.content) == ["LPUSH", "submissions", '{"id": "1"}']


def test_lrange_returns_result_list() -> None:
    recorder = _Recorder({"result": ['{"id": "2"}', '{"id": "1"}']})

    items = _client(recorder).lrange("submissions")

    assert items == ['{"id": "2"}', '{"id": "1"}']
    assert json.loads(recorder.requests[0].content) == ["LRANGE", "submissions", 0, -1]


def test_lrange_of_missing_key_is_empty() -> None:
    assert _client(_Recorder({"result": None})).lrange("submissions") == []


def test_replace_list_runs_one_transaction() -> None:
    recorder = _Recorder([{"result": 1}, {"result": 2}])

    _client(recorder).replace_list("submissions", ["b", "a"])

    request = recorder.requests[0]
    assert request.url.path == "/multi-exec"
    assert json.loads(request.content) == [["DEL", "submissions"], ["RPUSH", "submissions", "b", "a"]]


def test_replace_list_with_nothing_left_only_deletes() -> None:
    recorder = _Recorder([{"result": 1}])

    _client(recorder).replace_list("submissions", [])

    assert json.loads(recorder.requests[0].content) == [["DEL", "submissions"]]


def test_error_payload_raises_backend_error() -> None:
    with pytest.raises(BackendIOError, match="WRONGTYPE"):
        _client(_Recorder({"error": "WRONGTYPE Operation against a key"})).lrange("submissions")


def test_http_failure_raises_backend_error() -> None:
    with pytest.raises(BackendIOError, match="401"):
        _client(_Recorder({"error": "Unauthorized"}, status=401)).lrange("submissions")


def test_transaction_error_raises_backend_error() -> None:
    recorder = _Recorder([{"result": 1}, {"error": "ERR out of memory"}])

    with pytest.raises(BackendIOError, match="RPUSH"):
        _client(recorder).replace_list("submissions", ["a"])


def test_transport_error_does_not_leak_token() -> None:
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendIOError) as excinfo:
        _client(handler).lpush("submissions", "{}")

    assert TOKEN not in str(excinfo.value)
    assert "ConnectError" in str(excinfo.value)


def test_remote_store_over_rest_client_round_trip() -> None:
    """LPUSH then LRANGE through the real client yields oldest-first records."""
    stored = []

    def handler(request):
        body = json.loads(request.content)
        if body[0] == "LPUSH":
            stored.insert(0, body[2])
            return httpx.Response(200, json={"result": len(stored)})
        return httpx.Response(200, json={"result": list(stored)})

    store = RemoteListStore(_client(handler), "submissions")
    first = store.append({"name": "Anna"})
    second = store.append({"name": "Matt"})

    assert [r["id"] for r in store.list()] == [first, second]
