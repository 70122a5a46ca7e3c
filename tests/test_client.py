"""VRMClient: allowlist gate, request shape and outcome classification."""

import http.client
import urllib.error

import pytest

from core.client import VRMClient
from core.config import VRMConfig
from core.errors import DisallowedPathError
from core.models import ErrorCode


def test_disallowed_path_raises_before_any_request(client, opener):
    with pytest.raises(DisallowedPathError, match="/invalid/path"):
        client.get("/invalid/path")
    assert opener.requests == []


def test_request_carries_only_auth_and_accept_headers(client, opener):
    opener.queue(200, {"success": True, "user": {"id": 1}})
    client.get("/users/me")

    request = opener.last
    assert request.get_method() == "GET"
    assert request.data is None
    assert request.full_url == "https://vrm.test/v2/users/me"
    assert dict(request.header_items()) == {
        "X-authorization": "Token secret-token",
        "Accept": "application/json",
    }


def test_bearer_token_kind(opener):
    client = VRMClient(VRMConfig(token="t", token_kind="Bearer"), opener=opener)
    opener.queue(200, {})
    client.get("/users/me")
    assert opener.last.get_header("X-authorization") == "Bearer t"


def test_timeout_passed_only_when_configured(opener):
    opener.queue(200, {}).queue(200, {})
    VRMClient(VRMConfig(token="t"), opener=opener).get("/users/me")
    VRMClient(VRMConfig(token="t", timeout=5), opener=opener).get("/users/me")
    assert opener.kwargs == [{}, {"timeout": 5}]


def test_repeated_query_params_keep_order(client, opener):
    opener.queue(200, {"records": []})
    client.get(
        "/installations/1/overallstats",
        [("attributeCodes[]", "Pb"), ("attributeCodes[]", "Pc"), ("attributeCodes[]", "kwh")],
    )
    assert "attributeCodes%5B%5D=Pb&attributeCodes%5B%5D=Pc&attributeCodes%5B%5D=kwh" in opener.last.full_url


def test_success_unwraps_records(client, opener):
    opener.queue(200, {"success": True, "records": [{"idSite": 1}]})
    response = client.get("/users/1/installations")

    assert response.ok
    assert response.error is None
    assert response.data == [{"idSite": 1}]
    assert response.endpoint == "/users/1/installations"
    assert response.meta.status == 200
    assert response.meta.rate_limited is False
    assert response.source == "vrm"


def test_success_without_records_returns_whole_body(client, opener):
    opener.queue(200, {"success": True, "user": {"id": 3}})
    assert client.get("/users/me").data == {"success": True, "user": {"id": 3}}


def test_empty_success_body_becomes_empty_dict(client, opener):
    opener.queue(200, b"")
    assert client.get("/users/me").data == {}


def test_non_json_success_body_kept_as_text(client, opener):
    opener.queue(200, "aGVsbG8=")
    assert client.get("/installations/1/data-download").data == "aGVsbG8="


@pytest.mark.parametrize(
    "status,code",
    [
        (401, ErrorCode.AUTH),
        (403, ErrorCode.AUTH),
        (404, ErrorCode.NOT_FOUND),
        (400, ErrorCode.BAD_REQUEST),
        (422, ErrorCode.BAD_REQUEST),
        (429, ErrorCode.RATE_LIMITED),
        (500, ErrorCode.UNKNOWN_ERROR),
        (503, ErrorCode.UNKNOWN_ERROR),
    ],
)
def test_status_classification(client, opener, status, code):
    opener.queue(status, {"success": False})
    response = client.get("/installations/9/stats")

    assert not response.ok
    assert response.error.code is code
    assert response.meta.status == status
    assert response.meta.rate_limited is (status == 429)
    assert response.data == {"success": False}


def test_auth_message(client, opener):
    opener.queue(401, {})
    assert "Authentication failed" in client.get("/users/me").error.message


def test_not_found_message_includes_path(client, opener):
    opener.queue(404, b"")
    response = client.get("/installations/9/tags")
    assert response.error.message == "Resource not found: /installations/9/tags"
    assert response.data is None


def test_bad_request_uses_remote_message(client, opener):
    opener.queue(422, {"success": False, "message": "start must be before end"})
    assert client.get("/installations/9/stats").error.message == "start must be before end"


def test_bad_request_generic_message(client, opener):
    opener.queue(400, {"success": False})
    assert client.get("/installations/9/stats").error.message == "Invalid request parameters"


def test_rate_limited(client, opener):
    opener.queue(429, {})
    response = client.get("/installations/9/stats")
    assert response.error.code is ErrorCode.RATE_LIMITED
    assert response.meta.rate_limited is True


def test_other_status_message(client, opener):
    opener.queue(502, b"Bad Gateway")
    response = client.get("/installations/9/stats")
    assert response.error.message == "HTTP 502"
    assert response.data == "Bad Gateway"


@pytest.mark.parametrize(
    "exc,message",
    [
        (urllib.error.URLError("Name or service not known"), "Name or service not known"),
        (ConnectionRefusedError("Connection refused"), "Connection refused"),
        (TimeoutError("timed out"), "timed out"),
        (http.client.RemoteDisconnected("Remote end closed connection"), "Remote end closed connection"),
    ],
)
def test_network_errors(client, opener, exc, message):
    opener.fail(exc)
    response = client.get("/users/me")

    assert not response.ok
    assert response.error.code is ErrorCode.NETWORK_ERROR
    assert response.error.message == message
    assert response.meta.status == 0
    assert response.data is None


def test_envelope_serialization(client, opener):
    opener.queue(429, {})
    out = client.get("/users/me").to_dict()

    assert set(out) == {"ok", "source", "endpoint", "requestId", "fetchedAt", "data", "meta", "error"}
    assert out["meta"] == {"status": 429, "durationMs": out["meta"]["durationMs"], "rateLimited": True}
    assert out["error"] == {"code": "rate_limited", "message": "Rate limited. Please try again later."}
    assert out["fetchedAt"].endswith("Z")


def test_request_ids_are_unique(client, opener):
    opener.queue(200, {}).queue(200, {})
    assert client.get("/users/me").request_id != client.get("/users/me").request_id
