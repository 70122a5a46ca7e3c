"""Shared fixtures: a fixed config and a scripted stand-in for urlopen."""

import io
import json
import pathlib
import sys
import urllib.error
from urllib.parse import parse_qsl, urlsplit

import pytest

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from core.client import VRMClient  # noqa: E402
from core.config import VRMConfig  # noqa: E402

BASE_URL = "https://vrm.test/v2"


class FakeResponse:
    def __init__(self, status: int, raw: bytes):
        self.status = status
        self._raw = raw

    def read(self) -> bytes:
        return self._raw

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeOpener:
    """Replays queued responses in order and records every request.

    Queue a status + body (dict/list → JSON, str → text, bytes as-is) or an
    exception to raise.  Non-2xx statuses are raised as HTTPError, the way
    urllib.request.urlopen does.
    """

    def __init__(self):
        self.requests = []
        self.kwargs = []
        self._queue = []

    def queue(self, status: int = 200, body=None) -> "FakeOpener":
        if isinstance(body, (dict, list)):
            raw = json.dumps(body).encode()
        elif isinstance(body, str):
            raw = body.encode()
        else:
            raw = body or b""
        self._queue.append((status, raw))
        return self

    def fail(self, exc: Exception) -> "FakeOpener":
        self._queue.append(exc)
        return self

    def __call__(self, request, **kwargs):
        self.requests.append(request)
        self.kwargs.append(kwargs)
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        status, raw = item
        if status >= 400:
            raise urllib.error.HTTPError(request.full_url, status, "error", None, io.BytesIO(raw))
        return FakeResponse(status, raw)

    # --- helpers for assertions ---
    @property
    def last(self):
        return self.requests[-1]

    def path(self, index: int = -1) -> str:
        return urlsplit(self.requests[index].full_url).path.removeprefix("/v2")

    def query(self, index: int = -1) -> list[tuple[str, str]]:
        return parse_qsl(urlsplit(self.requests[index].full_url).query)


@pytest.fixture
def config() -> VRMConfig:
    return VRMConfig(token="secret-token", base_url=BASE_URL)


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def client(config, opener) -> VRMClient:
    return VRMClient(config, opener=opener)
