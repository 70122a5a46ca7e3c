# =============================================================================
# core/client.py  -  Allowlisted, authenticated GET client for the VRM API
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   VRMClient.get(path, params) is the one door to the network:
#     1. Check the path against the allowlist (raise DisallowedPathError)
#     2. Build the URL + query string
#     3. Send a GET with exactly two headers:
#          X-Authorization: <Token|Bearer> <token>
#          Accept: application/json
#     4. Classify the outcome and wrap it in a VRMResponse
#
# OUTCOME CLASSIFICATION:
#   transport failure  → network_error   (status 0, data None)
#   401 / 403          → auth
#   404                → not_found
#   400 / 422          → bad_request     (uses the body's "message" if any)
#   429                → rate_limited    (meta.rateLimited = True)
#   other non-2xx      → unknown_error
#   2xx                → ok, data = body["records"] if present, else body
#
#   Remote failures are RETURNED, not raised.  Only the allowlist check
#   raises.
#
# TRANSPORT:
#   Plain urllib.request.  The opener is injectable (defaults to
#   urllib.request.urlopen), which is how the tests replace the network.
# =============================================================================

import http.client
import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Callable, Sequence

from core.allowlist import is_allowed_path
from core.config import VRMConfig
from core.errors import DisallowedPathError
from core.models import ErrorCode, ResponseError, ResponseMeta, VRMResponse

logger = logging.getLogger(__name__)

QueryParams = Sequence[tuple[str, Any]]
Opener = Callable[..., Any]

AUTH_FAILED_MESSAGE = "Authentication failed. Please check your VRM_TOKEN."
RATE_LIMITED_MESSAGE = "Rate limited. Please try again later."
BAD_REQUEST_MESSAGE = "Invalid request parameters"


def _decode_body(raw: bytes) -> Any:
    """JSON-decode a response body; keep non-JSON text; empty → None."""
    if not raw or not raw.strip():
        return None
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


def _unwrap_records(body: Any) -> Any:
    # VRM wraps most payloads as {"success": true, "records": ...}
    if isinstance(body, dict) and body.get("records") is not None:
        return body["records"]
    return body


def classify_status(status: int, path: str, body: Any) -> ResponseError:
    """Map a non-2xx HTTP status to an error code and message."""
    if status in (401, 403):
        return ResponseError(ErrorCode.AUTH, AUTH_FAILED_MESSAGE)
    if status == 404:
        return ResponseError(ErrorCode.NOT_FOUND, f"Resource not found: {path}")
    if status in (400, 422):
        message = body.get("message") if isinstance(body, dict) else None
        return ResponseError(ErrorCode.BAD_REQUEST, message or BAD_REQUEST_MESSAGE)
    if status == 429:
        return ResponseError(ErrorCode.RATE_LIMITED, RATE_LIMITED_MESSAGE)
    return ResponseError(ErrorCode.UNKNOWN_ERROR, f"HTTP {status}")


class VRMClient:
    """Thin GET-only client bound to one VRMConfig.

    The client holds no per-call state, so one instance is shared by every
    tool call for the lifetime of the process.
    """

    def __init__(self, config: VRMConfig, opener: Opener | None = None):
        self.config = config
        self._opener = opener or urllib.request.urlopen

    def _headers(self) -> dict[str, str]:
        return {
            "X-Authorization": self.config.authorization,
            "Accept": "application/json",
        }

    def build_url(self, path: str, params: QueryParams | None = None) -> str:
        url = f"{self.config.base_url}{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode([(k, str(v)) for k, v in params])}"
        return url

    def get(self, path: str, params: QueryParams | None = None) -> VRMResponse:
        """Perform one allowlisted GET and return the envelope.

        Args:
            path: Resolved remote path, e.g. ``/installations/123/stats``.
            params: Ordered (name, value) pairs.  Repeated names are kept,
                which is how ``attributeCodes[]`` lists are sent.

        Raises:
            DisallowedPathError: If ``path`` is not in the allowlist.  No
                request is built in that case.
        """
        if not is_allowed_path(path):
            raise DisallowedPathError(path)

        request = urllib.request.Request(
            self.build_url(path, params), headers=self._headers(), method="GET"
        )
        kwargs = {"timeout": self.config.timeout} if self.config.timeout else {}
        started = time.monotonic()

        try:
            with self._opener(request, **kwargs) as response:
                status = response.status
                raw = response.read()
        except urllib.error.HTTPError as exc:
            status = exc.code
            raw = exc.read() or b""
        except (urllib.error.URLError, OSError, http.client.HTTPException) as exc:
            duration_ms = int((time.monotonic() - started) * 1000)
            reason = getattr(exc, "reason", None) or exc
            message = str(reason) or "Network request failed"
            logger.debug("GET %s failed after %dms: %s", path, duration_ms, message)
            return VRMResponse(
                ok=False,
                endpoint=path,
                data=None,
                meta=ResponseMeta(status=0, duration_ms=duration_ms),
                error=ResponseError(ErrorCode.NETWORK_ERROR, message),
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        body = _decode_body(raw)
        logger.debug("GET %s → %d in %dms", path, status, duration_ms)

        if 200 <= status < 300:
            return VRMResponse(
                ok=True,
                endpoint=path,
                data=_unwrap_records({} if body is None else body),
                meta=ResponseMeta(status=status, duration_ms=duration_ms),
            )

        return VRMResponse(
            ok=False,
            endpoint=path,
            data=body,
            meta=ResponseMeta(
                status=status, duration_ms=duration_ms, rate_limited=status == 429
            ),
            error=classify_status(status, path, body),
        )
