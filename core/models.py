# =============================================================================
# core/models.py  -  Data Models (the response envelope)
# =============================================================================
#
# Every tool in this server returns the SAME shape, whether the VRM call
# succeeded, the remote side refused it, or the arguments never made it past
# validation.  That shape is VRMResponse.
#
#   {
#     "ok": true,
#     "source": "vrm",
#     "endpoint": "/installations/12345/stats",
#     "requestId": "6f0c...",
#     "fetchedAt": "2026-01-01T12:00:00.000Z",
#     "data": {...},
#     "meta": {"status": 200, "durationMs": 143, "rateLimited": false},
#     "error": {"code": "...", "message": "..."}      ← only when ok is false
#   }
#
# The dataclasses use Python names internally; to_dict() produces the
# camelCase wire shape above.
# =============================================================================

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


SOURCE = "vrm"


class ErrorCode(str, Enum):
    """Error taxonomy carried in ``error.code``."""

    AUTH = "auth"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    RATE_LIMITED = "rate_limited"
    USER_FETCH_FAILED = "user_fetch_failed"
    NETWORK_ERROR = "network_error"
    VALIDATION_ERROR = "validation_error"
    TOOL_ERROR = "tool_error"
    UNKNOWN_ERROR = "unknown_error"


def iso_timestamp(moment: datetime) -> str:
    """Render an aware datetime as ISO-8601 UTC with milliseconds and a Z."""
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def iso_from_epoch_ms(epoch_ms: int) -> str:
    """Render epoch milliseconds as ISO-8601 UTC (``...Z``)."""
    return iso_timestamp(datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc))


def utc_now_iso() -> str:
    return iso_timestamp(datetime.now(timezone.utc))


def new_request_id() -> str:
    return str(uuid.uuid4())


@dataclass
class ResponseMeta:
    """Transport facts about a single call."""

    status: int                         # HTTP status, 0 when no response arrived
    duration_ms: int                    # Wall-clock time spent on the call
    rate_limited: bool = False          # True only for HTTP 429
    note: str | None = None             # Advisory text attached by the dispatcher

    def to_dict(self) -> dict:
        out = {
            "status": self.status,
            "durationMs": self.duration_ms,
            "rateLimited": self.rate_limited,
        }
        if self.note is not None:
            out["note"] = self.note
        return out


@dataclass
class ResponseError:
    code: ErrorCode
    message: str

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": self.message}


@dataclass
class VRMResponse:
    """The uniform result of one tool call.

    ``data`` holds the remote body on success (with a top-level ``records``
    field unwrapped) and the raw error body, or None, on failure.
    ``error`` is set exactly when ``ok`` is False.
    """

    ok: bool
    endpoint: str | None
    data: Any
    meta: ResponseMeta
    error: ResponseError | None = None
    source: str = SOURCE
    request_id: str = field(default_factory=new_request_id)
    fetched_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def local_failure(cls, code: ErrorCode, message: str) -> "VRMResponse":
        """Build a failure envelope for errors raised before any HTTP call.

        Used for validation_error and tool_error: there is no endpoint, no
        status and no remote body.
        """
        return cls(
            ok=False,
            endpoint=None,
            data=None,
            meta=ResponseMeta(status=0, duration_ms=0),
            error=ResponseError(code, message),
        )

    def to_dict(self) -> dict:
        out = {
            "ok": self.ok,
            "source": self.source,
            "endpoint": self.endpoint,
            "requestId": self.request_id,
            "fetchedAt": self.fetched_at,
            "data": self.data,
            "meta": self.meta.to_dict(),
        }
        if self.error is not None:
            out["error"] = self.error.to_dict()
        return out
