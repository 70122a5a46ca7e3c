# =============================================================================
# core/config.py  -  Settings for the VRM connection
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads the VRM connection settings from the environment and freezes them
#   into a VRMConfig.  main.py calls load_dotenv() first, so a local .env
#   file works too.
#
# ENVIRONMENT VARIABLES:
#   VRM_TOKEN        (required) access token from the VRM portal
#   VRM_BASE_URL     default https://vrmapi.victronenergy.com/v2
#   VRM_TOKEN_KIND   "Token" (default) or "Bearer"
#   VRM_TIMEOUT      optional request timeout in seconds
#   VRM_LOG_LEVEL    default INFO
#
# A missing token is a startup error: load_config() raises ConfigError and
# the server never starts.  It is not deferred to the first tool call.
# =============================================================================

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping

from core.errors import ConfigError


DEFAULT_BASE_URL = "https://vrmapi.victronenergy.com/v2"
DEFAULT_TOKEN_KIND = "Token"
TOKEN_KINDS = ("Token", "Bearer")


@dataclass(frozen=True)
class VRMConfig:
    """Immutable connection settings, shared by every tool call."""

    token: str = field(repr=False)      # Never shows up in logs or reprs
    base_url: str = DEFAULT_BASE_URL
    token_kind: str = DEFAULT_TOKEN_KIND
    timeout: float | None = None        # None → transport default
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.token or not self.token.strip():
            raise ConfigError("VRM_TOKEN environment variable is required")
        if self.token_kind not in TOKEN_KINDS:
            raise ConfigError(
                f"VRM_TOKEN_KIND must be one of {', '.join(TOKEN_KINDS)}, "
                f"got {self.token_kind!r}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError(f"VRM_TIMEOUT must be positive, got {self.timeout}")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError(f"VRM_LOG_LEVEL is not a logging level: {self.log_level!r}")
        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def authorization(self) -> str:
        """Value of the X-Authorization header, e.g. ``Token abc123``."""
        return f"{self.token_kind} {self.token}"


def load_config(environ: Mapping[str, str] | None = None) -> VRMConfig:
    """Build a VRMConfig from environment variables.

    Args:
        environ: Mapping to read from.  Defaults to ``os.environ``.

    Raises:
        ConfigError: If VRM_TOKEN is missing, or another value is invalid.
    """
    env = os.environ if environ is None else environ

    timeout_raw = env.get("VRM_TIMEOUT", "").strip()
    timeout = None
    if timeout_raw:
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ConfigError(f"VRM_TIMEOUT must be a number, got {timeout_raw!r}") from None

    return VRMConfig(
        token=env.get("VRM_TOKEN", "").strip(),
        base_url=env.get("VRM_BASE_URL", "").strip() or DEFAULT_BASE_URL,
        token_kind=env.get("VRM_TOKEN_KIND", "").strip() or DEFAULT_TOKEN_KIND,
        timeout=timeout,
        log_level=env.get("VRM_LOG_LEVEL", "").strip().upper() or "INFO",
    )
