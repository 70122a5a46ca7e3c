# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Registers every VRM operation as an MCP tool.  Each tool is a thin
#   wrapper: it hands the caller's raw arguments to
#   core.operations.dispatch() and returns the envelope as a dict.
#
# HOW IT WORKS (the flow):
#   1. An MCP client calls a tool by name (e.g. "vrm_get_stats")
#   2. FastMCP routes the call to that tool's VRMTool.run()
#   3. _run() drops null arguments and calls dispatch()
#   4. dispatch() validates, resolves the path, calls VRM, shapes the result
#   5. The client receives the envelope:
#        {ok, source, endpoint, requestId, fetchedAt, data, meta, error?}
#
# ERRORS:
#   dispatch() returns remote failures and validation failures as envelopes;
#   those are normal tool results.  It RAISES for an unknown tool and for a
#   path outside the allowlist.  _run() turns those (and anything
#   unexpected) into a ToolError whose text is a tool_error envelope, so the
#   client gets an error-flagged result with the same shape inside.
#
# TOOL NAMING:
#   vrm_get_* / vrm_list_* / vrm_search_* / vrm_download_*: all read-only.
#   Parameter names match the VRM API (siteId, attributeCodes, ...).
#
# RUNNING THIS SERVER:
#     a) python main.py
#     b) python -m tools.mcp_server
#   Both read VRM_TOKEN (and friends) first and refuse to start without it.
# =============================================================================

import json
import logging
import sys
from typing import Any, Literal

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import Tool, ToolResult

from core.client import Opener, VRMClient
from core.config import VRMConfig, load_config
from core.errors import ConfigError, VRMError
from core.models import ErrorCode, VRMResponse
from core.operations import OPERATIONS, Operation, dispatch

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because the MCP server talks to its client over STDOUT
# (stdio transport).  Anything printed to stdout would corrupt the protocol.
#
# ANSI colours:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for response JSON
#     - YELLOW for intermediate status messages
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses (JSON output)
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color

_MAX_LOGGED_RESPONSE = 2000  # chars; CSV downloads can be large

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON in GREEN, then return it."""
    text = json.dumps(result, separators=(",", ":"), default=str)
    if len(text) > _MAX_LOGGED_RESPONSE:
        text = f"{text[:_MAX_LOGGED_RESPONSE]}... ({len(text)} chars)"
    logging.info(f"{_GREEN}  ← {tool_name} response: {text}{_RESET}")
    return result


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP("vrm-readonly")

# Set once by configure() at startup, then only read.
_client: VRMClient | None = None


def configure(config: VRMConfig, opener: Opener | None = None) -> VRMClient:
    """Bind the tools to a VRM client built from ``config``."""
    global _client
    _client = VRMClient(config, opener=opener)
    logging.getLogger().setLevel(config.log_level)
    _log_status(f"VRM client ready: {config.base_url} ({config.token_kind} auth)")
    return _client


def _get_client() -> VRMClient:
    if _client is None:
        raise ConfigError("VRM client is not configured; call configure() at startup")
    return _client


def _run(tool_name: str, arguments: dict | None = None) -> dict:
    """Dispatch one tool call and return its envelope as a dict.

    Arguments sent as null are dropped before validation, the same as
    leaving them out, so they never show up in the query string.

    Raises:
        ToolError: Carrying the tool_error envelope as JSON, for an unknown
            tool, a path outside the allowlist, a missing client or any
            unexpected exception.  FastMCP turns it into an error-flagged
            result.
    """
    arguments = {k: v for k, v in (arguments or {}).items() if v is not None}
    _log_request(tool_name, **arguments)

    try:
        response = dispatch(_get_client(), tool_name, arguments)
    except VRMError as e:
        _log_status(f"{type(e).__name__}: {e}")
        raise _tool_error(tool_name, str(e)) from e
    except Exception as e:
        logging.exception(f"{tool_name} failed unexpectedly")
        raise _tool_error(tool_name, str(e) or type(e).__name__) from e

    if response.ok:
        _log_status(f"HTTP {response.meta.status} in {response.meta.duration_ms}ms")
    else:
        _log_status(f"{response.error.code.value}: {response.error.message}")
    if response.meta.note:
        _log_status(f"note: {response.meta.note}")
    return _log_response(tool_name, response.to_dict())


def _tool_error(tool_name: str, message: str) -> ToolError:
    envelope = VRMResponse.local_failure(ErrorCode.TOOL_ERROR, message).to_dict()
    return ToolError(json.dumps(_log_response(tool_name, envelope)))


# =============================================================================
# Tool registration
# =============================================================================
# Every entry of core.operations.OPERATIONS becomes one VRMTool.  The tool's
# input schema is the pydantic model's JSON schema, so clients see the same
# field names, enums and bounds that core.schemas enforces.
#
# VRMTool.run() hands the arguments to _run() untouched.  FastMCP does not
# coerce or check them first, so core.schemas is the only validator and a
# bad argument comes back as a validation_error envelope, not a protocol
# error.
# =============================================================================
class VRMTool(Tool):
    """An MCP tool backed by one entry of the operation table."""

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        return ToolResult(structured_content=_run(self.name, arguments))


def _register(operation: Operation) -> VRMTool:
    tool = VRMTool(
        name=operation.name,
        description=operation.description,
        parameters=operation.schema.model_json_schema(),
    )
    mcp.add_tool(tool)
    return tool


for _operation in OPERATIONS.values():
    _register(_operation)


def serve(config: VRMConfig | None = None, transport: Literal["stdio", "http", "sse"] = "stdio") -> None:
    """Load configuration, bind the client, and run the server.

    Raises:
        ConfigError: Before the server starts, if VRM_TOKEN is missing.
    """
    configure(config or load_config())
    mcp.run(transport=transport)


# =============================================================================
# Server entry point
# =============================================================================
# python -m tools.mcp_server  → stdio server (same as main.py)
# =============================================================================
if __name__ == "__main__":
    load_dotenv()
    serve()
