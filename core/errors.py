# =============================================================================
# core/errors.py  -  Exception Types
# =============================================================================
#
# Only a handful of conditions are ever RAISED in this project.  Everything
# that goes wrong on the VRM side (auth, 404, 429, network trouble) comes
# back as a VRMResponse with ok=False instead: see core/client.py.
#
# The raised ones are:
#   - ConfigError              → bad/missing settings at startup
#   - UnknownToolError         → a tool name that isn't in the operation table
#   - DisallowedPathError      → a resolved path outside the allowlist
#   - ArgumentValidationError  → caller arguments rejected by a schema
#                                (the dispatcher turns this one into a
#                                validation_error envelope)
# =============================================================================


class VRMError(Exception):
    """Base class for every exception raised by this package."""


class ConfigError(VRMError):
    """Configuration is missing or invalid."""


class UnknownToolError(VRMError):
    """Raised when a tool name has no entry in the operation table."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class DisallowedPathError(VRMError):
    """Raised when a resolved remote path does not match the allowlist.

    This is checked before any request is built, so a path that raises this
    never reaches the network.
    """

    def __init__(self, path: str):
        super().__init__(f"Disallowed path: {path}")
        self.path = path


class ArgumentValidationError(VRMError):
    """Caller arguments failed schema validation.

    ``message`` describes the first violated constraint.
    """

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name
        self.message = message
