# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool wrappers.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between MCP and core/.  Each tool:
#     1. Advertises its argument schema (so the MCP client knows WHAT to pass)
#     2. Hands the raw arguments to core.operations.dispatch()
#     3. Returns the response envelope as structured content, or raises
#        ToolError with a tool_error envelope for a thrown error
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT build URLs or talk HTTP (core/client.py does)
#   - They do NOT validate arguments (core/schemas.py does)
# =============================================================================
