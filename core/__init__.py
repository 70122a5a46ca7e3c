# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL the VRM logic: configuration, argument schemas,
# the path allowlist, the HTTP client, the operation table and the download
# parser.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP.  The MCP wiring lives in
#   tools/; everything here can be imported and tested in a bare Python
#   process with the network replaced by a fake opener.
# =============================================================================
