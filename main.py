# =============================================================================
# main.py  -  Entry Point for the VRM read-only MCP server
# =============================================================================
#
# HOW TO RUN:
#   VRM_TOKEN=... python main.py
#   (or put VRM_TOKEN in a .env file next to this one)
#
# WHAT HAPPENS:
#   1. Loads .env into the environment (python-dotenv)
#   2. Reads VRM_TOKEN / VRM_BASE_URL / VRM_TOKEN_KIND (core/config.py)
#      → exits with an error right away if the token is missing
#   3. Builds the VRM client and starts the FastMCP server on stdio
#
# An MCP client (Claude Desktop, an agent framework, the MCP inspector...)
# launches this script as a subprocess and talks to it over stdin/stdout.
# =============================================================================

import sys

from dotenv import load_dotenv

# Load environment variables from .env file (VRM_TOKEN, etc.)
# This must happen BEFORE the configuration is read.
load_dotenv()

from core.config import load_config
from core.errors import ConfigError
from tools.mcp_server import serve


def main() -> int:
    try:
        config = load_config()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    serve(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
