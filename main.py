# =============================================================================
# main.py  —  Entry Point for the Perplexity Search MCP Server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py
#
# WHAT HAPPENS:
#   1. Loads .env (PERPLEXITY_API_KEY and friends)
#   2. Builds the ToolBridge from those settings (core/bridge.py)
#   3. Serves the perplexity_search tool over MCP stdio (tools/mcp_server.py)
#
# Point any MCP client at this command, e.g.:
#   {"command": "uv", "args": ["run", "python", "/path/to/main.py"]}
# =============================================================================

from tools.mcp_server import main

if __name__ == "__main__":
    main()
