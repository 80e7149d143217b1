# =============================================================================
# tools/__init__.py
# =============================================================================
# FastMCP wrappers around core.bridge.ToolBridge.
#
# Each tool here logs the call, delegates to ToolBridge.invoke(), and maps a
# Failure onto an MCP structured error.  No search logic lives here.
# =============================================================================
