# =============================================================================
# core/__init__.py
# =============================================================================
# Business logic for the Perplexity search bridge.
#
# Nothing in this package imports FastMCP or MCP types.  The bridge returns
# plain Success/Failure values; tools/ turns them into protocol messages.
# =============================================================================

__version__ = "1.0.0"
