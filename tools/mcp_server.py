# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (stdio transport)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Serves the ToolBridge's capabilities over MCP.  FastMCP hosts the server
#   (stdio transport, initialize handshake, in-memory client for tests), but
#   the two tool requests are answered straight from the bridge:
#
#     tools/list  →  bridge.list_capabilities(), schemas as registered
#     tools/call  →  bridge.handle(InvocationRequest(name, arguments))
#
#   Arguments are forwarded untouched, so unknown names and bad arguments
#   are judged by the bridge, not by FastMCP.
#
# RESULT TRANSLATION:
#     Success  →  CallToolResult with the bridge's text blocks
#     Failure  →  McpError(ErrorData(code, message)), which the low-level
#                 server sends back as a JSON-RPC error response
#
#   This is the ONLY place where a Failure becomes a protocol error.
#
# RUNNING THIS SERVER:
#     a) python main.py
#     b) python -m tools.mcp_server
#     c) perplexity-search-mcp        (console script from pyproject.toml)
#   In every case the server speaks MCP on stdin/stdout until the client
#   disconnects.
# =============================================================================

import json
import logging
import sys

from dotenv import load_dotenv
from fastmcp import FastMCP
from mcp import types
from mcp.shared.exceptions import McpError

from core.bridge import ToolBridge
from core.config import Settings
from core.models import CapabilityDescriptor, Failure, InvocationRequest, InvocationResult

SERVER_NAME = "perplexity-search"

# =============================================================================
# Logging Setup
# =============================================================================
# STDOUT carries the MCP JSON stream, so every log line goes to STDERR.
# Colours: CYAN for requests, GREEN for responses, YELLOW for status.
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

logger = logging.getLogger("perplexity_search")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON in GREEN, then return it."""
    logger.info(f"{_GREEN}  ← {tool_name} response: {json.dumps(result, separators=(',', ':'))}{_RESET}")
    return result


# =============================================================================
# Translation between bridge values and MCP types
# =============================================================================
def to_protocol_error(failure: Failure) -> McpError:
    """Translate a bridge Failure into the MCP SDK's structured error."""
    return McpError(types.ErrorData(code=failure.code, message=failure.message))


def to_tool(descriptor: CapabilityDescriptor) -> types.Tool:
    return types.Tool(
        name=descriptor.name,
        description=descriptor.description,
        inputSchema=dict(descriptor.input_schema),
    )


def to_call_result(tool_name: str, result: InvocationResult) -> types.CallToolResult:
    """Return the MCP result for a Success, or raise McpError for a Failure."""
    _log_response(tool_name, result.to_dict())
    if isinstance(result, Failure):
        _log_status(f"{result.kind.name} ({result.code})")
        raise to_protocol_error(result)
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=block.text) for block in result.content],
        isError=False,
    )


# =============================================================================
# Server factory
# =============================================================================
def build_server(bridge: ToolBridge) -> FastMCP:
    """Create a FastMCP server whose tool requests dispatch through `bridge`.

    The handlers read the bridge on every request, so capabilities
    registered after this call are listed and callable too.
    """
    mcp = FastMCP(SERVER_NAME)

    async def list_tools(request: types.ListToolsRequest) -> types.ServerResult:
        tools = [to_tool(descriptor) for descriptor in bridge.list_capabilities()]
        return types.ServerResult(types.ListToolsResult(tools=tools))

    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        name = request.params.name
        arguments = request.params.arguments
        _log_request(name, arguments=arguments)
        result = await bridge.handle(InvocationRequest(name, arguments))
        return types.ServerResult(to_call_result(name, result))

    # Registered directly on the low-level server: an McpError raised here
    # goes out as a JSON-RPC error with its code, not as an isError result.
    low_level = mcp._mcp_server
    low_level.request_handlers[types.ListToolsRequest] = list_tools
    low_level.request_handlers[types.CallToolRequest] = call_tool

    return mcp


# =============================================================================
# Server entry point
# =============================================================================
def main() -> None:
    """Load .env, build the bridge, and serve MCP over stdio."""
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    if not settings.has_credential:
        logger.warning("PERPLEXITY_API_KEY is not set; every search will be rejected")

    mcp = build_server(ToolBridge(settings))
    logger.info("Perplexity MCP server running on stdio")
    mcp.run()


if __name__ == "__main__":
    main()
