# =============================================================================
# core/bridge.py  —  ToolBridge (capability registry + invocation)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Holds the registry of capabilities this server offers and runs one
#   invocation end to end:
#
#     1. Look the capability up by name        → INVALID_REQUEST if unknown
#     2. Check the credential is configured    → INVALID_REQUEST if missing
#     3. Validate the arguments                → INVALID_PARAMS if bad
#     4. Run the handler (one HTTP call)       → UPSTREAM_ERROR / INTERNAL_ERROR
#     5. Wrap the answer as a text block       → Success
#
#   Steps 1-3 never touch the network.
#
# WHAT THIS MODULE DOES NOT DO:
#   It never raises for an expected failure and never speaks MCP.  It returns
#   a Success or a Failure (see core/models.py); tools/mcp_server.py does the
#   protocol translation.
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional

from core.config import Settings
from core.models import (
    CapabilityDescriptor,
    ErrorKind,
    Failure,
    InvocationRequest,
    InvocationResult,
    Success,
    TextContent,
)
from core.perplexity import PerplexityClient, UpstreamError

logger = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, Any]], Awaitable[str]]

MISSING_CREDENTIAL_MESSAGE = "PERPLEXITY_API_KEY environment variable is not set"


# -----------------------------------------------------------------------------
# The one capability we ship
# -----------------------------------------------------------------------------
PERPLEXITY_SEARCH = CapabilityDescriptor(
    name="perplexity_search",
    description="Search the web using Perplexity AI",
    input_schema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The search query",
            },
        },
        "required": ["query"],
    },
)


@dataclass(frozen=True)
class Capability:
    """A registry entry: the advertised descriptor plus the code that runs it."""

    descriptor: CapabilityDescriptor
    handler: Handler
    requires_credential: bool = True

    @property
    def name(self) -> str:
        return self.descriptor.name


def validate_arguments(schema: Mapping[str, Any], arguments: Any) -> Optional[str]:
    """Check arguments against the subset of JSON Schema our tools use.

    Only "required" and string-typed properties are enforced.

    Returns:
        None if the arguments are acceptable, otherwise an error message.
    """
    if not isinstance(arguments, Mapping):
        required = schema.get("required") or ["arguments"]
        return f"{required[0].capitalize()} parameter is required and must be a string"

    properties = schema.get("properties", {})
    for key in schema.get("required", []):
        expected = properties.get(key, {}).get("type")
        value = arguments.get(key)
        if key not in arguments or (expected == "string" and not isinstance(value, str)):
            return f"{key.capitalize()} parameter is required and must be a string"

    for key, prop in properties.items():
        if key in arguments and prop.get("type") == "string" and not isinstance(arguments[key], str):
            return f"{key.capitalize()} parameter must be a string"

    return None


class ToolBridge:
    """Stateless dispatcher between tool calls and their handlers.

    Args:
        settings: Frozen configuration; the credential is read from here.
        client: Upstream client.  Defaults to a PerplexityClient built from
            settings.
    """

    def __init__(self, settings: Settings, client: Optional[PerplexityClient] = None):
        self._settings = settings
        self._client = client or PerplexityClient(settings)
        self._registry: dict[str, Capability] = {}

        self.register(Capability(PERPLEXITY_SEARCH, self._perplexity_search))

    @property
    def settings(self) -> Settings:
        return self._settings

    def register(self, capability: Capability) -> None:
        """Add a capability.  Names must be unique."""
        if capability.name in self._registry:
            raise ValueError(f"Capability {capability.name!r} is already registered")
        self._registry[capability.name] = capability

    def list_capabilities(self) -> list[CapabilityDescriptor]:
        """Return every descriptor, in registration order."""
        return [capability.descriptor for capability in self._registry.values()]

    async def invoke(self, capability_name: str, arguments: Any = None) -> InvocationResult:
        """Run one capability and return a Success or a Failure."""
        capability = self._registry.get(capability_name)
        if capability is None:
            return Failure(ErrorKind.INVALID_REQUEST, f"Tool not found: {capability_name}")

        if capability.requires_credential and not self._settings.has_credential:
            return Failure(ErrorKind.INVALID_REQUEST, MISSING_CREDENTIAL_MESSAGE)

        problem = validate_arguments(capability.descriptor.input_schema, arguments)
        if problem is not None:
            return Failure(ErrorKind.INVALID_PARAMS, problem)

        try:
            text = await capability.handler(arguments)
        except UpstreamError as e:
            # MalformedResponseError lands here too.
            logger.warning("%s: upstream failure: %s", capability_name, e)
            return Failure(ErrorKind.UPSTREAM_ERROR, f"Search failed: {e}")
        except Exception as e:
            logger.exception("%s: unexpected error", capability_name)
            return Failure(ErrorKind.INTERNAL_ERROR, f"Search failed: {e}")

        return Success([TextContent(text)])

    async def handle(self, request: InvocationRequest) -> InvocationResult:
        return await self.invoke(request.capability_name, request.arguments)

    async def _perplexity_search(self, arguments: Mapping[str, Any]) -> str:
        return await self._client.search(arguments["query"])
