# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the bridge)
# =============================================================================
#
# These dataclasses define the shape of everything that crosses the bridge:
# the capability we advertise, the request we receive, and the result we
# hand back to the transport layer.
#
# RESULT TYPE:
#   ToolBridge.invoke() never raises for expected failures.  It returns either
#   a Success (content blocks) or a Failure (an ErrorKind plus a message).
#   Only the MCP layer in tools/ turns a Failure into a protocol error.
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union


# -----------------------------------------------------------------------------
# CapabilityDescriptor: what the client sees in tools/list
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class CapabilityDescriptor:
    """A named, schema-described tool the client may invoke."""

    name: str                          # "perplexity_search"
    description: str                   # Read by the LLM to decide when to call
    input_schema: Mapping[str, Any] = field(default_factory=dict)  # JSON Schema

    def to_dict(self) -> dict:
        """Render in MCP's tool-listing shape (camelCase inputSchema)."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": dict(self.input_schema),
        }


# -----------------------------------------------------------------------------
# InvocationRequest: one tools/call as the bridge sees it
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class InvocationRequest:
    capability_name: str
    arguments: Any = None              # Should be a mapping; validated by the bridge


# -----------------------------------------------------------------------------
# ErrorKind: failure taxonomy with JSON-RPC style codes
# -----------------------------------------------------------------------------
class ErrorKind(Enum):
    """Each kind maps to a distinct machine-readable code."""

    INVALID_REQUEST = -32600           # Unknown tool, or no credential
    INVALID_PARAMS = -32602            # query missing or not a string
    UPSTREAM_ERROR = -32000            # Non-2xx, network, timeout, bad body
    INTERNAL_ERROR = -32603            # Anything else

    @property
    def code(self) -> int:
        return self.value


# -----------------------------------------------------------------------------
# TextContent / Success / Failure: the result variants
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class TextContent:
    text: str
    type: str = "text"

    def to_dict(self) -> dict:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class Success:
    """A completed invocation: an ordered list of content blocks."""

    content: list[TextContent] = field(default_factory=list)

    ok = True

    def to_dict(self) -> dict:
        return {"content": [block.to_dict() for block in self.content]}


@dataclass(frozen=True)
class Failure:
    """A failed invocation.  No partial content is ever attached."""

    kind: ErrorKind
    message: str

    ok = False

    @property
    def code(self) -> int:
        return self.kind.code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


InvocationResult = Union[Success, Failure]
