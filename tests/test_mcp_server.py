import asyncio

import pytest
from fastmcp import Client
from mcp.shared.exceptions import McpError

from core.bridge import PERPLEXITY_SEARCH, Capability, ToolBridge
from core.config import Settings
from core.models import CapabilityDescriptor, ErrorKind, Failure
from core.perplexity import PerplexityClient
from tools.mcp_server import build_server, to_protocol_error
from tests.conftest import RecordingUpstream


def _bridge(upstream: RecordingUpstream, api_key="test-key") -> ToolBridge:
    settings = Settings(api_key=api_key, api_url="https://upstream.test/chat/completions")
    return ToolBridge(settings, client=PerplexityClient(settings, transport=upstream.transport))


def _call(server, name, arguments):
    async def run():
        async with Client(server) as client:
            return await client.call_tool_mcp(name, arguments)

    return asyncio.run(run())


def _list(server):
    async def run():
        async with Client(server) as client:
            return await client.list_tools()

    return asyncio.run(run())


def test_lists_perplexity_search_tool():
    tools = _list(build_server(_bridge(RecordingUpstream())))

    assert [tool.name for tool in tools] == ["perplexity_search"]
    assert tools[0].description == "Search the web using Perplexity AI"
    assert tools[0].inputSchema == PERPLEXITY_SEARCH.input_schema


def test_call_returns_text_block():
    upstream = RecordingUpstream(body={"choices": [{"message": {"content": "Paris"}}]})
    server = build_server(_bridge(upstream))

    result = _call(server, "perplexity_search", {"query": "capital of France"})

    assert result.isError is False
    assert len(result.content) == 1
    assert result.content[0].type == "text"
    assert result.content[0].text == "Paris"
    assert upstream.last_json()["messages"][0]["content"] == "capital of France"


def test_upstream_500_is_coded_protocol_error():
    upstream = RecordingUpstream(status_code=500)
    server = build_server(_bridge(upstream))

    with pytest.raises(McpError) as excinfo:
        _call(server, "perplexity_search", {"query": "q"})

    assert excinfo.value.error.code == -32000
    assert "500" in excinfo.value.error.message
    assert len(upstream.requests) == 1


def test_malformed_upstream_body_is_coded_protocol_error():
    upstream = RecordingUpstream(body={"id": "abc"})
    server = build_server(_bridge(upstream))

    with pytest.raises(McpError) as excinfo:
        _call(server, "perplexity_search", {"query": "q"})

    assert excinfo.value.error.code == -32000
    assert "malformed" in excinfo.value.error.message


def test_missing_credential_is_invalid_request():
    upstream = RecordingUpstream()
    server = build_server(_bridge(upstream, api_key=None))

    with pytest.raises(McpError) as excinfo:
        _call(server, "perplexity_search", {"query": "q"})

    assert excinfo.value.error.code == -32600
    assert "PERPLEXITY_API_KEY" in excinfo.value.error.message
    assert upstream.requests == []


def test_unknown_tool_is_invalid_request():
    upstream = RecordingUpstream()
    server = build_server(_bridge(upstream))

    with pytest.raises(McpError) as excinfo:
        _call(server, "web_search", {"query": "q"})

    assert excinfo.value.error.code == -32600
    assert excinfo.value.error.message == "Tool not found: web_search"
    assert upstream.requests == []


@pytest.mark.parametrize("arguments", [{"query": 42}, {}, {"q": "test"}, None])
def test_bad_query_is_invalid_params(arguments):
    upstream = RecordingUpstream()
    server = build_server(_bridge(upstream))

    with pytest.raises(McpError) as excinfo:
        _call(server, "perplexity_search", arguments)

    assert excinfo.value.error.code == -32602
    assert excinfo.value.error.message == "Query parameter is required and must be a string"
    assert upstream.requests == []


def test_registered_capability_is_listed_and_callable():
    bridge = _bridge(RecordingUpstream())
    server = build_server(bridge)

    async def echo(arguments):
        return arguments["text"]

    bridge.register(
        Capability(
            CapabilityDescriptor(
                "echo",
                "Echo text back",
                {"type": "object", "properties": {"text": {"type": "string"}}, "required": ["text"]},
            ),
            echo,
            requires_credential=False,
        )
    )

    tools = _list(server)
    assert [tool.name for tool in tools] == ["perplexity_search", "echo"]

    result = _call(server, "echo", {"text": "hi"})
    assert result.content[0].text == "hi"


def test_failure_maps_to_structured_error():
    error = to_protocol_error(Failure(ErrorKind.INVALID_PARAMS, "bad query"))

    assert error.error.code == -32602
    assert error.error.message == "bad query"
