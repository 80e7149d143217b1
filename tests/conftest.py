import json

import httpx
import pytest

from core.bridge import ToolBridge
from core.config import Settings
from core.perplexity import PerplexityClient


class RecordingUpstream:
    """httpx.MockTransport that records requests and replays a canned reply."""

    def __init__(self, status_code=200, body=None, raw=None, exc=None):
        self.status_code = status_code
        self.body = body if body is not None else {"choices": [{"message": {"content": "answer"}}]}
        self.raw = raw
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc(request)
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key", api_url="https://upstream.test/chat/completions")


@pytest.fixture
def upstream() -> RecordingUpstream:
    return RecordingUpstream()


@pytest.fixture
def make_bridge(settings):
    def _make(upstream: RecordingUpstream, settings: Settings = settings) -> ToolBridge:
        client = PerplexityClient(settings, transport=upstream.transport)
        return ToolBridge(settings, client=client)

    return _make
