"""
Pytest configuration and fixtures
"""
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx
import pytest

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Keep test runs off the filesystem and away from real credentials
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")

from fastapi.testclient import TestClient

from rigidity.api.routes.deformations import get_deformation_service
from rigidity.core.config import DeformationMode, OpenAIConfig
from rigidity.core.openai_client import OpenAIClient
from rigidity.services.deformation_service import DeformationService


def chat_completion(content: str, model: str = "gpt-test") -> Dict[str, Any]:
    """Minimal chat-completion body as returned by the provider"""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 7, "total_tokens": 19},
    }


class FakeProvider:
    """Records chat-completion requests and answers with a canned reply"""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.body: Union[Dict[str, Any], str] = chat_completion("{}")
        self.error: Optional[Exception] = None
        self.transport = httpx.MockTransport(self._handle)

    def reply(self, content: Union[str, Dict[str, Any], List[Any]]):
        """Answer with ``content`` as the model's message text"""
        if not isinstance(content, str):
            content = json.dumps(content)
        self.status_code = 200
        self.body = chat_completion(content)

    def fail(self, status_code: int, text: str):
        self.status_code = status_code
        self.body = text

    def raise_error(self, error: Exception):
        self.error = error

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    def sent_payload(self, index: int = 0) -> Dict[str, Any]:
        """Decoded JSON body of a recorded request"""
        return json.loads(self.requests[index].content)

    def sent_user_content(self, index: int = 0) -> Dict[str, Any]:
        """The control point payload carried by the user message"""
        messages = self.sent_payload(index)["messages"]
        return json.loads(messages[1]["content"])


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_openai_client(provider):
    """Build a client wired to the fake provider"""
    def _make(api_key: Optional[str] = "sk-test-0123456789") -> OpenAIClient:
        config = OpenAIConfig(api_key=api_key, base_url="https://llm.test/v1", model="gpt-test")
        return OpenAIClient(config, transport=provider.transport)
    return _make


@pytest.fixture
def api(make_openai_client):
    """TestClient factory with the deformation service bound to a given mode"""
    from main import app

    def _make(
        mode: DeformationMode = DeformationMode.FRAMES,
        api_key: Optional[str] = "sk-test-0123456789",
    ) -> TestClient:
        client = make_openai_client(api_key)
        app.dependency_overrides[get_deformation_service] = lambda: DeformationService(client, mode)
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
