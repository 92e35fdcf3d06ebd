"""
Chat-completion client for OpenAI-compatible APIs
"""
import time
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from rigidity.core.config import OpenAIConfig
from rigidity.core.errors import ConfigurationError, UpstreamError
from rigidity.core.logging_config import LoggingConfig
from rigidity.core.metrics import (llm_request_duration_seconds,
                                   llm_requests_total, llm_tokens_total)

logger = LoggingConfig.get_logger(__name__)


class CompletionResult(BaseModel):
    """Text returned by the provider for one completion"""
    model: str
    content: str
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None


class OpenAIClient:
    """
    Client for the chat-completion endpoint.

    One request per call: a system message, a user message and a JSON-object
    response format. Errors are never retried.
    """

    def __init__(
        self,
        config: OpenAIConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self._transport = transport

    def _build_payload(self, system_prompt: str, user_content: str) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "response_format": {"type": "json_object"},
        }

    async def complete(self, system_prompt: str, user_content: str) -> CompletionResult:
        """
        Send one chat completion and return the first choice's content

        Raises:
            ConfigurationError: no API key configured (nothing is sent)
            UpstreamError: transport failure, error status or unusable reply
        """
        if not self.config.api_key:
            raise ConfigurationError("OpenAI API key not configured")

        model = self.config.model
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        payload = self._build_payload(system_prompt, user_content)

        start_time = time.time()
        try:
            async with httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post("/chat/completions", json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            llm_requests_total.labels(model=model, status="error").inc()
            raise UpstreamError(
                f"OpenAI API error: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            llm_requests_total.labels(model=model, status="error").inc()
            raise UpstreamError(f"OpenAI API error: {e}") from e
        except ValueError as e:
            llm_requests_total.labels(model=model, status="error").inc()
            raise UpstreamError(f"OpenAI API error: response body is not JSON: {e}") from e
        finally:
            llm_request_duration_seconds.labels(model=model).observe(time.time() - start_time)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            llm_requests_total.labels(model=model, status="error").inc()
            raise UpstreamError("OpenAI API error: reply contains no choices") from e

        if not isinstance(content, str):
            llm_requests_total.labels(model=model, status="error").inc()
            raise UpstreamError("OpenAI API error: reply message has no text content")

        llm_requests_total.labels(model=model, status="success").inc()

        usage = data.get("usage") or {}
        prompt_tokens = usage.get("prompt_tokens")
        completion_tokens = usage.get("completion_tokens")
        if isinstance(prompt_tokens, int):
            llm_tokens_total.labels(model=model, type="input").inc(prompt_tokens)
        if isinstance(completion_tokens, int):
            llm_tokens_total.labels(model=model, type="output").inc(completion_tokens)

        logger.debug(
            "Completion received",
            extra={"model": data.get("model", model), "duration_ms": int((time.time() - start_time) * 1000)}
        )

        return CompletionResult(
            model=data.get("model") or model,
            content=content,
            prompt_tokens=prompt_tokens if isinstance(prompt_tokens, int) else None,
            completion_tokens=completion_tokens if isinstance(completion_tokens, int) else None,
        )
