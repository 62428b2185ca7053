"""
Anthropic Provider - Claude client for HTML tool generation.

API Documentation: https://docs.anthropic.com/en/api
"""

import logging
import time
from typing import Optional

from anthropic import APIConnectionError, AsyncAnthropic, Timeout

from toolgen.ai.prompts import SYSTEM_PROMPT
from toolgen.ai.providers.base import (
    ProviderDescriptor,
    ProviderTimeouts,
    extract_html,
    measure_latency,
)
from toolgen.core.errors import ProviderError

logger = logging.getLogger("toolgen.ai.anthropic")

DEFAULT_ANTHROPIC_BASE_URL = "https://api.anthropic.com"


class AnthropicProvider:
    """
    Anthropic Claude provider.

    Usage:
        provider = AnthropicProvider(descriptor, timeouts)
        html = await provider.attempt("A pomodoro timer")
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        timeouts: ProviderTimeouts = ProviderTimeouts(),
        temperature: float = 0.7,
        max_tokens: int = 8192,
    ):
        self.name = descriptor.name
        self.model = descriptor.model
        self.base_url = descriptor.base_url or DEFAULT_ANTHROPIC_BASE_URL
        self.configured = bool(descriptor.api_key)
        self._temperature = temperature
        self._max_tokens = max_tokens

        if descriptor.api_key:
            self._client = AsyncAnthropic(
                api_key=descriptor.api_key,
                base_url=self.base_url,
                timeout=Timeout(**timeouts.as_kwargs()),
                max_retries=0,
            )
            logger.info(f"Anthropic provider '{self.name}' initialized with model: {self.model}")
        else:
            self._client = None
            logger.warning(f"Anthropic provider '{self.name}' has no API key - provider unavailable")

    async def attempt(self, request: str, system_prompt: Optional[str] = None) -> str:
        if not self._client:
            raise ProviderError("Anthropic API key not configured")

        start_time = time.time()

        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self._max_tokens,
                system=system_prompt or SYSTEM_PROMPT,
                messages=[{"role": "user", "content": request}],
                temperature=self._temperature,
            )
        except APIConnectionError as e:
            logger.error(f"{self.name} connection failed after {measure_latency(start_time):.0f}ms: {e}")
            raise ProviderError(f"connection failed: {e}", cause=e) from e
        except Exception as e:
            logger.error(f"{self.name} generation failed: {e}")
            raise ProviderError(str(e) or type(e).__name__, cause=e) from e

        # Claude returns a list of content blocks
        content = ""
        for block in response.content or []:
            if hasattr(block, "text"):
                content += block.text

        total_tokens = 0
        if response.usage:
            total_tokens = response.usage.input_tokens + response.usage.output_tokens
        logger.info(
            f"{self.name} request completed in {measure_latency(start_time):.0f}ms, "
            f"tokens: {total_tokens}"
        )

        html = extract_html(content)
        if not html:
            raise ProviderError(f"{self.name} returned an empty completion")
        return html

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    def __repr__(self) -> str:
        return f"AnthropicProvider(name={self.name}, model={self.model})"
