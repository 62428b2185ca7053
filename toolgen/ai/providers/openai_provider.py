"""
OpenAI Provider - GPT client for HTML tool generation.

Also hosts the chat-completions call shared with every OpenAI-compatible
backend (Volcengine Ark uses the same wire protocol).

API Documentation: https://platform.openai.com/docs/api-reference
"""

import logging
import time
from typing import Optional

from openai import APIConnectionError, AsyncOpenAI, Timeout

from toolgen.ai.prompts import SYSTEM_PROMPT
from toolgen.ai.providers.base import (
    ProviderDescriptor,
    ProviderTimeouts,
    extract_html,
    measure_latency,
)
from toolgen.core.errors import ProviderError

logger = logging.getLogger("toolgen.ai.openai")

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"


async def complete_chat(
    client: AsyncOpenAI,
    *,
    name: str,
    model: str,
    request: str,
    system_prompt: Optional[str],
    temperature: float,
    max_tokens: int,
) -> str:
    """
    Run one chat completion and return the extracted HTML.

    Raises:
        ProviderError: on any SDK failure or an empty completion
    """
    start_time = time.time()

    messages = [
        {"role": "system", "content": system_prompt or SYSTEM_PROMPT},
        {"role": "user", "content": request},
    ]

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except APIConnectionError as e:
        # Covers APITimeoutError too
        logger.error(f"{name} connection failed after {measure_latency(start_time):.0f}ms: {e}")
        raise ProviderError(f"connection failed: {e}", cause=e) from e
    except Exception as e:
        logger.error(f"{name} generation failed: {e}")
        raise ProviderError(str(e) or type(e).__name__, cause=e) from e

    content = ""
    if response.choices:
        content = response.choices[0].message.content or ""

    total_tokens = response.usage.total_tokens if response.usage else 0
    logger.info(
        f"{name} request completed in {measure_latency(start_time):.0f}ms, "
        f"tokens: {total_tokens}"
    )

    html = extract_html(content)
    if not html:
        raise ProviderError(f"{name} returned an empty completion")
    return html


class OpenAIProvider:
    """
    OpenAI GPT provider.

    Usage:
        provider = OpenAIProvider(descriptor, timeouts)
        html = await provider.attempt("Build a BMI calculator")
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
        self.base_url = descriptor.base_url or DEFAULT_OPENAI_BASE_URL
        self.configured = bool(descriptor.api_key)
        self._temperature = temperature
        self._max_tokens = max_tokens

        if descriptor.api_key:
            # Failover replaces SDK-level retries
            self._client = AsyncOpenAI(
                api_key=descriptor.api_key,
                base_url=descriptor.base_url,
                timeout=Timeout(**timeouts.as_kwargs()),
                max_retries=0,
            )
            logger.info(f"OpenAI provider '{self.name}' initialized with model: {self.model}")
        else:
            self._client = None
            logger.warning(f"OpenAI provider '{self.name}' has no API key - provider unavailable")

    async def attempt(self, request: str, system_prompt: Optional[str] = None) -> str:
        if not self._client:
            raise ProviderError("OpenAI API key not configured")

        return await complete_chat(
            self._client,
            name=self.name,
            model=self.model,
            request=request,
            system_prompt=system_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    def __repr__(self) -> str:
        return f"OpenAIProvider(name={self.name}, model={self.model})"
