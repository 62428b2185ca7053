"""
Gemini Provider - Google's GenAI SDK.
"""

import logging
import time
from typing import Optional

from google import genai
from google.genai import types

from toolgen.ai.prompts import SYSTEM_PROMPT
from toolgen.ai.providers.base import (
    ProviderDescriptor,
    ProviderTimeouts,
    extract_html,
    measure_latency,
)
from toolgen.core.errors import ProviderError

logger = logging.getLogger("toolgen.ai.gemini")

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"


class GeminiProvider:

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        timeouts: ProviderTimeouts = ProviderTimeouts(),
        temperature: float = 0.7,
        max_tokens: int = 8192,
    ):
        self.name = descriptor.name
        self.model = descriptor.model
        self.base_url = GEMINI_BASE_URL
        self.configured = bool(descriptor.api_key)
        self._temperature = temperature
        self._max_tokens = max_tokens

        if descriptor.api_key:
            # HttpOptions takes a single overall timeout in milliseconds
            self._client = genai.Client(
                api_key=descriptor.api_key,
                http_options=types.HttpOptions(timeout=int(timeouts.total * 1000)),
            )
            logger.info(f"Gemini provider '{self.name}' initialized with model: {self.model}")
        else:
            self._client = None
            logger.warning(f"Gemini provider '{self.name}' has no API key")

    async def attempt(self, request: str, system_prompt: Optional[str] = None) -> str:
        if not self._client:
            raise ProviderError("Gemini API key not configured")

        start_time = time.time()

        try:
            config = types.GenerateContentConfig(
                temperature=self._temperature,
                max_output_tokens=self._max_tokens,
                system_instruction=system_prompt or SYSTEM_PROMPT,
            )
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=request,
                config=config,
            )
        except (ConnectionError, TimeoutError) as e:
            logger.error(f"{self.name} connection failed after {measure_latency(start_time):.0f}ms: {e}")
            raise ProviderError(f"connection failed: {e}", cause=e) from e
        except Exception as e:
            logger.error(f"{self.name} generation failed: {e}")
            raise ProviderError(str(e) or type(e).__name__, cause=e) from e

        total_tokens = 0
        if response.usage_metadata:
            total_tokens = response.usage_metadata.total_token_count or 0
        logger.info(
            f"{self.name} request completed in {measure_latency(start_time):.0f}ms, "
            f"tokens: {total_tokens}"
        )

        html = extract_html(response.text)
        if not html:
            raise ProviderError(f"{self.name} returned an empty completion")
        return html

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aio.aclose()

    def __repr__(self) -> str:
        return f"GeminiProvider(name={self.name}, model={self.model})"
