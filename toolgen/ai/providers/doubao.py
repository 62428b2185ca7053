"""
Doubao Provider - Volcengine Ark endpoints.

Ark exposes an OpenAI-compatible chat completions API, so the call itself
goes through the openai SDK pointed at the Ark base URL. Each configured
endpoint (primary plus up to two backups) becomes its own provider with its
own client, which lets the failover executor skip a dead endpoint without
touching the others.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI, Timeout

from toolgen.ai.providers.base import ProviderDescriptor, ProviderTimeouts
from toolgen.ai.providers.openai_provider import complete_chat
from toolgen.core.errors import ProviderError

logger = logging.getLogger("toolgen.ai.doubao")


class DoubaoProvider:
    """
    Volcengine Ark (Doubao) provider for a single endpoint.

    The descriptor's model is the Ark endpoint id.
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        timeouts: ProviderTimeouts = ProviderTimeouts(),
        temperature: float = 0.7,
        max_tokens: int = 8192,
    ):
        if not descriptor.api_key:
            raise ProviderError(f"{descriptor.name}: API key not configured")

        self.name = descriptor.name
        self.endpoint_id = descriptor.model
        self.base_url = descriptor.base_url
        self.configured = True
        self._temperature = temperature
        self._max_tokens = max_tokens

        self._client = AsyncOpenAI(
            api_key=descriptor.api_key,
            base_url=self.base_url,
            timeout=Timeout(**timeouts.as_kwargs()),
            max_retries=0,
        )
        logger.info(f"Doubao provider '{self.name}' initialized (endpoint: {self.endpoint_id})")

    async def attempt(self, request: str, system_prompt: Optional[str] = None) -> str:
        logger.debug(f"{self.name} request: {request[:100]}")
        return await complete_chat(
            self._client,
            name=self.name,
            model=self.endpoint_id,
            request=request,
            system_prompt=system_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

    async def close(self) -> None:
        await self._client.close()

    def __repr__(self) -> str:
        return f"DoubaoProvider(name={self.name}, endpoint={self.endpoint_id}, base_url={self.base_url})"
