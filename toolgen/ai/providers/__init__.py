"""
AI Providers Module - one class per generative backend vendor.

- Volcengine Ark / Doubao (up to three endpoints)
- OpenAI
- Anthropic
- Google Gemini

Each provider satisfies the same Provider capability, making them
interchangeable inside the failover executor:
    html = await provider.attempt(request, system_prompt)
"""

import logging
from typing import TYPE_CHECKING, Callable, Dict, List

from toolgen.ai.providers.anthropic_provider import AnthropicProvider
from toolgen.ai.providers.base import (
    Provider,
    ProviderDescriptor,
    ProviderTimeouts,
    ProviderType,
    extract_html,
)
from toolgen.ai.providers.doubao import DoubaoProvider
from toolgen.ai.providers.gemini import GeminiProvider
from toolgen.ai.providers.openai_provider import OpenAIProvider
from toolgen.core.errors import ProviderError

if TYPE_CHECKING:
    from toolgen.core.config import Settings

logger = logging.getLogger("toolgen.ai.providers")


PROVIDER_CLASSES: Dict[ProviderType, Callable[..., Provider]] = {
    ProviderType.DOUBAO: DoubaoProvider,
    ProviderType.OPENAI: OpenAIProvider,
    ProviderType.ANTHROPIC: AnthropicProvider,
    ProviderType.GEMINI: GeminiProvider,
}


def build_providers(settings: "Settings") -> List[Provider]:
    """
    Instantiate every configured provider, in priority order.

    A provider that fails to initialize is logged and skipped so the
    remaining ones still form a usable failover chain.
    """
    providers: List[Provider] = []

    for descriptor in settings.provider_descriptors():
        provider_class = PROVIDER_CLASSES[descriptor.kind]
        try:
            provider = provider_class(
                descriptor,
                timeouts=settings.timeouts,
                temperature=settings.AI_TEMPERATURE,
                max_tokens=settings.AI_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning(f"Skipping provider {descriptor.name}: {e}")
            continue
        providers.append(provider)

    if providers:
        logger.info("Provider priority: " + " -> ".join(p.name for p in providers))
    else:
        logger.warning("No AI provider configured")

    return providers


__all__ = [
    "Provider",
    "ProviderDescriptor",
    "ProviderTimeouts",
    "ProviderType",
    "ProviderError",
    "extract_html",
    "DoubaoProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "PROVIDER_CLASSES",
    "build_providers",
]
