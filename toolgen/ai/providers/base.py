"""
Provider capability - the contract every generative backend fulfils.

A provider takes a free-text request and returns a complete HTML document,
or raises ProviderError. The FailoverExecutor only ever talks to this
interface, so adding a vendor means writing one class that satisfies it.

Design Pattern: Capability interface
====================================
Providers are structurally typed (typing.Protocol) rather than subclassed:
each vendor class owns its own SDK client and shares only the small helpers
in this module.

Example:
    provider = OpenAIProvider(descriptor, timeouts)
    html = await provider.attempt("a unit converter", system_prompt=None)
    await provider.close()
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Protocol, runtime_checkable

# Configure logging for AI operations
logger = logging.getLogger("toolgen.ai")


class ProviderType(str, Enum):
    """Enum of supported AI vendors."""
    DOUBAO = "doubao"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


@dataclass(frozen=True)
class ProviderTimeouts:
    """
    Transport timeouts in seconds, applied by every provider's HTTP client.

    There is no pipeline-level watchdog: a slow backend blocks its caller
    until these deadlines elapse.
    """
    connect: float = 30.0
    read: float = 120.0
    write: float = 60.0

    def as_kwargs(self) -> Dict[str, float]:
        """Keyword arguments for the SDKs' own Timeout types."""
        return {
            "connect": self.connect,
            "read": self.read,
            "write": self.write,
            "pool": self.connect,
        }

    @property
    def total(self) -> float:
        return self.connect + self.read + self.write


@dataclass(frozen=True)
class ProviderDescriptor:
    """
    Configuration of a single provider, in priority order.

    Attributes:
        kind: Vendor implementation to instantiate
        name: Display name used in logs and error reports
        api_key: Credential for the vendor API
        model: Model (or Ark endpoint id) to call
        base_url: Optional API base URL override
    """
    kind: ProviderType
    name: str
    api_key: str
    model: str
    base_url: Optional[str] = None

    def __repr__(self) -> str:
        # Never leak the credential into logs
        return (
            f"ProviderDescriptor(kind={self.kind.value}, name={self.name}, "
            f"model={self.model}, base_url={self.base_url})"
        )


@runtime_checkable
class Provider(Protocol):
    """
    A single backend that can attempt to synthesize HTML from a request.

    Implementations must:
    - raise ProviderError (never return an error value) on any failure
    - honor their own transport timeouts
    - release their resources in close() without touching other providers

    base_url and configured are read by the diagnostics only.
    """

    name: str
    base_url: Optional[str]
    configured: bool

    async def attempt(self, request: str, system_prompt: Optional[str] = None) -> str:
        """Return generated HTML for the request, or raise ProviderError."""
        ...

    async def close(self) -> None:
        """Release the provider's HTTP client."""
        ...


# ---------------------------------------------------------------------------
# SHARED HELPERS
# ---------------------------------------------------------------------------

def extract_html(content: Optional[str]) -> str:
    """
    Extract the HTML document from an LLM response.

    Handles markdown code fences and chatter before the document root.
    Returns the stripped content unchanged when no root marker is found;
    validation happens later in the FailoverExecutor.
    """
    if not content or not content.strip():
        return ""

    content = content.strip()

    # Remove markdown code blocks if present
    if "```html" in content:
        start = content.index("```html") + 7
        end = content.find("```", start)
        if end != -1:
            content = content[start:end].strip()
    elif "```" in content:
        start = content.index("```") + 3
        end = content.find("```", start)
        if end != -1:
            content = content[start:end].strip()

    # Ensure it starts with DOCTYPE or html
    if not content.startswith("<!DOCTYPE") and not content.startswith("<html"):
        positions = [pos for pos in (content.find("<!DOCTYPE"), content.find("<html")) if pos != -1]
        if positions:
            content = content[min(positions):]

    return content.strip()


def measure_latency(start_time: float) -> float:
    """Calculate latency in milliseconds."""
    return (time.time() - start_time) * 1000
