"""
Pytest configuration and shared fixtures.

Providers are replaced with in-memory fakes so tests are:
- Fast (no network calls)
- Reliable (no API flakiness)
- Free (no token costs)

Fakes and settings are handed out through factory fixtures:
    def test_something(make_provider, failing_provider, make_settings): ...
"""

import asyncio
from typing import Callable, List, Optional, Tuple

import pytest

from toolgen.core.config import Settings
from toolgen.core.errors import ProviderError
from toolgen.services.artifact_store import ArtifactStore
from toolgen.services.template_catalog import TemplateCatalog


VALID_HTML = (
    "<!DOCTYPE html>\n<html>\n<head><title>Pomodoro</title></head>\n"
    "<body><div id=\"timer\">25:00</div><button>Start</button>"
    "<script>let remaining = 25 * 60;</script></body>\n</html>"
)


class FakeProvider:
    """
    In-memory provider that records every call.

    Returns `content` on each attempt, or raises `error` when given one.
    When `gate` is set, each attempt waits for it before answering.
    """

    def __init__(
        self,
        name: str,
        content: str = VALID_HTML,
        error: Optional[BaseException] = None,
        close_error: Optional[BaseException] = None,
        base_url: Optional[str] = None,
        configured: bool = True,
        gate: Optional[asyncio.Event] = None,
    ):
        self.name = name
        self.content = content
        self.error = error
        self.close_error = close_error
        self.base_url = base_url
        self.configured = configured
        self.gate = gate
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.closed = False

    async def attempt(self, request: str, system_prompt: Optional[str] = None) -> str:
        self.calls.append((request, system_prompt))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.content

    async def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


# ---------------------------------------------------------------------------
# PROVIDER FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def valid_html() -> str:
    """A small document that passes the HTML shape check."""
    return VALID_HTML


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    """
    Factory for fake providers.

    Usage:
        provider = make_provider("A", content="<html>...")
    """
    return FakeProvider


@pytest.fixture
def failing_provider() -> Callable[..., FakeProvider]:
    """Factory for fake providers that always raise ProviderError."""
    def factory(name: str, message: str = "503 service unavailable") -> FakeProvider:
        return FakeProvider(name, error=ProviderError(message))
    return factory


# ---------------------------------------------------------------------------
# SETTINGS FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """
    Factory for Settings isolated from the developer's environment and .env.

    Every provider key is blanked; pass overrides as keyword arguments.
    """
    def factory(**overrides) -> Settings:
        values = dict(
            OUTPUT_DIR="output",
            USE_AI=True,
            DOUBAO_API_KEY="",
            DOUBAO_ENDPOINT_ID="",
            DOUBAO_API_KEY_2="",
            DOUBAO_ENDPOINT_ID_2="",
            DOUBAO_BASE_URL_2="",
            DOUBAO_API_KEY_3="",
            DOUBAO_ENDPOINT_ID_3="",
            DOUBAO_BASE_URL_3="",
            OPENAI_API_KEY="",
            OPENAI_BASE_URL=None,
            ANTHROPIC_API_KEY="",
            GEMINI_API_KEY="",
        )
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return factory


# ---------------------------------------------------------------------------
# STORE FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def output_dir(tmp_path):
    """Empty artifact directory."""
    path = tmp_path / "output"
    path.mkdir()
    return path


@pytest.fixture
def store(output_dir):
    return ArtifactStore(output_dir)


@pytest.fixture
def catalog():
    return TemplateCatalog()
