"""
Configuration module - centralized settings for the entire application.
Uses pydantic-settings to load values from environment variables and .env file.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from toolgen.ai.providers.base import (
    ProviderDescriptor,
    ProviderTimeouts,
    ProviderType,
)


DEFAULT_DOUBAO_BASE_URL = "https://ark.cn-beijing.volces.com/api/v3"
DEFAULT_DOUBAO_MODEL = "doubao-pro-32k"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic-settings automatically:
    1. Reads from environment variables (highest priority)
    2. Falls back to .env file values
    3. Uses default values if neither exists

    To configure a backup Ark endpoint, set the numbered variables:
        export DOUBAO_API_KEY_2=...
        export DOUBAO_ENDPOINT_ID_2=...
    """

    # ---------------------------------------------------------------------------
    # PYDANTIC SETTINGS CONFIGURATION
    # ---------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",        # Load from .env file in project root
        env_file_encoding="utf-8",  # File encoding
        extra="ignore",         # Ignore extra env vars not defined here
    )

    # ---------------------------------------------------------------------------
    # APPLICATION SETTINGS
    # ---------------------------------------------------------------------------
    # APP_NAME: Display name shown in API docs and logging
    APP_NAME: str = "Toolgen"

    DEBUG: bool = False

    # LOG_LEVEL: Level applied to the "toolgen" logger hierarchy
    LOG_LEVEL: str = "INFO"

    # OUTPUT_DIR: Where generated artifacts are persisted and looked up
    # - Relative paths are resolved against the working directory
    OUTPUT_DIR: str = "output"

    # ---------------------------------------------------------------------------
    # GENERATION SETTINGS
    # ---------------------------------------------------------------------------
    # USE_AI: Master switch for calling out to providers
    # - When False, only stored artifacts and canned templates are served
    USE_AI: bool = True

    # ---------------------------------------------------------------------------
    # DOUBAO (VOLCENGINE ARK) ENDPOINTS
    # ---------------------------------------------------------------------------
    # Up to three endpoints, tried in this order before any other vendor.
    # Numbered endpoints fall back to DOUBAO_BASE_URL when their own URL is empty.
    DOUBAO_API_KEY: str = ""
    DOUBAO_ENDPOINT_ID: str = ""
    DOUBAO_BASE_URL: str = DEFAULT_DOUBAO_BASE_URL

    DOUBAO_API_KEY_2: str = ""
    DOUBAO_ENDPOINT_ID_2: str = ""
    DOUBAO_BASE_URL_2: str = ""

    DOUBAO_API_KEY_3: str = ""
    DOUBAO_ENDPOINT_ID_3: str = ""
    DOUBAO_BASE_URL_3: str = ""

    # ---------------------------------------------------------------------------
    # OTHER AI PROVIDERS
    # ---------------------------------------------------------------------------
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o"
    # OPENAI_BASE_URL: Optional OpenAI-compatible gateway
    OPENAI_BASE_URL: Optional[str] = None

    ANTHROPIC_API_KEY: str = ""
    ANTHROPIC_MODEL: str = "claude-sonnet-4-5"

    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # ---------------------------------------------------------------------------
    # TRANSPORT SETTINGS
    # ---------------------------------------------------------------------------
    # Timeouts in seconds. Generating a whole page is slow, so the read
    # timeout is much longer than the connect timeout.
    AI_CONNECT_TIMEOUT: float = 30
    AI_READ_TIMEOUT: float = 120
    AI_WRITE_TIMEOUT: float = 60

    AI_MAX_TOKENS: int = 8192
    AI_TEMPERATURE: float = 0.7

    # ---------------------------------------------------------------------------
    # DERIVED VALUES
    # ---------------------------------------------------------------------------

    @property
    def timeouts(self) -> ProviderTimeouts:
        return ProviderTimeouts(
            connect=self.AI_CONNECT_TIMEOUT,
            read=self.AI_READ_TIMEOUT,
            write=self.AI_WRITE_TIMEOUT,
        )

    @property
    def ai_configured(self) -> bool:
        """True when at least one provider has an API key."""
        return bool(self.provider_descriptors())

    def provider_descriptors(self) -> List[ProviderDescriptor]:
        """
        Build the ordered provider list from configuration.

        Order: Doubao endpoints 1-3, then OpenAI, Anthropic, Gemini.
        Entries without an API key are skipped.
        """
        descriptors: List[ProviderDescriptor] = []

        doubao_endpoints = [
            ("Doubao", self.DOUBAO_API_KEY, self.DOUBAO_ENDPOINT_ID, self.DOUBAO_BASE_URL),
            ("Doubao-2", self.DOUBAO_API_KEY_2, self.DOUBAO_ENDPOINT_ID_2, self.DOUBAO_BASE_URL_2),
            ("Doubao-3", self.DOUBAO_API_KEY_3, self.DOUBAO_ENDPOINT_ID_3, self.DOUBAO_BASE_URL_3),
        ]
        for name, api_key, endpoint_id, base_url in doubao_endpoints:
            if not api_key:
                continue
            descriptors.append(ProviderDescriptor(
                kind=ProviderType.DOUBAO,
                name=name,
                api_key=api_key,
                model=endpoint_id or DEFAULT_DOUBAO_MODEL,
                base_url=base_url or self.DOUBAO_BASE_URL or DEFAULT_DOUBAO_BASE_URL,
            ))

        if self.OPENAI_API_KEY:
            descriptors.append(ProviderDescriptor(
                kind=ProviderType.OPENAI,
                name="OpenAI",
                api_key=self.OPENAI_API_KEY,
                model=self.OPENAI_MODEL,
                base_url=self.OPENAI_BASE_URL,
            ))
        if self.ANTHROPIC_API_KEY:
            descriptors.append(ProviderDescriptor(
                kind=ProviderType.ANTHROPIC,
                name="Anthropic",
                api_key=self.ANTHROPIC_API_KEY,
                model=self.ANTHROPIC_MODEL,
            ))
        if self.GEMINI_API_KEY:
            descriptors.append(ProviderDescriptor(
                kind=ProviderType.GEMINI,
                name="Gemini",
                api_key=self.GEMINI_API_KEY,
                model=self.GEMINI_MODEL,
            ))

        return descriptors


def get_settings() -> Settings:
    """Load a fresh Settings instance (re-reads the environment and .env)."""
    return Settings()


# ---------------------------------------------------------------------------
# GLOBAL SETTINGS INSTANCE
# ---------------------------------------------------------------------------
# Usage: from toolgen.core.config import settings
settings = Settings()
