"""
Failover Executor - ordered retries across providers with a sticky start.

Given N providers in priority order, one generate() call performs at most
one ring scan:

    p = preferred index (last provider that succeeded)
    try providers[p], providers[p+1], ... providers[p-1]   (mod N)

The first provider whose output passes validation wins and becomes the
preferred index for the next call. Failures are classified for the logs
and metrics only; every failure simply advances the scan. There is no
backoff, no cool-down and no parallel fan-out.

Usage:
    executor = FailoverExecutor([doubao, openai])
    html = await executor.generate("a loan amortization calculator")
"""

import logging
import time
from enum import Enum
from threading import Lock
from typing import List, Optional, Sequence, Tuple

import httpx

from toolgen.ai.monitoring import FailoverMetrics, synthesis_logger
from toolgen.ai.providers.base import Provider, measure_latency
from toolgen.core.errors import (
    AllProvidersFailedError,
    ConfigurationError,
    ProviderError,
    ValidationError,
)

logger = logging.getLogger("toolgen.ai.failover")


# ---------------------------------------------------------------------------
# CONTENT VALIDATION
# ---------------------------------------------------------------------------
# Tunable heuristics, kept identical to the behavior clients already rely on.
MIN_CONTENT_LENGTH = 100
HTML_ROOT_MARKERS = ("<!DOCTYPE", "<html")


def is_valid_html(content: Optional[str]) -> bool:
    """Longer than MIN_CONTENT_LENGTH and contains a (case-sensitive) root marker."""
    if content is None or len(content) <= MIN_CONTENT_LENGTH:
        return False
    return any(marker in content for marker in HTML_ROOT_MARKERS)


def check_content(content: Optional[str]) -> str:
    """Return content unchanged, or raise ValidationError explaining the rejection."""
    if content is None or len(content) <= MIN_CONTENT_LENGTH:
        raise ValidationError("generated content is too short, generation probably failed")
    if not any(marker in content for marker in HTML_ROOT_MARKERS):
        raise ValidationError("generated content is missing the HTML root marker")
    return content


# ---------------------------------------------------------------------------
# FAILURE CLASSIFICATION
# ---------------------------------------------------------------------------

class FailureKind(str, Enum):
    """Advisory failure classes; never change control flow."""
    CONNECTION = "connection"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    SERVICE_UNAVAILABLE = "service_unavailable"
    BILLING = "billing"
    UNKNOWN = "unknown"


# Checked in order; the first class with a matching marker wins.
FAILURE_MARKERS: List[Tuple[FailureKind, Tuple[str, ...]]] = [
    (FailureKind.CONNECTION, ("连接", "connect", "timeout", "timed out", "超时")),
    (FailureKind.AUTHENTICATION, ("认证", "401", "unauthorized", "invalid", "api key", "密钥")),
    (FailureKind.RATE_LIMIT, ("429", "quota", "配额", "limit", "rate limit", "频率限制")),
    (FailureKind.SERVICE_UNAVAILABLE, ("503", "500", "service unavailable", "服务不可用")),
    (FailureKind.BILLING, ("payment", "billing", "欠费", "余额不足")),
]

CONNECTION_ERRORS = (ConnectionError, TimeoutError, httpx.TransportError)

FAILURE_DESCRIPTIONS = {
    FailureKind.CONNECTION: "connection failed or timed out",
    FailureKind.AUTHENTICATION: "authentication failed: API key invalid or expired",
    FailureKind.RATE_LIMIT: "quota exhausted or rate limited",
    FailureKind.SERVICE_UNAVAILABLE: "service temporarily unavailable",
    FailureKind.BILLING: "account in arrears or balance insufficient",
    FailureKind.UNKNOWN: "unknown error",
}


def classify_failure(message: Optional[str], cause: Optional[BaseException] = None) -> FailureKind:
    """Classify a provider failure by scanning its message for markers."""
    lower = (message or "").lower()

    if isinstance(cause, CONNECTION_ERRORS):
        return FailureKind.CONNECTION

    for kind, markers in FAILURE_MARKERS:
        if any(marker in lower for marker in markers):
            return kind

    return FailureKind.UNKNOWN


# ---------------------------------------------------------------------------
# EXECUTOR
# ---------------------------------------------------------------------------

class FailoverExecutor:
    """
    Orchestrates an ordered, fixed list of providers.

    The preferred index is the only state shared between concurrent calls.
    It is a soft hint: reads and writes go through a lock so they never
    tear, but two racing calls may each overwrite the other's update.
    """

    def __init__(
        self,
        providers: Sequence[Provider],
        metrics: Optional[FailoverMetrics] = None,
    ):
        if not providers:
            raise ConfigurationError("FailoverExecutor requires at least one provider")

        self._providers: Tuple[Provider, ...] = tuple(providers)
        self._preferred_index = 0
        self._lock = Lock()
        self.metrics = metrics or FailoverMetrics()

        logger.info(f"Failover executor ready, provider priority: {' -> '.join(self.provider_names)}")

    # -----------------------------------------------------------------------
    # STATE
    # -----------------------------------------------------------------------

    @property
    def preferred_index(self) -> int:
        with self._lock:
            return self._preferred_index

    def _set_preferred_index(self, index: int) -> None:
        with self._lock:
            self._preferred_index = index

    @property
    def provider_count(self) -> int:
        return len(self._providers)

    @property
    def provider_names(self) -> List[str]:
        return [provider.name for provider in self._providers]

    @property
    def providers(self) -> Tuple[Provider, ...]:
        return self._providers

    # -----------------------------------------------------------------------
    # GENERATION
    # -----------------------------------------------------------------------

    async def generate(self, request: str, system_prompt: Optional[str] = None) -> str:
        """
        Generate HTML with the first provider that returns valid content.

        Raises:
            AllProvidersFailedError: every provider failed in this scan
        """
        count = len(self._providers)
        start_index = self.preferred_index
        failures: List[Tuple[str, str]] = []

        for attempt in range(count):
            index = (start_index + attempt) % count
            provider = self._providers[index]
            start_time = time.time()

            logger.info(f"Trying {provider.name} ({attempt + 1}/{count})")

            try:
                content = check_content(await provider.attempt(request, system_prompt))
            except ProviderError as e:
                self._record_failure(provider.name, e.message, e.cause or e, start_time, attempt)
                failures.append((provider.name, e.message))
            except Exception as e:
                # A provider that breaks the contract still only costs its own turn
                message = str(e) or type(e).__name__
                self._record_failure(provider.name, message, e, start_time, attempt)
                failures.append((provider.name, message))
            else:
                latency_ms = measure_latency(start_time)
                self._set_preferred_index(index)
                self.metrics.record_success(provider.name, latency_ms)
                synthesis_logger.log_attempt(provider.name, success=True, latency_ms=latency_ms, attempt=attempt)
                logger.info(f"{provider.name} generated {len(content)} chars in {latency_ms:.0f}ms")
                return content

            if attempt + 1 < count:
                logger.info("Switching to the next provider")

        self.metrics.record_exhausted()
        synthesis_logger.log_exhausted(request, failures)
        raise AllProvidersFailedError(failures)

    def _record_failure(
        self,
        name: str,
        message: str,
        cause: BaseException,
        start_time: float,
        attempt: int,
    ) -> None:
        latency_ms = measure_latency(start_time)
        kind = classify_failure(message, cause)
        logger.warning(f"{name} failed: {message} ({FAILURE_DESCRIPTIONS[kind]})")
        self.metrics.record_failure(name, kind.value, message, latency_ms)
        synthesis_logger.log_attempt(
            name,
            success=False,
            latency_ms=latency_ms,
            failure_kind=kind.value,
            message=message,
            attempt=attempt,
        )

    # -----------------------------------------------------------------------
    # LIFECYCLE
    # -----------------------------------------------------------------------

    async def close(self) -> None:
        """Close every provider; one provider failing to close does not stop the rest."""
        for provider in self._providers:
            try:
                await provider.close()
            except Exception as e:
                logger.warning(f"Error closing provider {provider.name}: {e}")

    def to_dict(self) -> dict:
        return {
            "providers": self.provider_names,
            "preferred_index": self.preferred_index,
            "preferred_provider": self._providers[self.preferred_index].name,
            "metrics": self.metrics.to_dict(),
        }
