"""
Failover Metrics - per-provider attempt tracking.

Counts how often each provider is tried, how often it succeeds, and why
it fails. The failover executor owns one instance; the /api/providers
endpoint exposes it so an operator can see which backends are degraded.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Optional


@dataclass
class ProviderStats:
    """Counters for a single provider."""
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    total_latency_ms: float = 0.0
    failure_kinds: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    last_failure: Optional[str] = None
    last_success_at: Optional[datetime] = None

    @property
    def avg_latency_ms(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.total_latency_ms / self.attempts

    @property
    def success_rate(self) -> float:
        """Success rate as a percentage."""
        if self.attempts == 0:
            return 0.0
        return (self.successes / self.attempts) * 100

    def to_dict(self) -> Dict:
        return {
            "attempts": self.attempts,
            "successes": self.successes,
            "failures": self.failures,
            "success_rate": f"{self.success_rate:.1f}%",
            "avg_latency_ms": round(self.avg_latency_ms, 2),
            "failure_kinds": dict(self.failure_kinds),
            "last_failure": self.last_failure,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
        }


class FailoverMetrics:
    """
    Thread-safe in-memory counters for provider attempts.

    Usage:
        metrics = FailoverMetrics()
        metrics.record_success("Doubao", latency_ms=812.0)
        metrics.record_failure("OpenAI", kind="rate_limit", message="429 ...")
        metrics.to_dict()
    """

    def __init__(self):
        self._lock = Lock()
        self._providers: Dict[str, ProviderStats] = {}
        self._exhausted = 0

    def _stats(self, provider: str) -> ProviderStats:
        if provider not in self._providers:
            self._providers[provider] = ProviderStats()
        return self._providers[provider]

    def record_success(self, provider: str, latency_ms: float = 0.0) -> None:
        with self._lock:
            stats = self._stats(provider)
            stats.attempts += 1
            stats.successes += 1
            stats.total_latency_ms += latency_ms
            stats.last_success_at = datetime.now(timezone.utc)

    def record_failure(
        self,
        provider: str,
        kind: str,
        message: str = "",
        latency_ms: float = 0.0,
    ) -> None:
        with self._lock:
            stats = self._stats(provider)
            stats.attempts += 1
            stats.failures += 1
            stats.total_latency_ms += latency_ms
            stats.failure_kinds[kind] += 1
            stats.last_failure = message

    def record_exhausted(self) -> None:
        with self._lock:
            self._exhausted += 1

    def get(self, provider: str) -> Optional[ProviderStats]:
        """Counters for a provider, or None if it was never tried."""
        with self._lock:
            return self._providers.get(provider)

    @property
    def exhausted(self) -> int:
        return self._exhausted

    def to_dict(self) -> Dict:
        with self._lock:
            return {
                "exhausted": self._exhausted,
                "providers": {name: stats.to_dict() for name, stats in self._providers.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._providers.clear()
            self._exhausted = 0
