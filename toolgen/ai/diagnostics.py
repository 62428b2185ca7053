"""
Provider diagnostics - tells an operator whether each configured backend
is reachable and authenticated, and what to do when it is not.

Each provider goes through four staged checks, stopping at the first one
that fails:

    1. config          the provider has a credential and a base URL
    2. network         the base URL's host resolves
    3. endpoint        the base URL answers HTTP at all (any status < 500)
    4. authentication  a tiny test prompt succeeds

Every network step is bounded by CHECK_TIMEOUT, far below the generation
timeouts, so a dead endpoint cannot stall the diagnose endpoint.
"""

import asyncio
import logging
import socket
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import httpx

from toolgen.ai.failover import FAILURE_DESCRIPTIONS, FailureKind, classify_failure
from toolgen.ai.prompts import CHECK_PROMPT
from toolgen.ai.providers.base import Provider, measure_latency
from toolgen.core.errors import ProviderError

logger = logging.getLogger("toolgen.ai.diagnostics")

# Seconds allowed for each network step of a diagnosis
CHECK_TIMEOUT = 10.0


class CheckStage(str, Enum):
    CONFIG = "config"
    NETWORK = "network"
    ENDPOINT = "endpoint"
    AUTHENTICATION = "authentication"


class DiagnosticStatus(str, Enum):
    """Overall verdict, named after the first stage that failed."""
    OK = "ok"
    CONFIG_INCOMPLETE = "config_incomplete"
    CONNECTION_FAILED = "connection_failed"
    ENDPOINT_UNREACHABLE = "endpoint_unreachable"
    AUTHENTICATION_FAILED = "authentication_failed"


STAGE_FAILURE_STATUS = {
    CheckStage.CONFIG: DiagnosticStatus.CONFIG_INCOMPLETE,
    CheckStage.NETWORK: DiagnosticStatus.CONNECTION_FAILED,
    CheckStage.ENDPOINT: DiagnosticStatus.ENDPOINT_UNREACHABLE,
    CheckStage.AUTHENTICATION: DiagnosticStatus.AUTHENTICATION_FAILED,
}

SUMMARIES = {
    DiagnosticStatus.OK: "All checks passed, the provider is usable",
    DiagnosticStatus.CONFIG_INCOMPLETE: "Complete the configuration before diagnosing",
    DiagnosticStatus.CONNECTION_FAILED: "The API host cannot be reached, check the network",
    DiagnosticStatus.ENDPOINT_UNREACHABLE: "The API endpoint does not answer, check the base URL",
    DiagnosticStatus.AUTHENTICATION_FAILED: "The endpoint answers but the test request failed",
}

SUGGESTIONS = {
    FailureKind.CONNECTION: "Check network access to the API host, or raise AI_READ_TIMEOUT in .env",
    FailureKind.AUTHENTICATION: "Check the API key for this provider in .env",
    FailureKind.RATE_LIMIT: "Wait for the quota window to reset, or add a backup endpoint",
    FailureKind.SERVICE_UNAVAILABLE: "The backend is degraded; retry later",
    FailureKind.BILLING: "Top up the account balance for this provider",
    FailureKind.UNKNOWN: "Inspect the message above and the provider's status page",
}

CONFIG_SUGGESTION = "Add the API key to .env (or run 'config' in the CLI), then reload"


@dataclass
class CheckResult:
    """Outcome of one diagnostic stage."""
    stage: CheckStage
    success: bool
    message: str
    failure_kind: Optional[FailureKind] = None

    def to_dict(self) -> dict:
        return {"stage": self.stage.value, "success": self.success, "message": self.message}


@dataclass
class DiagnosticResult:
    """Outcome of checking a single provider."""
    provider: str
    checks: List[CheckResult] = field(default_factory=list)
    latency_ms: float = 0.0
    failure_kind: Optional[FailureKind] = None

    @property
    def failed_check(self) -> Optional[CheckResult]:
        for check in self.checks:
            if not check.success:
                return check
        return None

    @property
    def success(self) -> bool:
        return bool(self.checks) and self.failed_check is None

    @property
    def status(self) -> DiagnosticStatus:
        failed = self.failed_check
        if failed is None:
            return DiagnosticStatus.OK
        return STAGE_FAILURE_STATUS[failed.stage]

    @property
    def message(self) -> Optional[str]:
        failed = self.failed_check
        return failed.message if failed else None

    @property
    def summary(self) -> str:
        if self.success:
            return f"{self.provider}: ok ({self.latency_ms:.0f}ms)"
        if self.failure_kind is not None:
            return f"{self.provider}: {FAILURE_DESCRIPTIONS[self.failure_kind]} - {self.message}"
        return f"{self.provider}: {SUMMARIES[self.status]} - {self.message}"

    @property
    def suggestion(self) -> Optional[str]:
        if self.success:
            return None
        if self.status == DiagnosticStatus.CONFIG_INCOMPLETE:
            return CONFIG_SUGGESTION
        return SUGGESTIONS[self.failure_kind or FailureKind.UNKNOWN]

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "success": self.success,
            "status": self.status.value,
            "summary": SUMMARIES[self.status],
            "latency_ms": round(self.latency_ms, 2),
            "failure_kind": self.failure_kind.value if self.failure_kind else None,
            "message": self.message,
            "suggestion": self.suggestion,
            "checks": [check.to_dict() for check in self.checks],
        }


# ---------------------------------------------------------------------------
# STAGES
# ---------------------------------------------------------------------------

def check_config(provider: Provider) -> CheckResult:
    if not getattr(provider, "configured", True):
        return CheckResult(CheckStage.CONFIG, False, "API key not configured")
    base_url = getattr(provider, "base_url", None)
    detail = f"base URL: {base_url}" if base_url else "SDK default base URL"
    return CheckResult(CheckStage.CONFIG, True, f"configuration complete ({detail})")


async def resolve_host(host: str, port: int, timeout: float) -> None:
    """Resolve host, raising socket.gaierror or asyncio.TimeoutError."""
    loop = asyncio.get_running_loop()
    await asyncio.wait_for(loop.getaddrinfo(host, port, type=socket.SOCK_STREAM), timeout)


async def check_network(base_url: str, timeout: float) -> CheckResult:
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        return CheckResult(CheckStage.NETWORK, False, f"cannot parse API address: {e}")

    host = url.host
    if not host:
        return CheckResult(CheckStage.NETWORK, False, f"API address has no host: {base_url}")

    port = url.port or (443 if url.scheme == "https" else 80)
    try:
        await resolve_host(host, port, timeout)
    except socket.gaierror:
        return CheckResult(CheckStage.NETWORK, False, f"DNS resolution failed for host: {host}")
    except asyncio.TimeoutError:
        return CheckResult(CheckStage.NETWORK, False, f"DNS resolution timed out for host: {host}")
    except OSError as e:
        return CheckResult(CheckStage.NETWORK, False, f"network check failed: {e}")

    return CheckResult(CheckStage.NETWORK, True, f"host resolves: {host}")


async def check_endpoint(
    base_url: str,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CheckResult:
    """Unauthenticated GET; any answer below 500 proves the endpoint is there."""
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(base_url)
    except httpx.TimeoutException:
        return CheckResult(CheckStage.ENDPOINT, False, f"connection timed out: no answer within {timeout:.0f}s")
    except httpx.ConnectError as e:
        return CheckResult(CheckStage.ENDPOINT, False, f"connection refused: {e}")
    except httpx.HTTPError as e:
        return CheckResult(CheckStage.ENDPOINT, False, f"network error: {e}")

    code = response.status_code
    if code >= 500:
        return CheckResult(CheckStage.ENDPOINT, False, f"endpoint answered with HTTP {code}")
    return CheckResult(CheckStage.ENDPOINT, True, f"endpoint reachable (HTTP {code})")


async def check_authentication(provider: Provider, timeout: float) -> CheckResult:
    try:
        await asyncio.wait_for(provider.attempt(CHECK_PROMPT, system_prompt="Answer tersely."), timeout)
    except asyncio.TimeoutError as e:
        message = f"test request timed out after {timeout:.0f}s"
        return CheckResult(CheckStage.AUTHENTICATION, False, message, classify_failure(message, e))
    except ProviderError as e:
        return CheckResult(CheckStage.AUTHENTICATION, False, e.message, classify_failure(e.message, e.cause))
    except Exception as e:
        message = str(e) or type(e).__name__
        return CheckResult(CheckStage.AUTHENTICATION, False, message, classify_failure(message, e))

    return CheckResult(CheckStage.AUTHENTICATION, True, "test request succeeded")


# ---------------------------------------------------------------------------
# DIAGNOSIS
# ---------------------------------------------------------------------------

async def diagnose_provider(
    provider: Provider,
    timeout: float = CHECK_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DiagnosticResult:
    """
    Run the staged checks for one provider, stopping at the first failure.

    The network and endpoint stages are skipped for providers that do not
    expose a base URL.
    """
    start_time = time.time()
    result = DiagnosticResult(provider=provider.name)

    result.checks.append(check_config(provider))
    if not result.checks[-1].success:
        result.latency_ms = measure_latency(start_time)
        return result

    base_url = getattr(provider, "base_url", None)
    if base_url:
        check = await check_network(base_url, timeout)
        result.checks.append(check)
        if check.success:
            check = await check_endpoint(base_url, timeout, transport)
            result.checks.append(check)
        if not check.success:
            result.failure_kind = FailureKind.CONNECTION
            result.latency_ms = measure_latency(start_time)
            return result

    check = await check_authentication(provider, timeout)
    result.checks.append(check)
    if not check.success:
        result.failure_kind = check.failure_kind

    result.latency_ms = measure_latency(start_time)
    return result


async def diagnose_providers(
    providers: Sequence[Provider],
    timeout: float = CHECK_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[DiagnosticResult]:
    """Check every provider in priority order."""
    results = []
    for provider in providers:
        result = await diagnose_provider(provider, timeout, transport)
        if result.success:
            logger.info(result.summary)
        else:
            logger.warning(result.summary)
        results.append(result)
    return results


def overall_status(results: Sequence[DiagnosticResult]) -> str:
    """One line for all providers: how many are usable."""
    healthy = sum(1 for result in results if result.success)
    if not results:
        return "no provider configured"
    if healthy == len(results):
        return "all providers healthy"
    if healthy == 0:
        return "no provider usable"
    return f"{healthy}/{len(results)} providers usable"
