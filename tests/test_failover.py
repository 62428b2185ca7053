"""
Tests for the FailoverExecutor - ring scan, sticky index, validation
and failure classification.
"""

import asyncio

import httpx
import pytest

from toolgen.ai.failover import (
    FailoverExecutor,
    FailureKind,
    check_content,
    classify_failure,
    is_valid_html,
)
from toolgen.core.errors import (
    AllProvidersFailedError,
    ConfigurationError,
    ProviderError,
    ValidationError,
)


def padded(prefix: str, length: int) -> str:
    return prefix + "x" * (length - len(prefix))


class TestContentValidation:
    """Tests for is_valid_html() and check_content()."""

    def test_boundary_lengths(self):
        assert is_valid_html(padded("<html>", 101)) is True
        assert is_valid_html(padded("<html>", 100)) is False
        assert is_valid_html(padded("<html>", 99)) is False

    def test_doctype_marker(self):
        assert is_valid_html(padded("<!DOCTYPE html>", 150)) is True

    def test_missing_marker(self):
        assert is_valid_html(padded("<div>", 150)) is False

    def test_markers_are_case_sensitive(self):
        assert is_valid_html(padded("<!doctype html><HTML>", 150)) is False

    def test_none(self):
        assert is_valid_html(None) is False

    def test_check_content_messages(self, valid_html):
        with pytest.raises(ValidationError, match="too short"):
            check_content("<html></html>")
        with pytest.raises(ValidationError, match="HTML root marker"):
            check_content(padded("Sorry, I cannot", 150))
        assert check_content(valid_html) == valid_html


class TestClassifyFailure:
    """Tests for classify_failure()."""

    @pytest.mark.parametrize("message,kind", [
        ("connection failed: reset by peer", FailureKind.CONNECTION),
        ("Request timeout after 120s", FailureKind.CONNECTION),
        ("401 Unauthorized", FailureKind.AUTHENTICATION),
        ("Invalid API key provided", FailureKind.AUTHENTICATION),
        ("429 Too Many Requests", FailureKind.RATE_LIMIT),
        ("You exceeded your current quota", FailureKind.RATE_LIMIT),
        ("503 Service Unavailable", FailureKind.SERVICE_UNAVAILABLE),
        ("payment required", FailureKind.BILLING),
        ("账户欠费", FailureKind.BILLING),
        ("something odd happened", FailureKind.UNKNOWN),
        ("", FailureKind.UNKNOWN),
    ])
    def test_markers(self, message, kind):
        assert classify_failure(message) == kind

    def test_transport_cause_is_connection(self):
        cause = httpx.ConnectError("boom")
        assert classify_failure("boom", cause) == FailureKind.CONNECTION

    def test_builtin_timeout_cause_is_connection(self):
        assert classify_failure("read stalled", TimeoutError()) == FailureKind.CONNECTION


class TestExecutorConstruction:
    """Tests for FailoverExecutor set-up."""

    def test_requires_providers(self):
        with pytest.raises(ConfigurationError):
            FailoverExecutor([])

    def test_initial_state(self, make_provider):
        executor = FailoverExecutor([make_provider("A"), make_provider("B")])
        assert executor.preferred_index == 0
        assert executor.provider_count == 2
        assert executor.provider_names == ["A", "B"]


class TestGenerate:
    """Tests for FailoverExecutor.generate()."""

    @pytest.mark.asyncio
    async def test_first_provider_success(self, make_provider, valid_html):
        a, b = make_provider("A"), make_provider("B")
        executor = FailoverExecutor([a, b])

        assert await executor.generate("pomodoro timer") == valid_html
        assert len(a.calls) == 1
        assert b.calls == []
        assert executor.preferred_index == 0

    @pytest.mark.asyncio
    async def test_fails_over_and_sticks(self, make_provider, failing_provider, valid_html):
        a = failing_provider("A")
        b = make_provider("B")
        executor = FailoverExecutor([a, b])

        assert await executor.generate("pomodoro timer") == valid_html
        assert executor.preferred_index == 1

        # The next call starts at B and never touches A
        await executor.generate("unit converter")
        assert len(a.calls) == 1
        assert len(b.calls) == 2

    @pytest.mark.asyncio
    async def test_scan_wraps_around_from_preferred(self, make_provider, failing_provider):
        a, b, c = make_provider("A"), failing_provider("B"), failing_provider("C")
        executor = FailoverExecutor([a, b, c])
        executor._set_preferred_index(1)

        await executor.generate("pomodoro timer")

        assert len(b.calls) == 1
        assert len(c.calls) == 1
        assert len(a.calls) == 1
        assert executor.preferred_index == 0

    @pytest.mark.asyncio
    async def test_all_fail_reports_every_attempt_in_order(self, failing_provider):
        a = failing_provider("A", "401 unauthorized")
        b = failing_provider("B", "429 rate limit")
        executor = FailoverExecutor([a, b])

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await executor.generate("pomodoro timer")

        error = exc_info.value
        assert error.attempts == [("A", "401 unauthorized"), ("B", "429 rate limit")]
        assert error.provider_names == ["A", "B"]
        assert "1. A: 401 unauthorized" in str(error)
        assert executor.preferred_index == 0
        assert executor.metrics.exhausted == 1

    @pytest.mark.asyncio
    async def test_each_provider_tried_once_per_call(self, failing_provider):
        providers = [failing_provider(name) for name in "ABC"]
        executor = FailoverExecutor(providers)

        with pytest.raises(AllProvidersFailedError):
            await executor.generate("pomodoro timer")

        assert [len(p.calls) for p in providers] == [1, 1, 1]

    @pytest.mark.asyncio
    async def test_invalid_content_advances_scan(self, make_provider, valid_html):
        a = make_provider("A", content="I'm sorry, I can't help with that.")
        b = make_provider("B")
        executor = FailoverExecutor([a, b])

        assert await executor.generate("pomodoro timer") == valid_html
        assert executor.preferred_index == 1
        assert executor.metrics.get("A").failure_kinds == {"unknown": 1}

    @pytest.mark.asyncio
    async def test_unexpected_exception_advances_scan(self, make_provider, valid_html):
        a = make_provider("A", error=RuntimeError("provider bug"))
        b = make_provider("B")
        executor = FailoverExecutor([a, b])

        assert await executor.generate("pomodoro timer") == valid_html

    @pytest.mark.asyncio
    async def test_system_prompt_forwarded(self, make_provider):
        a = make_provider("A")
        executor = FailoverExecutor([a])

        await executor.generate("pomodoro timer", system_prompt="Be brief.")
        assert a.calls == [("pomodoro timer", "Be brief.")]

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, make_provider, failing_provider):
        a = failing_provider("A", "503 service unavailable")
        b = make_provider("B")
        executor = FailoverExecutor([a, b])

        await executor.generate("pomodoro timer")

        stats_a = executor.metrics.get("A")
        stats_b = executor.metrics.get("B")
        assert stats_a.failures == 1
        assert stats_a.failure_kinds == {"service_unavailable": 1}
        assert stats_a.last_failure == "503 service unavailable"
        assert stats_b.successes == 1

    @pytest.mark.asyncio
    async def test_concurrent_calls_keep_index_in_range(self, make_provider, failing_provider, valid_html):
        providers = [failing_provider("A"), make_provider("B"), make_provider("C")]
        executor = FailoverExecutor(providers)

        results = await asyncio.gather(*(executor.generate(f"tool {i}") for i in range(10)))

        assert all(result == valid_html for result in results)
        assert 0 <= executor.preferred_index < executor.provider_count


class TestLifecycle:
    """Tests for close() and to_dict()."""

    @pytest.mark.asyncio
    async def test_close_continues_after_error(self, make_provider):
        a = make_provider("A", close_error=RuntimeError("already closed"))
        b = make_provider("B")
        executor = FailoverExecutor([a, b])

        await executor.close()

        assert a.closed is True
        assert b.closed is True

    @pytest.mark.asyncio
    async def test_to_dict(self, make_provider, failing_provider):
        executor = FailoverExecutor([failing_provider("A"), make_provider("B")])
        await executor.generate("pomodoro timer")

        data = executor.to_dict()

        assert data["providers"] == ["A", "B"]
        assert data["preferred_index"] == 1
        assert data["preferred_provider"] == "B"
        assert data["metrics"]["exhausted"] == 0
        assert set(data["metrics"]["providers"]) == {"A", "B"}


class TestProviderError:
    """Tests for the error types raised around failover."""

    def test_validation_error_is_a_provider_error(self):
        assert issubclass(ValidationError, ProviderError)

    def test_to_dict(self):
        error = AllProvidersFailedError([("A", "x"), ("B", "y")])
        assert error.to_dict() == {
            "error": "all_providers_failed",
            "attempts": [
                {"provider": "A", "message": "x"},
                {"provider": "B", "message": "y"},
            ],
        }
