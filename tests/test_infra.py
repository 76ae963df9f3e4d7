"""
Tests for structured logging, configuration and the LLM provider plumbing.
"""

import json
import logging
import sys

import pytest
from unittest.mock import AsyncMock, MagicMock

from tcdecoder.config import Settings, settings
from tcdecoder.logging import JSONFormatter, TextFormatter, get_logger, setup_logging


def _record(msg="Scan complete", **extra):
    record = logging.LogRecord(
        name="tcdecoder.scanner", level=logging.INFO, pathname=__file__,
        lineno=1, msg=msg, args=(), exc_info=None,
    )
    for key, val in extra.items():
        setattr(record, key, val)
    return record


class TestLogging:

    def test_logger_namespace(self):
        assert get_logger("scanner").name == "tcdecoder.scanner"

    def test_json_formatter_fields(self):
        line = JSONFormatter().format(_record(spans_count=3, severity="High"))
        entry = json.loads(line)
        assert entry["level"] == "INFO"
        assert entry["logger"] == "tcdecoder.scanner"
        assert entry["message"] == "Scan complete"
        assert entry["spans_count"] == 3
        assert entry["severity"] == "High"
        assert "timestamp" in entry

    def test_json_formatter_drops_unknown_extras(self):
        entry = json.loads(JSONFormatter().format(_record(secret="nope")))
        assert "secret" not in entry

    def test_json_formatter_exception(self):
        try:
            raise ValueError("bad span")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad span" in entry["exception"]

    def test_text_formatter(self):
        line = TextFormatter().format(_record())
        assert "tcdecoder.scanner: Scan complete" in line

    def test_setup_logging_is_idempotent(self):
        setup_logging()
        root = setup_logging()
        assert root.name == "tcdecoder"
        assert len(root.handlers) == 1


class TestConfig:

    def test_defaults(self):
        assert settings.MAX_HIGHLIGHTS == 50
        assert settings.SNIPPET_WINDOW == 250
        assert settings.CORE_VERSION == "1.0.0"

    def test_settings_are_frozen(self):
        with pytest.raises(Exception):
            settings.MAX_HIGHLIGHTS = 10

    def test_override_by_construction(self):
        custom = Settings(MAX_HIGHLIGHTS=10)
        assert custom.MAX_HIGHLIGHTS == 10


class TestProviderFactory:

    def test_unknown_provider(self):
        from tcdecoder.llm.factory import get_provider
        with pytest.raises(ValueError):
            get_provider("nope")

    @pytest.mark.asyncio
    async def test_gemini_warmup_without_key(self, monkeypatch):
        from tcdecoder.llm import gemini
        monkeypatch.setattr(gemini, "settings", Settings(GEMINI_API_KEY=""))
        provider = gemini.GeminiProvider()
        with pytest.raises(RuntimeError):
            await provider.warmup()


class TestCircuitBreaker:

    def test_opens_after_threshold(self):
        from tcdecoder.llm.gemini import CircuitBreaker
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        for _ in range(3):
            cb.record_failure()
        assert cb.is_open

    def test_success_closes(self):
        from tcdecoder.llm.gemini import CircuitBreaker
        cb = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        cb.record_failure()
        cb.record_success()
        cb.record_failure()
        assert not cb.is_open

    def test_half_open_after_timeout(self):
        from tcdecoder.llm.gemini import CircuitBreaker
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        assert cb.state == "half-open"


class TestGeminiFallback:
    """Primary model failures fall back once, then count against the breaker."""

    @pytest.fixture
    def provider(self):
        from tcdecoder.llm.gemini import GeminiProvider
        return GeminiProvider(api_key="test-key", model="gemini-primary")

    @pytest.mark.asyncio
    async def test_falls_back_when_primary_fails(self, provider, monkeypatch):
        from tcdecoder.llm.gemini import FALLBACK_MODEL
        call = AsyncMock(side_effect=[RuntimeError("boom"), "- Fallback summary line."])
        monkeypatch.setattr(provider, "_call_model", call)

        result = await provider.generate("prompt")
        assert result == "- Fallback summary line."
        assert [c.args[0] for c in call.call_args_list] == ["gemini-primary", FALLBACK_MODEL]
        assert provider.circuit_breaker.state == "closed"

    @pytest.mark.asyncio
    async def test_primary_success_skips_fallback(self, provider, monkeypatch):
        call = AsyncMock(return_value="ok")
        monkeypatch.setattr(provider, "_call_model", call)
        assert await provider.generate("prompt") == "ok"
        assert call.await_count == 1

    @pytest.mark.asyncio
    async def test_both_fail_counts_one_failure(self, provider, monkeypatch):
        call = AsyncMock(side_effect=[RuntimeError("primary"), ValueError("fallback")])
        monkeypatch.setattr(provider, "_call_model", call)
        with pytest.raises(ValueError):
            await provider.generate("prompt")
        assert provider.circuit_breaker._failures == 1
        assert not provider.circuit_breaker.is_open

    @pytest.mark.asyncio
    async def test_breaker_opens_and_fails_fast(self, provider, monkeypatch):
        from tcdecoder.llm.gemini import CircuitOpenError
        call = AsyncMock(side_effect=RuntimeError("down"))
        monkeypatch.setattr(provider, "_call_model", call)
        for _ in range(3):
            with pytest.raises(RuntimeError):
                await provider.generate("prompt")
        assert provider.circuit_breaker.is_open

        with pytest.raises(CircuitOpenError):
            await provider.generate("prompt")
        assert call.await_count == 6

    @pytest.mark.asyncio
    async def test_fallback_model_as_primary_does_not_retry_itself(self, monkeypatch):
        from tcdecoder.llm.gemini import FALLBACK_MODEL, GeminiProvider
        provider = GeminiProvider(api_key="test-key", model=FALLBACK_MODEL)
        call = AsyncMock(side_effect=RuntimeError("down"))
        monkeypatch.setattr(provider, "_call_model", call)
        with pytest.raises(RuntimeError):
            await provider.generate("prompt")
        assert call.await_count == 1
        assert provider.circuit_breaker._failures == 1


class TestGeminiRetry:
    """Transient errors are retried with backoff; others surface at once."""

    def _provider_with(self, monkeypatch, outcomes):
        from tcdecoder.llm import gemini
        provider = gemini.GeminiProvider(api_key="test-key", model="gemini-primary")
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(side_effect=outcomes)
        monkeypatch.setattr(provider, "_get_client", lambda: client)
        sleep = AsyncMock()
        monkeypatch.setattr(gemini.asyncio, "sleep", sleep)
        return provider, client.aio.models.generate_content, sleep

    @pytest.mark.asyncio
    async def test_transient_error_retried(self, monkeypatch):
        provider, generate, sleep = self._provider_with(
            monkeypatch, [RuntimeError("503 unavailable"), MagicMock(text="ok")],
        )
        result = await provider._call_model("gemini-primary", "prompt", MagicMock(), max_retries=3)
        assert result == "ok"
        assert generate.await_count == 2
        sleep.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_non_transient_error_not_retried(self, monkeypatch):
        provider, generate, sleep = self._provider_with(
            monkeypatch, [ValueError("invalid argument")],
        )
        with pytest.raises(ValueError):
            await provider._call_model("gemini-primary", "prompt", MagicMock(), max_retries=3)
        assert generate.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, monkeypatch):
        provider, generate, _ = self._provider_with(
            monkeypatch, [RuntimeError("429 rate limit")] * 2,
        )
        with pytest.raises(RuntimeError):
            await provider._call_model("gemini-primary", "prompt", MagicMock(), max_retries=2)
        assert generate.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_response_text(self, monkeypatch):
        provider, _, _ = self._provider_with(monkeypatch, [MagicMock(text=None)])
        assert await provider._call_model("gemini-primary", "prompt", MagicMock()) == ""
