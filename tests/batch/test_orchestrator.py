"""
Unit tests for core.batch.orchestrator module.

Tests SubtitleOrchestrator, OrchestratorConfig, and OrchestratorResult.
"""

import pytest
import asyncio

from core.batch.cancellation import CancellationToken
from core.batch.orchestrator import (
    SubtitleOrchestrator,
    OrchestratorConfig,
    OrchestratorResult,
)
from core.batch.translation_client import BatchTranslator, RetryPolicy
from core.errors import (
    OracleUnavailableError,
    SubtitleFormatError,
    TranslationCancelledError,
    ValidationError,
)
from core.srt_parser import parse_replicas
from tests.conftest import StubProvider, make_srt


def build(provider, batch_size=50, sleep=None, policy=None, strict=False):
    kwargs = {"sleep": sleep} if sleep else {}
    translator = BatchTranslator(provider, policy or RetryPolicy(max_attempts=3), **kwargs)
    return SubtitleOrchestrator(
        translator, OrchestratorConfig(batch_size=batch_size, strict_parsing=strict)
    )


class TestOrchestratorConfig:
    """Tests for OrchestratorConfig dataclass."""

    def test_config_defaults(self):
        config = OrchestratorConfig()
        assert config.batch_size == 50
        assert config.separator == "\n"
        assert config.strict_parsing is False

    def test_invalid_batch_size_rejected(self):
        with pytest.raises(ValidationError):
            build(StubProvider(), batch_size=0)


class TestOrchestratorResult:
    """Tests for OrchestratorResult dataclass."""

    def test_result_defaults(self):
        result = OrchestratorResult(job_id="j", translated_text="x")
        assert result.replica_count == 0
        assert result.metadata == {}


class TestSubtitleOrchestrator:
    """Tests for SubtitleOrchestrator.process."""

    @pytest.mark.asyncio
    async def test_one_call_per_batch_in_order(self):
        provider = StubProvider()
        text = make_srt(120)
        replicas = parse_replicas(text)

        result = await build(provider).process(text, "French", "Drama")

        assert len(provider.calls) == 3
        assert provider.calls[0]["text"] == "".join(replicas[:50])
        assert provider.calls[1]["text"] == "".join(replicas[50:100])
        assert provider.calls[2]["text"] == "".join(replicas[100:])
        assert all(c["language"] == "French" and c["context"] == "Drama" for c in provider.calls)
        assert result.replica_count == 120
        assert result.batch_count == 3

    @pytest.mark.asyncio
    async def test_output_is_batches_joined_with_separator(self):
        text = make_srt(5)
        replicas = parse_replicas(text)

        result = await build(StubProvider(), batch_size=2).process(text, "uk")

        expected = "".join(
            "TRANSLATED:" + "".join(replicas[i:i + 2]) + "\n" for i in range(0, 5, 2)
        )
        assert result.translated_text == expected

    @pytest.mark.asyncio
    async def test_progress_sequence(self):
        values = []
        await build(StubProvider()).process(make_srt(120), "uk", progress_callback=values.append)

        assert values == pytest.approx([0.0, 50 / 120, 100 / 120, 1.0])

    @pytest.mark.asyncio
    async def test_empty_document_completes_without_calls(self):
        provider = StubProvider()
        values = []

        result = await build(provider).process("", "uk", progress_callback=values.append)

        assert result.translated_text == ""
        assert provider.calls == []
        assert values == [0.0, 1.0]

    @pytest.mark.asyncio
    async def test_transient_failures_do_not_lose_batches(self, fake_sleep):
        provider = StubProvider(fail_times=2)
        text = make_srt(60)

        result = await build(provider, sleep=fake_sleep).process(text, "uk")

        assert result.batch_count == 2
        assert len(provider.calls) == 4
        assert result.metadata["oracle_retries"] == 2
        assert result.translated_text.count("TRANSLATED:") == 2

    @pytest.mark.asyncio
    async def test_oracle_unavailable_propagates(self, fake_sleep):
        provider = StubProvider(fail_times=100)

        with pytest.raises(OracleUnavailableError):
            await build(provider, sleep=fake_sleep).process(make_srt(10), "uk")

    @pytest.mark.asyncio
    async def test_strict_parsing(self):
        text = make_srt(3) + make_srt(2, start=7)

        with pytest.raises(SubtitleFormatError):
            await build(StubProvider(), strict=True).process(text, "uk")

    @pytest.mark.asyncio
    async def test_cancel_before_start_makes_no_calls(self):
        provider = StubProvider()
        token = CancellationToken()
        token.cancel()

        with pytest.raises(TranslationCancelledError):
            await build(provider).process(make_srt(10), "uk", cancel_token=token)
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_cancel_mid_run_stops_after_current_batch(self):
        provider = StubProvider(delay=0.05)
        token = CancellationToken()
        values = []

        def on_progress(value):
            values.append(value)
            if value > 0:
                token.cancel()

        with pytest.raises(TranslationCancelledError):
            await build(provider, batch_size=2).process(
                make_srt(10), "uk", progress_callback=on_progress, cancel_token=token
            )

        assert len(provider.calls) == 1
        assert 1.0 not in values
