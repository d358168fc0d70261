"""
Unit tests for quick_translate.py - the standalone translator CLI
"""
import argparse

import pytest

import quick_translate
from tests.conftest import StubProvider


def make_args(input_file, **overrides):
    values = dict(
        input=str(input_file),
        language="fr",
        context="",
        output=None,
        model="gemini-1.5-flash-8b",
        batch_size=2,
        api_key="test-key",
        max_attempts=1,
        strict=False,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


class TestTranslateFile:
    """Test translate_file() end to end with a stub oracle."""

    @pytest.mark.asyncio
    async def test_writes_translation_next_to_input(self, srt_file, monkeypatch):
        provider = StubProvider()
        monkeypatch.setattr(quick_translate, "create_provider", lambda api_key, model: provider)

        code = await quick_translate.translate_file(make_args(srt_file))

        output = srt_file.with_name(f"{srt_file.stem}.fr.srt")
        assert code == 0
        assert output.read_text(encoding="utf-8").count("TRANSLATED:") == 2
        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_bad_batch_size_is_reported(self, srt_file, capsys):
        code = await quick_translate.translate_file(make_args(srt_file, batch_size=0))

        assert code == 1
        assert "❌" in capsys.readouterr().out
        assert not srt_file.with_name(f"{srt_file.stem}.fr.srt").exists()

    @pytest.mark.asyncio
    async def test_missing_input(self, tmp_path, capsys):
        code = await quick_translate.translate_file(make_args(tmp_path / "nope.srt"))

        assert code == 1
        assert "not found" in capsys.readouterr().out
