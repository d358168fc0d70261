"""
Pytest configuration and shared fixtures for AI Subtitle Translator tests.
"""
import sys
import asyncio
import pytest
from pathlib import Path
from typing import List, Optional

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from ai_providers import AIResponse, AIProviderType
from config.settings import Settings
from core.batch import RetryPolicy
from core.job_store import SessionStore
from core.media import SubtitleTrack, VideoInfo


# ============================================================================
# Helpers
# ============================================================================

def make_srt(count: int, start: int = 1, text: str = "Line {n}") -> str:
    """Well-formed SRT document with ``count`` entries."""
    blocks = []
    for n in range(start, start + count):
        blocks.append(
            f"{n}\n00:00:{n % 60:02d},000 --> 00:00:{n % 60:02d},900\n{text.format(n=n)}\n\n"
        )
    return "".join(blocks)


class StubProvider:
    """
    Oracle stand-in.

    Echoes each batch prefixed with ``TRANSLATED:``; the first ``fail_times``
    calls raise instead. ``delay`` makes each call take that long.
    """

    def __init__(self, fail_times: int = 0, delay: float = 0.0, error: Exception = None):
        self.fail_times = fail_times
        self.delay = delay
        self.error = error or ConnectionError("oracle down")
        self.calls: List[dict] = []

    async def translate_subtitles(self, text: str, target_lang: str, context: str = "",
                                  model: Optional[str] = None) -> AIResponse:
        self.calls.append({"text": text, "language": target_lang, "context": context, "model": model})
        if self.delay:
            await asyncio.sleep(self.delay)
        if len(self.calls) <= self.fail_times:
            raise self.error
        return AIResponse(
            content=f"TRANSLATED:{text}",
            model=model or "stub",
            provider=AIProviderType.GEMINI,
        )


class FakeToolkit:
    """ffmpeg stand-in with two SubRip tracks at container streams 2 and 5."""

    def __init__(self):
        self.extracted = []

    async def initialize(self):
        return "/usr/bin/ffmpeg"

    async def probe(self, video_path):
        return VideoInfo(path=video_path, subtitle_tracks=[
            SubtitleTrack(index=2, language="eng", format="subrip", title="English"),
            SubtitleTrack(index=5, language=None, format="subrip"),
        ])

    async def extract(self, video_path, stream_index):
        self.extracted.append(stream_index)
        return make_srt(3, text="Extracted {n}")


class FakeSleep:
    """Records backoff delays instead of sleeping."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)
        await asyncio.sleep(0)


# ============================================================================
# Fixtures: Configuration & Settings
# ============================================================================

@pytest.fixture
def test_settings(tmp_path):
    """Settings isolated from the developer's .env."""
    return Settings(
        _env_file=None,
        google_api_key="test_google_key",
        oracle_retry_delay=0.01,
        oracle_max_retry_delay=0.05,
        oracle_max_attempts=3,
        data_dir=tmp_path / "data",
    )


@pytest.fixture
def fast_retry_policy():
    """Bounded policy with negligible delays."""
    return RetryPolicy(max_attempts=3, base_delay=0.01, backoff_factor=2.0, max_delay=0.05)


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def store():
    return SessionStore(retention_seconds=3600)


@pytest.fixture
def stub_provider():
    return StubProvider()


# ============================================================================
# Fixtures: Sample Data
# ============================================================================

@pytest.fixture
def sample_srt():
    """Three well-formed entries."""
    return (
        "1\n00:00:01,000 --> 00:00:02,000\nHello there.\n\n"
        "2\n00:00:03,000 --> 00:00:04,000\nGeneral Kenobi!\n\n"
        "3\n00:00:05,000 --> 00:00:06,000\nYou are a bold one.\n\n"
    )


@pytest.fixture
def srt_file(tmp_path, sample_srt):
    path = tmp_path / "movie.srt"
    path.write_text(sample_srt, encoding="utf-8")
    return path


@pytest.fixture
def ffmpeg_listing():
    """stderr of `ffmpeg -i movie.mkv` with mixed subtitle streams."""
    return (
        "Input #0, matroska,webm, from 'movie.mkv':\n"
        "  Duration: 01:42:13.05, start: 0.000000, bitrate: 4012 kb/s\n"
        "  Stream #0:0(eng): Video: h264 (High), yuv420p, 1920x1080, 23.98 fps (default)\n"
        "  Stream #0:1(eng): Audio: ac3, 48000 Hz, 5.1(side), fltp, 448 kb/s (default)\n"
        "  Stream #0:2(eng): Subtitle: subrip (default)\n"
        "    Metadata:\n"
        "      title           : English SDH\n"
        "  Stream #0:3(fre): Subtitle: ass\n"
        "    Metadata:\n"
        "      title           : Français\n"
        "  Stream #0:4(ukr): Subtitle: subrip\n"
        "  Stream #0:5: Attachment: ttf\n"
        "    Metadata:\n"
        "      title           : font.ttf\n"
        "At least one output file must be specified\n"
    )


# ============================================================================
# Session-level Setup/Teardown
# ============================================================================

def pytest_configure(config):
    """Configure pytest session."""
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line("markers", "integration: tests going through the HTTP app")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers."""
    for item in items:
        # Auto-add 'unit' marker to test files in tests/unit/
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        # Auto-add 'integration' marker to test files in tests/integration/
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
