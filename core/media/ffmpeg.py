#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
ffmpeg toolkit - locate the binary, list subtitle streams, extract one.

Only the text that `ffmpeg -i` prints is parsed here; container formats are
ffmpeg's business. Installing ffmpeg is left to the user (or packaging).
"""

import asyncio
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

from config.constants import FFMPEG_PROBE_TIMEOUT, FFMPEG_EXTRACT_TIMEOUT
from config.logging_config import get_logger

from ..errors import MediaToolError
from .models import SubtitleTrack, VideoInfo

logger = get_logger(__name__)


_STREAM_RE = re.compile(
    r"Stream #0:(\d+)(?:\[0x[0-9a-f]+\])?(?:\((\w+)\))?: Subtitle: ([^\s,]+)"
    r"(?: \(([^)]+)\))?(?: \(([^)]+)\))?",
    re.IGNORECASE,
)
_TITLE_RE = re.compile(r"^\s*title\s*:\s*(.+)$", re.IGNORECASE)
_ANY_STREAM_RE = re.compile(r"^\s*Stream #", re.IGNORECASE)

SRT_FORMATS = ("srt", "subrip")

# Parenthesised words ffmpeg prints after the codec that are not a format
DISPOSITIONS = {
    "default", "forced", "hearing impaired", "visual impaired", "original",
    "comment", "dub", "lyrics", "karaoke", "captions", "descriptions",
    "metadata", "dependent",
}


def ffmpeg_executable_name() -> str:
    return "ffmpeg.exe" if os.name == "nt" else "ffmpeg"


def parse_ffmpeg_subtitle_streams(output: str) -> List[SubtitleTrack]:
    """
    Parse the stream listing printed by `ffmpeg -i <file>`.

    A `title :` metadata line is attached to the subtitle stream it follows;
    any other stream line ends that association.
    """
    tracks: List[SubtitleTrack] = []
    current: Optional[SubtitleTrack] = None

    for line in output.splitlines():
        match = _STREAM_RE.search(line)
        if match:
            index, language, codec, flag1, _ = match.groups()
            current = SubtitleTrack(
                index=int(index),
                language=language,
                format=flag1 if flag1 and flag1.lower() not in DISPOSITIONS else codec,
            )
            tracks.append(current)
            continue

        if _ANY_STREAM_RE.match(line):
            current = None
            continue

        if current is not None:
            title = _TITLE_RE.match(line)
            if title:
                current.title = title.group(1).strip()

    return tracks


def is_srt_track(track: SubtitleTrack) -> bool:
    return (track.format or "").lower() in SRT_FORMATS


class FFmpegToolkit:
    """
    Thin async wrapper around the ffmpeg binary.

    Usage:
        toolkit = FFmpegToolkit(ffmpeg_dir=settings.ffmpeg_dir)
        path = await toolkit.initialize()
        info = await toolkit.probe("movie.mkv")
        srt_text = await toolkit.extract("movie.mkv", info.subtitle_tracks[0].index)
    """

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        ffmpeg_dir: Optional[Path] = None,
    ):
        self._configured_path = ffmpeg_path
        self.ffmpeg_dir = Path(ffmpeg_dir) if ffmpeg_dir else None
        self.ffmpeg_path: Optional[str] = None

    @classmethod
    def from_settings(cls, settings) -> "FFmpegToolkit":
        return cls(ffmpeg_path=settings.ffmpeg_path, ffmpeg_dir=settings.ffmpeg_dir)

    def locate(self) -> Optional[str]:
        """Configured path, then the app data dir, then PATH."""
        candidates = []
        if self._configured_path:
            candidates.append(Path(self._configured_path))
        if self.ffmpeg_dir:
            candidates.append(self.ffmpeg_dir / ffmpeg_executable_name())
            candidates.append(self.ffmpeg_dir)  # legacy layout: the dir is the binary

        for candidate in candidates:
            if candidate.is_file() and os.access(candidate, os.X_OK):
                return str(candidate)

        return shutil.which("ffmpeg")

    async def initialize(self) -> str:
        """Find ffmpeg once and remember it."""
        if self.ffmpeg_path:
            return self.ffmpeg_path

        path = self.locate()
        if not path:
            raise MediaToolError(
                "ffmpeg not found. Install it, put it on PATH, or set FFMPEG_PATH"
            )
        self.ffmpeg_path = path
        logger.info(f"Using ffmpeg at {path}")
        return path

    async def _run(self, args: List[str], timeout: float) -> Tuple[int, str]:
        ffmpeg = await self.initialize()
        try:
            process = await asyncio.create_subprocess_exec(
                ffmpeg, *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise MediaToolError(f"Failed to start ffmpeg: {e}") from e

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise MediaToolError(f"ffmpeg timed out after {timeout}s")

        return process.returncode, stderr.decode("utf-8", errors="replace")

    async def probe(self, video_path: str) -> VideoInfo:
        """List the SubRip subtitle streams of a video."""
        if not Path(video_path).exists():
            raise MediaToolError(f"Video file does not exist: {video_path}")

        # ffmpeg exits non-zero without an output file; the listing is on stderr anyway
        _, output = await self._run(["-hide_banner", "-i", video_path], FFMPEG_PROBE_TIMEOUT)

        tracks = [t for t in parse_ffmpeg_subtitle_streams(output) if is_srt_track(t)]
        logger.info(f"Found {len(tracks)} SubRip subtitle tracks in {video_path}")
        return VideoInfo(path=video_path, subtitle_tracks=tracks)

    async def extract(self, video_path: str, stream_index: int) -> str:
        """Extract one subtitle stream as SRT text."""
        if not Path(video_path).exists():
            raise MediaToolError(f"Video file does not exist: {video_path}")

        with tempfile.TemporaryDirectory(prefix="subtitle-extract-") as tmp:
            output_path = Path(tmp) / "subtitle.srt"
            code, stderr = await self._run(
                ["-hide_banner", "-loglevel", "error",
                 "-i", video_path, "-map", f"0:{stream_index}", "-y", str(output_path)],
                FFMPEG_EXTRACT_TIMEOUT,
            )

            if code != 0 or not output_path.exists():
                detail = stderr.strip().splitlines()[-1] if stderr.strip() else f"exit code {code}"
                raise MediaToolError(f"Failed to extract subtitle: {detail}")

            return output_path.read_text(encoding="utf-8", errors="replace")
