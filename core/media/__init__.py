"""
Media tooling: ffmpeg-backed subtitle discovery and extraction.
"""

from .models import SubtitleTrack, VideoInfo
from .ffmpeg import (
    FFmpegToolkit,
    parse_ffmpeg_subtitle_streams,
    is_srt_track,
)

__all__ = [
    'SubtitleTrack',
    'VideoInfo',
    'FFmpegToolkit',
    'parse_ffmpeg_subtitle_streams',
    'is_srt_track',
]
