"""
Video/subtitle track descriptions produced by the ffmpeg toolkit.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SubtitleTrack:
    """One subtitle stream inside a video container."""
    index: int                      # container stream index (ffmpeg -map 0:N)
    language: Optional[str] = None
    format: Optional[str] = None    # e.g. "srt", "subrip", "ass"
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "language": self.language,
            "format": self.format,
            "title": self.title,
        }


@dataclass
class VideoInfo:
    """Subtitle-relevant facts about a video file."""
    path: str
    subtitle_tracks: List[SubtitleTrack] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "subtitleTracks": [track.to_dict() for track in self.subtitle_tracks],
        }
