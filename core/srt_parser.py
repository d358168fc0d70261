"""
SRT segment parser.

Splits raw subtitle text into replicas: the verbatim block that starts at an
entry's index line and runs up to the next entry's index line. Parsing is
tolerant. When numbering breaks, everything left is folded into the last
replica so no source text is ever dropped.

Usage:
    from core.srt_parser import parse_replicas

    replicas = parse_replicas(Path("movie.srt").read_text(encoding="utf-8"))
    assert "".join(replicas) == text  # for well-formed input
"""

import re
from typing import List, Optional

from config.constants import TIMESTAMP_MARKER
from config.logging_config import get_logger

from .errors import SubtitleFormatError

logger = get_logger(__name__)

_LEADING_JUNK = " \t\r\n\ufeff"
_INT_PREFIX = re.compile(r"[+-]?\d+")


def parse_index(text: str) -> Optional[int]:
    """
    Parse the integer an index line starts with.

    Leading whitespace (blank lines included) and a UTF-8 BOM are skipped;
    anything after the digits is ignored. Returns None when no integer
    starts the text.
    """
    match = _INT_PREFIX.match(text.lstrip(_LEADING_JUNK))
    if not match:
        return None
    return int(match.group())


def _find_index_line(buffer: str, number: int) -> int:
    """Position of ``number`` alone at the start of a line, or -1."""
    pattern = re.compile(r"(?:^|(?<=[\r\n]))" + str(number) + r"(?=[\r\n])")
    match = pattern.search(buffer)
    return match.start() if match else -1


def _index_line_end(buffer: str, marker: int) -> int:
    """End of the line holding the index, i.e. the break before the timing line."""
    end = buffer.rfind("\n", 0, marker)
    if end == -1:
        end = buffer.rfind("\r", 0, marker)
    if end == -1:
        # Index and timing share the first line
        end = marker
    return end


def parse_replicas(text: str, strict: bool = False) -> List[str]:
    """
    Split subtitle text into ordered replicas.

    Args:
        text: Raw subtitle document.
        strict: Raise SubtitleFormatError on broken numbering instead of
            folding the remainder into the last replica.

    Returns:
        Replicas in source order. Empty when the text holds no timing line.
    """
    replicas: List[str] = []
    buffer = text

    while TIMESTAMP_MARKER in buffer:
        marker = buffer.index(TIMESTAMP_MARKER)
        number = parse_index(buffer[:_index_line_end(buffer, marker)])

        if number is None:
            _report_break(
                f"unreadable index before timing line {len(replicas) + 1}",
                buffer, strict,
            )
            replicas.append(buffer)
            buffer = ""
            break

        next_start = _find_index_line(buffer, number + 1)
        if next_start <= 0:
            if buffer.count(TIMESTAMP_MARKER) > 1:
                _report_break(
                    f"no replica {number + 1} after replica {number}",
                    buffer, strict,
                )
            replicas.append(buffer)
            buffer = ""
            break

        replicas.append(buffer[:next_start])
        buffer = buffer[next_start:]

    if buffer and replicas:
        # Trailing block without a timing line stays with the last replica
        logger.debug(f"Folding {len(buffer)} trailing chars into last replica")
        replicas[-1] += buffer

    return replicas


def _report_break(reason: str, remainder: str, strict: bool):
    folded = remainder.count(TIMESTAMP_MARKER)
    if strict:
        raise SubtitleFormatError(f"Broken subtitle numbering: {reason}")
    logger.warning(
        f"Subtitle numbering broken ({reason}); "
        f"folding {folded} remaining entries into the last replica"
    )
