from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Union

FRAME_START = ord("<")
FRAME_END = ord(">")
FRAME_SIZE = 4

# strtol-style prefix: ASCII whitespace, optional sign, decimal digits
_INT_PREFIX = re.compile(rb"[ \t\n\v\f\r]*([+-]?[0-9]+)")

logger = logging.getLogger(__name__)


def recombine_bytes(low: int, high: int) -> int:
    """Combine two payload bytes (low byte first) into a signed 16-bit value."""
    value = ((high & 0xFF) << 8) | (low & 0xFF)
    return value - 0x10000 if value & 0x8000 else value


def decode_frames(buffer: bytes | bytearray) -> List[int]:
    """
    Extract `<` low high `>` frames from *buffer*.

    The scan advances one byte at a time, also after a match, so marker values
    inside a payload can start further (spurious) frames. Malformed regions are
    skipped silently; callers compare the result length against what they asked for.
    """
    samples: List[int] = []
    for i in range(len(buffer) - FRAME_SIZE + 1):
        if buffer[i] == FRAME_START and buffer[i + 3] == FRAME_END:
            samples.append(recombine_bytes(buffer[i + 1], buffer[i + 2]))
    logger.debug("Decoded %d frames from %d bytes", len(samples), len(buffer))
    return samples


def parse_line(line: Union[str, bytes]) -> Optional[int]:
    """Return the leading integer of *line*, or None when it has none."""
    raw = line.encode("ascii", errors="replace") if isinstance(line, str) else line
    match = _INT_PREFIX.match(raw)
    if match is None:
        return None
    return int(match.group(1))


def decode_line(line: Union[str, bytes]) -> int:
    """Permissive integer parse: text without a leading integer reads as 0."""
    value = parse_line(line)
    return 0 if value is None else value


class TextDecoder:
    """Decodes text lines while counting the ones that fell back to 0."""

    def __init__(self) -> None:
        self._stats: Dict[str, int] = {"lines": 0, "soft_failures": 0}

    def decode(self, line: Union[str, bytes]) -> int:
        self._stats["lines"] += 1
        value = parse_line(line)
        if value is None:
            self._stats["soft_failures"] += 1
            logger.debug("Unparseable line %r recorded as 0", line)
            return 0
        return value

    @property
    def soft_failures(self) -> int:
        return self._stats["soft_failures"]

    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    def reset(self) -> None:
        for key in self._stats:
            self._stats[key] = 0
