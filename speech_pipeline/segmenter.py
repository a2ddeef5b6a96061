from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

__all__ = [
    "STRONG_TERMINATORS",
    "CLAUSE_SEPARATORS",
    "DEFAULT_LOOKBACK_CHARS",
    "DEFAULT_SHORT_FRAGMENT_BYTES",
    "SegmenterConfig",
    "segment_bytes",
    "find_split_point",
    "split_text",
]

DEFAULT_LOOKBACK_CHARS = 100
DEFAULT_SHORT_FRAGMENT_BYTES = 100

STRONG_TERMINATORS = ("\n", "。", "！", "？", ".", "!", "?")
CLAUSE_SEPARATORS = ("，", "；", ",", ";")

_STRONG_BYTES = tuple(p.encode("utf-8") for p in STRONG_TERMINATORS)
_CLAUSE_BYTES = tuple(p.encode("utf-8") for p in CLAUSE_SEPARATORS)


@dataclass(frozen=True)
class SegmenterConfig:
    """
    Byte budget and boundary heuristics used when splitting text for synthesis.
    """

    max_bytes: int
    lookback_chars: int = DEFAULT_LOOKBACK_CHARS
    short_fragment_bytes: int = DEFAULT_SHORT_FRAGMENT_BYTES

    def split(self, text: str) -> List[str]:
        return split_text(
            text,
            self.max_bytes,
            lookback_chars=self.lookback_chars,
            short_fragment_bytes=self.short_fragment_bytes,
        )


def segment_bytes(
    text: bytes,
    max_bytes: int,
    *,
    lookback_chars: int = DEFAULT_LOOKBACK_CHARS,
    short_fragment_bytes: int = DEFAULT_SHORT_FRAGMENT_BYTES,
) -> List[bytes]:
    """
    Split UTF-8 encoded ``text`` into ordered fragments of at most ``max_bytes``.

    Fragments never cut through a multi-byte character and prefer to end right
    after sentence punctuation (or, failing that, clause punctuation) found near
    the end of the byte budget. A single character wider than ``max_bytes`` is
    emitted on its own as an oversized fragment. Joining the fragments gives
    back ``text`` unchanged.
    """
    if max_bytes < 1:
        raise ValueError(f"max_bytes must be at least 1, got {max_bytes}")

    fragments: List[bytes] = []
    total = len(text)
    start = 0
    while start < total:
        end = min(start + max_bytes, total)
        if end < total:
            end = _align_to_char_start(text, start, end)
            if end == start:
                end = _char_end(text, start)
                logger.warning(
                    "Character at byte %d needs %d bytes, exceeding the %d byte budget.",
                    start,
                    end - start,
                    max_bytes,
                )

            split = find_split_point(text, start, end, lookback_chars)
            if split is not None and start < split < end:
                length = end - start
                offset = split - start
                if offset > length // 2 or length < short_fragment_bytes:
                    end = split

        fragments.append(text[start:end])
        start = end

    logger.debug("Text of %d bytes split into %d fragments.", total, len(fragments))
    return fragments


def find_split_point(
    text: bytes,
    start: int,
    end: int,
    lookback_chars: int = DEFAULT_LOOKBACK_CHARS,
) -> Optional[int]:
    """
    Return the offset just past the best punctuation in the tail of ``text[start:end]``.

    Only the last ``lookback_chars`` characters are searched. Sentence terminators
    always beat clause separators; within a group the rightmost match wins.
    ``None`` means the tail holds no usable punctuation.
    """
    window_start = _lookback_start(text, start, end, lookback_chars)
    for group in (_STRONG_BYTES, _CLAUSE_BYTES):
        best = _rightmost_after(text, window_start, end, group)
        if best is not None:
            return best
    return None


def split_text(
    text: str,
    max_bytes: int,
    *,
    lookback_chars: int = DEFAULT_LOOKBACK_CHARS,
    short_fragment_bytes: int = DEFAULT_SHORT_FRAGMENT_BYTES,
) -> List[str]:
    """
    String front end for :func:`segment_bytes`.

    ``max_bytes`` is measured in UTF-8 bytes, the unit the synthesis service
    limits. Decode input in its own encoding before calling this.
    """
    if not text:
        return []
    encoded = text.encode("utf-8")
    fragments = segment_bytes(
        encoded,
        max_bytes,
        lookback_chars=lookback_chars,
        short_fragment_bytes=short_fragment_bytes,
    )
    logger.info("Text split into %d fragments (max %d bytes each).", len(fragments), max_bytes)
    return [fragment.decode("utf-8") for fragment in fragments]


def _is_continuation(byte: int) -> bool:
    return byte & 0xC0 == 0x80


def _align_to_char_start(text: bytes, start: int, end: int) -> int:
    while end > start and _is_continuation(text[end]):
        end -= 1
    return end


def _char_end(text: bytes, start: int) -> int:
    end = start + 1
    while end < len(text) and _is_continuation(text[end]):
        end += 1
    return end


def _lookback_start(text: bytes, start: int, end: int, chars: int) -> int:
    pos = end
    seen = 0
    while pos > start and seen < chars:
        pos -= 1
        if not _is_continuation(text[pos]):
            seen += 1
    return pos


def _rightmost_after(
    text: bytes, lo: int, hi: int, needles: Sequence[bytes]
) -> Optional[int]:
    best: Optional[int] = None
    for needle in needles:
        idx = text.rfind(needle, lo, hi)
        if idx == -1:
            continue
        after = idx + len(needle)
        if best is None or after > best:
            best = after
    return best
