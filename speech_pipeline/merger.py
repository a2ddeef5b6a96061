from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .errors import OutputWriteError
from .synthesizer import FragmentResult

logger = logging.getLogger(__name__)

__all__ = ["write_audio_stream"]


def write_audio_stream(results: Sequence[FragmentResult], output_path: Path) -> int:
    """
    Append every successful payload, in fragment order, to ``output_path``.

    Payloads are written byte for byte; no re-encoding or container repair
    happens, so the result may not be a strictly valid single audio file.
    Returns the number of audio bytes written.
    """
    ordered = sorted((r for r in results if r.ok), key=lambda r: r.index)
    total = 0
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("wb") as f:
            for result in ordered:
                f.write(result.audio)  # type: ignore[arg-type]
                total += result.audio_size
    except OSError as exc:
        raise OutputWriteError(f"Cannot write audio to {output_path}: {exc}") from exc

    logger.info("Wrote %d bytes from %d fragments to %s", total, len(ordered), output_path)
    if len(ordered) > 1:
        logger.warning(
            "Audio fragments were concatenated directly; some players or editors may not handle the file."
        )
    return total
