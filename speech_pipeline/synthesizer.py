from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .tts_engine import TtsEngine

logger = logging.getLogger(__name__)

__all__ = ["SynthesisSettings", "FragmentResult", "FragmentSynthesizer"]


@dataclass
class SynthesisSettings:
    """
    Retry and parallelism settings for fragment synthesis.
    """

    max_retries: int = 3
    initial_retry_delay: float = 0.5
    retry_backoff_factor: float = 2.0
    concurrency: int = 1


@dataclass
class FragmentResult:
    index: int
    text: str
    byte_length: int
    audio: Optional[bytes] = None
    retries: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.audio is not None

    @property
    def audio_size(self) -> int:
        return len(self.audio) if self.audio is not None else 0


class FragmentSynthesizer:
    """
    Sends every text fragment to the engine and collects the audio payloads.

    A fragment that keeps failing after all retries is recorded as failed and
    skipped; the remaining fragments are still synthesized.
    """

    def __init__(
        self,
        engine: TtsEngine,
        settings: Optional[SynthesisSettings] = None,
        *,
        encoding: str = "utf-8",
    ) -> None:
        self.engine = engine
        self.settings = settings or SynthesisSettings()
        self.encoding = encoding

    def synthesize_all(self, fragments: Sequence[str]) -> List[FragmentResult]:
        total = len(fragments)
        if not total:
            return []

        logger.info("Synthesizing %d fragments with %s.", total, self.engine.descriptor())
        jobs = list(enumerate(fragments, start=1))
        workers = max(1, min(self.settings.concurrency, total))
        if workers == 1:
            results = [self._synthesize_fragment(index, text, total) for index, text in jobs]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(
                    pool.map(lambda job: self._synthesize_fragment(job[0], job[1], total), jobs)
                )

        failed = sum(1 for result in results if not result.ok)
        if failed:
            logger.warning("%d of %d fragments failed and were skipped.", failed, total)
        return results

    def _synthesize_fragment(self, index: int, text: str, total: int) -> FragmentResult:
        byte_length = len(text.encode(self.encoding))
        logger.info("Synthesizing fragment %d / %d (%d bytes)...", index, total, byte_length)
        try:
            audio, retries = self._synthesize_with_retry(text)
        except Exception as exc:
            logger.warning("Skipping fragment %d after synthesis error: %s", index, exc)
            return FragmentResult(
                index=index,
                text=text,
                byte_length=byte_length,
                retries=max(0, self.settings.max_retries - 1),
                error=str(exc) or exc.__class__.__name__,
            )

        logger.info("Fragment %d synthesized, %d bytes of audio.", index, len(audio))
        return FragmentResult(
            index=index,
            text=text,
            byte_length=byte_length,
            audio=audio,
            retries=retries,
        )

    def _synthesize_with_retry(self, text: str) -> Tuple[bytes, int]:
        delay = self.settings.initial_retry_delay
        attempt = 0
        retries = 0
        while True:
            try:
                return self.engine.synthesize(text), retries
            except Exception:
                attempt += 1
                if attempt >= self.settings.max_retries:
                    logger.error("Synthesis permanently failed after %d attempts.", attempt)
                    raise
                retries += 1
                logger.warning(
                    "Synthesis failed (attempt %d/%d). Retrying in %.2fs.",
                    attempt,
                    self.settings.max_retries,
                    delay,
                )
                time.sleep(delay)
                delay *= self.settings.retry_backoff_factor
