from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Sequence

from .config import PipelineConfig
from .synthesizer import FragmentResult
from .tts_engine import TtsEngine

__all__ = ["MetadataBuilder"]


@dataclass
class MetadataBuilder:
    engine: TtsEngine
    config: PipelineConfig
    output_path: Path

    def build_metadata(
        self,
        *,
        results: Sequence[FragmentResult],
        final_output: Path,
        audio_bytes_written: int,
    ) -> Dict[str, object]:
        failed = [result.index for result in results if not result.ok]
        metadata = {
            "created_at": datetime.now(timezone.utc).isoformat(),
            "engine": self.engine.descriptor(),
            "format": self.engine.audio_format,
            "language_code": self.config.language_code,
            "voice_name": self.config.voice_name,
            "speaking_rate": self.config.speaking_rate,
            "pitch": self.config.pitch,
            "max_input_bytes": self.config.max_input_bytes,
            "input_path": str(self.config.input_filename) if self.config.input_filename else None,
            "fragments": [
                {
                    "index": result.index,
                    "bytes": result.byte_length,
                    "audio_bytes": result.audio_size,
                    "retries": result.retries,
                    "error": result.error,
                }
                for result in results
            ],
            "final_output": str(final_output),
            "audio_bytes": audio_bytes_written,
            "failed_fragments": failed,
            "retries": {"total": sum(result.retries for result in results)},
        }

        return metadata

    def write_metadata(self, metadata: Dict[str, object]) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with self.output_path.open("w", encoding="utf-8") as f:
            json.dump(metadata, f, ensure_ascii=False, indent=2)
