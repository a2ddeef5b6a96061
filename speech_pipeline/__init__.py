"""
Long-text speech synthesis utilities.

This package exposes the main building blocks used by the CLI entry point:

- Byte-budgeted, punctuation-aware text segmentation (`segmenter`).
- YAML configuration loading (`config`).
- Engine abstractions and concrete implementations (`tts_engine`).
- Per-fragment synthesis with retries (`synthesizer`).
- Audio stream concatenation (`merger`).
- Run metadata helpers (`metadata`).
"""

from .errors import (
    ConfigError,
    InputReadError,
    OutputWriteError,
    PipelineError,
    SynthesisError,
)
from .segmenter import (
    SegmenterConfig,
    find_split_point,
    segment_bytes,
    split_text,
)
from .config import PipelineConfig, load_config
from .tts_engine import (
    GoogleCloudTtsEngine,
    MockTtsEngine,
    PollyTtsEngine,
    TtsEngine,
)
from .synthesizer import FragmentResult, FragmentSynthesizer, SynthesisSettings
from .merger import write_audio_stream
from .metadata import MetadataBuilder

__all__ = [
    "PipelineError",
    "ConfigError",
    "InputReadError",
    "SynthesisError",
    "OutputWriteError",
    "SegmenterConfig",
    "segment_bytes",
    "find_split_point",
    "split_text",
    "PipelineConfig",
    "load_config",
    "TtsEngine",
    "GoogleCloudTtsEngine",
    "PollyTtsEngine",
    "MockTtsEngine",
    "SynthesisSettings",
    "FragmentSynthesizer",
    "FragmentResult",
    "write_audio_stream",
    "MetadataBuilder",
]
