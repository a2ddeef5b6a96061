from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import ConfigError
from .segmenter import (
    DEFAULT_LOOKBACK_CHARS,
    DEFAULT_SHORT_FRAGMENT_BYTES,
    SegmenterConfig,
)

logger = logging.getLogger(__name__)

__all__ = ["PipelineConfig", "load_config", "DEFAULT_MAX_INPUT_BYTES"]

# Cloud Text-to-Speech rejects requests whose input exceeds 5000 bytes.
DEFAULT_MAX_INPUT_BYTES = 5000

# camelCase keys used by existing config.yaml files.
_KEY_ALIASES = {
    "languageCode": "language_code",
    "voiceName": "voice_name",
    "inputFilename": "input_filename",
    "outputFilename": "output_filename",
    "maxInputBytes": "max_input_bytes",
    "speakingRate": "speaking_rate",
    "audioEncoding": "audio_encoding",
    "inputEncoding": "input_encoding",
}


@dataclass(frozen=True)
class PipelineConfig:
    """
    Settings for one synthesis run, usually loaded from ``config.yaml``.
    """

    language_code: str = "en-US"
    voice_name: Optional[str] = None
    input_filename: Optional[Path] = None
    output_filename: Optional[Path] = None
    max_input_bytes: int = DEFAULT_MAX_INPUT_BYTES
    speaking_rate: float = 1.0
    pitch: float = 0.0
    audio_encoding: str = "MP3"
    input_encoding: str = "utf-8"
    lookback_chars: int = DEFAULT_LOOKBACK_CHARS
    short_fragment_bytes: int = DEFAULT_SHORT_FRAGMENT_BYTES
    max_retries: int = 3
    initial_retry_delay: float = 0.5
    retry_backoff_factor: float = 2.0
    concurrency: int = 1

    def __post_init__(self) -> None:
        for name in ("input_filename", "output_filename"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                object.__setattr__(self, name, Path(value))
        self.validate()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PipelineConfig":
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name not in known:
                logger.warning("Ignoring unknown config key: %s", key)
                continue
            kwargs[name] = value
        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        try:
            return replace(self, **changes)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc

    def validate(self) -> None:
        _require_int(self.max_input_bytes, "max_input_bytes", minimum=1)
        _require_int(self.lookback_chars, "lookback_chars", minimum=0)
        _require_int(self.short_fragment_bytes, "short_fragment_bytes", minimum=0)
        _require_int(self.max_retries, "max_retries", minimum=1)
        _require_int(self.concurrency, "concurrency", minimum=1)
        if not _is_number(self.speaking_rate) or self.speaking_rate <= 0:
            raise ValueError(f"speaking_rate must be a positive number, got {self.speaking_rate!r}")
        if not _is_number(self.pitch):
            raise ValueError(f"pitch must be a number, got {self.pitch!r}")
        if self.initial_retry_delay < 0 or self.retry_backoff_factor < 1:
            raise ValueError("Retry delay must be >= 0 and backoff factor >= 1.")

    def segmenter(self) -> SegmenterConfig:
        return SegmenterConfig(
            max_bytes=self.max_input_bytes,
            lookback_chars=self.lookback_chars,
            short_fragment_bytes=self.short_fragment_bytes,
        )

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for name in ("input_filename", "output_filename"):
            if data[name] is not None:
                data[name] = str(data[name])
        return data


def load_config(path: Union[str, Path]) -> PipelineConfig:
    """
    Read a YAML configuration file.

    Raises ``ConfigError`` when the file cannot be read, is not valid YAML or
    holds invalid values.
    """
    path = Path(path)
    logger.info("Loading configuration from %s", path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Cannot parse config file {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")
    return PipelineConfig.from_mapping(data)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_int(value: Any, name: str, *, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
