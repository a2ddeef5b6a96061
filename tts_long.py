#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from speech_pipeline.config import PipelineConfig, load_config
from speech_pipeline.errors import ConfigError, InputReadError, PipelineError
from speech_pipeline.merger import write_audio_stream
from speech_pipeline.metadata import MetadataBuilder
from speech_pipeline.synthesizer import FragmentSynthesizer, SynthesisSettings
from speech_pipeline.tts_engine import (
    ENGINE_NAMES,
    GoogleCloudTtsEngine,
    MockTtsEngine,
    PollyTtsEngine,
    TtsEngine,
)

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synthesize long text by splitting it into byte-bounded fragments.")
    parser.add_argument("--config", default="config.yaml", help="YAML configuration file.")
    parser.add_argument("--input", help="Input text file (overrides input_filename).")
    parser.add_argument("--output", help="Output audio file (overrides output_filename).")
    parser.add_argument("--max-bytes", type=int, help="Maximum bytes per fragment (overrides max_input_bytes).")
    parser.add_argument("--engine", default="google", choices=ENGINE_NAMES, help="TTS engine to use.")
    parser.add_argument("--concurrency", type=int, help="Number of fragments synthesized in parallel.")
    parser.add_argument("--metadata-output", help="Optional path for a JSON run summary.")
    parser.add_argument("--dry-run", action="store_true", help="Only split the text and log the fragments.")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


def resolve_config(args: argparse.Namespace) -> PipelineConfig:
    config = load_config(args.config).with_overrides(
        input_filename=Path(args.input) if args.input else None,
        output_filename=Path(args.output) if args.output else None,
        max_input_bytes=args.max_bytes,
        concurrency=args.concurrency,
    )
    if config.input_filename is None:
        raise ConfigError("No input file configured (set input_filename or pass --input).")
    if config.output_filename is None and not args.dry_run:
        raise ConfigError("No output file configured (set output_filename or pass --output).")
    return config


def load_input_text(path: Path, encoding: str) -> str:
    logger.info("Reading input file: %s", path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise InputReadError(f"Cannot read input file {path}: {exc}") from exc
    logger.info("Read %d bytes.", len(data))
    try:
        return data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise InputReadError(f"Cannot decode input file {path} as {encoding}: {exc}") from exc


def create_engine(name: str, config: PipelineConfig) -> TtsEngine:
    """
    Build the named engine. Any failure while constructing it, including
    missing credentials or an uninstalled client library, is a ``ConfigError``.
    """
    engine_name = (name or "").lower()
    if engine_name == "polly" and not config.voice_name:
        raise ConfigError("voice_name is required when using the Polly engine.")
    if engine_name not in ENGINE_NAMES:
        raise ConfigError(f"Unsupported engine: {name}")
    try:
        return _build_engine(engine_name, config)
    except Exception as exc:
        raise ConfigError(f"Cannot create {engine_name} engine: {exc}") from exc


def _build_engine(engine_name: str, config: PipelineConfig) -> TtsEngine:
    if engine_name == "mock":
        return MockTtsEngine()

    if engine_name == "polly":
        return PollyTtsEngine(
            voice_id=config.voice_name,  # type: ignore[arg-type]
            language_code=config.language_code,
            output_format=config.audio_encoding.lower(),
        )

    return GoogleCloudTtsEngine(
        language_code=config.language_code,
        voice_name=config.voice_name,
        speaking_rate=config.speaking_rate,
        pitch=config.pitch,
        audio_encoding=config.audio_encoding,
    )


def run(args: argparse.Namespace) -> int:
    config = resolve_config(args)
    text = load_input_text(config.input_filename, config.input_encoding)  # type: ignore[arg-type]

    fragments = config.segmenter().split(text)
    if not fragments:
        logger.warning("Input is empty. Nothing to synthesize.")
        return 0

    if args.dry_run:
        for index, fragment in enumerate(fragments, start=1):
            logger.info("Fragment %d: %d bytes, %r", index, len(fragment.encode("utf-8")), fragment[:40])
        return 0

    engine = create_engine(args.engine, config)
    settings = SynthesisSettings(
        max_retries=config.max_retries,
        initial_retry_delay=config.initial_retry_delay,
        retry_backoff_factor=config.retry_backoff_factor,
        concurrency=config.concurrency,
    )
    results = FragmentSynthesizer(engine, settings).synthesize_all(fragments)

    output_path = config.output_filename
    written = write_audio_stream(results, output_path)  # type: ignore[arg-type]

    if args.metadata_output:
        metadata_builder = MetadataBuilder(
            engine=engine,
            config=config,
            output_path=Path(args.metadata_output),
        )
        metadata = metadata_builder.build_metadata(
            results=results,
            final_output=output_path,  # type: ignore[arg-type]
            audio_bytes_written=written,
        )
        metadata_builder.write_metadata(metadata)
        logger.info("Metadata written to %s", metadata_builder.output_path)

    if not any(result.ok for result in results):
        logger.error("No fragment could be synthesized.")
        return 1

    logger.info("Synthesis complete. %d bytes written to %s", written, output_path)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.debug)
    try:
        return run(args)
    except PipelineError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.error("Interrupted by user.")
        sys.exit(1)
    except Exception as exc:
        logger.exception("Fatal error: %s", exc)
        sys.exit(1)
