"""Exception hierarchy for the synthesis pipeline."""

__all__ = [
    "PipelineError",
    "ConfigError",
    "InputReadError",
    "SynthesisError",
    "OutputWriteError",
]


class PipelineError(Exception):
    """Base class for errors raised by the pipeline."""


class ConfigError(PipelineError):
    """The configuration file is missing, unreadable or invalid."""


class InputReadError(PipelineError):
    """The input text could not be read or decoded."""


class SynthesisError(PipelineError):
    """A single fragment could not be synthesized."""


class OutputWriteError(PipelineError):
    """The audio output could not be written."""
