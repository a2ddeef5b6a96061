from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from google.cloud import texttospeech
from pydub import AudioSegment

from .errors import SynthesisError

logger = logging.getLogger(__name__)

__all__ = [
    "TtsEngine",
    "GoogleCloudTtsEngine",
    "PollyTtsEngine",
    "MockTtsEngine",
    "ENGINE_NAMES",
]

ENGINE_NAMES = ("google", "polly", "mock")


class TtsEngine(ABC):
    """
    Thin abstraction over a text-to-speech service returning encoded audio bytes.

    Payloads are passed through untouched; callers concatenate them as is.
    """

    def __init__(self, *, audio_format: str = "mp3") -> None:
        self.audio_format = audio_format

    @abstractmethod
    def synthesize(self, text: str) -> bytes:
        """
        Convert a single text fragment into an encoded audio payload.
        """

    def descriptor(self) -> str:
        return self.__class__.__name__

    def _validate_payload(self, payload: Optional[bytes]) -> bytes:
        if not payload:
            raise SynthesisError(f"Engine {self.descriptor()} returned no audio data.")
        return bytes(payload)


class MockTtsEngine(TtsEngine):
    """
    Offline engine for tests and dry runs. Renders silent WAV payloads whose
    length depends on the text.

    ``failures`` maps a fragment text to the number of calls that should fail
    before it succeeds; a negative count fails forever.
    """

    def __init__(
        self,
        failures: Optional[Dict[str, int]] = None,
        *,
        base_duration_ms: int = 100,
        per_char_ms: int = 10,
        sample_rate: int = 8000,
    ) -> None:
        super().__init__(audio_format="wav")
        self._failures = dict(failures or {})
        self._base_duration_ms = base_duration_ms
        self._per_char_ms = per_char_ms
        self._sample_rate = sample_rate
        self.calls: List[str] = []

    def synthesize(self, text: str) -> bytes:
        self.calls.append(text)
        remaining = self._failures.get(text, 0)
        if remaining:
            if remaining > 0:
                self._failures[text] = remaining - 1
            raise SynthesisError(f"Scripted failure for fragment of {len(text)} characters.")

        duration = self._base_duration_ms + len(text) * self._per_char_ms
        segment = AudioSegment.silent(duration=duration, frame_rate=self._sample_rate)
        buffer = io.BytesIO()
        segment.export(buffer, format="wav")
        return self._validate_payload(buffer.getvalue())


class GoogleCloudTtsEngine(TtsEngine):
    """
    Google Cloud Text-to-Speech implementation using ``google-cloud-texttospeech``.
    """

    def __init__(
        self,
        *,
        language_code: str,
        voice_name: Optional[str] = None,
        speaking_rate: float = 1.0,
        pitch: float = 0.0,
        audio_encoding: str = "MP3",
        client: Optional[object] = None,
    ) -> None:
        encoding_name = audio_encoding.upper()
        try:
            encoding = texttospeech.AudioEncoding[encoding_name]
        except KeyError as exc:
            raise ValueError(f"Unsupported audio encoding: {audio_encoding}") from exc

        super().__init__(audio_format=_ENCODING_EXTENSIONS.get(encoding_name, encoding_name.lower()))
        self._client = client or texttospeech.TextToSpeechClient()
        self._voice = texttospeech.VoiceSelectionParams(
            language_code=language_code,
            name=voice_name or "",
        )
        self._audio_config = texttospeech.AudioConfig(
            audio_encoding=encoding,
            speaking_rate=speaking_rate,
            pitch=pitch,
        )

    def synthesize(self, text: str) -> bytes:
        synthesis_input = texttospeech.SynthesisInput(text=text)
        logger.debug(
            "Cloud TTS request: voice=%s, language=%s",
            self._voice.name,
            self._voice.language_code,
        )
        response = self._client.synthesize_speech(  # type: ignore[attr-defined]
            input=synthesis_input,
            voice=self._voice,
            audio_config=self._audio_config,
        )
        return self._validate_payload(response.audio_content)


class PollyTtsEngine(TtsEngine):
    """
    Amazon Polly implementation returning the raw audio stream.
    """

    def __init__(
        self,
        *,
        voice_id: str,
        engine: str = "neural",
        language_code: Optional[str] = None,
        output_format: str = "mp3",
        sample_rate: Optional[int] = None,
        boto3_client: Optional[object] = None,
    ) -> None:
        super().__init__(audio_format=output_format)
        if boto3_client is None:
            try:
                import boto3  # type: ignore
            except ImportError as exc:  # pragma: no cover - optional dependency
                raise RuntimeError(
                    "boto3 is required for PollyTtsEngine but is not installed."
                ) from exc
            boto3_client = boto3.client("polly")

        self._client = boto3_client
        self._voice_id = voice_id
        self._engine = engine
        self._language_code = language_code
        self._output_format = output_format
        self._sample_rate = sample_rate

    def synthesize(self, text: str) -> bytes:
        params = {
            "Engine": self._engine,
            "VoiceId": self._voice_id,
            "OutputFormat": self._output_format,
            "Text": text,
            "TextType": "text",
        }
        if self._sample_rate:
            params["SampleRate"] = str(self._sample_rate)
        if self._language_code:
            params["LanguageCode"] = self._language_code

        logger.debug("Polly request params: %s", {k: v for k, v in params.items() if k != "Text"})
        response = self._client.synthesize_speech(**params)  # type: ignore[attr-defined]
        stream = response.get("AudioStream")
        if stream is None:
            raise SynthesisError("Polly response did not include AudioStream.")

        audio_bytes = stream.read() if hasattr(stream, "read") else stream
        return self._validate_payload(audio_bytes)


_ENCODING_EXTENSIONS = {
    "MP3": "mp3",
    "OGG_OPUS": "ogg",
    "LINEAR16": "wav",
    "MULAW": "wav",
    "ALAW": "wav",
}
