import pytest

from speech_pipeline.errors import SynthesisError
from speech_pipeline.synthesizer import FragmentSynthesizer, SynthesisSettings
from speech_pipeline.tts_engine import MockTtsEngine, PollyTtsEngine


def _settings(**kwargs):
    params = {"max_retries": 3, "initial_retry_delay": 0.0, "retry_backoff_factor": 1.0}
    params.update(kwargs)
    return SynthesisSettings(**params)


def test_failed_fragment_is_skipped_and_processing_continues():
    fragments = ["第一段。", "second part.", "third part."]
    engine = MockTtsEngine(failures={"second part.": -1})

    results = FragmentSynthesizer(engine, _settings()).synthesize_all(fragments)

    assert [r.index for r in results] == [1, 2, 3]
    assert [r.ok for r in results] == [True, False, True]
    assert results[1].error
    assert results[0].byte_length == len("第一段。".encode("utf-8"))
    assert engine.calls.count("second part.") == 3
    assert engine.calls[-1] == "third part."


def test_transient_failure_is_retried():
    engine = MockTtsEngine(failures={"flaky.": 2})

    results = FragmentSynthesizer(engine, _settings()).synthesize_all(["flaky."])

    assert results[0].ok
    assert results[0].retries == 2
    assert results[0].audio.startswith(b"RIFF")


def test_concurrent_synthesis_keeps_fragment_order():
    fragments = [f"fragment {i}." for i in range(8)]
    engine = MockTtsEngine()

    results = FragmentSynthesizer(engine, _settings(concurrency=4)).synthesize_all(fragments)

    assert [r.text for r in results] == fragments
    assert all(r.ok for r in results)
    assert results[0].audio_size == results[1].audio_size


def test_empty_fragment_list():
    assert FragmentSynthesizer(MockTtsEngine()).synthesize_all([]) == []


class _FakePollyClient:
    def __init__(self, payload):
        self.payload = payload
        self.requests = []

    def synthesize_speech(self, **params):
        self.requests.append(params)
        return {"AudioStream": self.payload}


def test_polly_engine_passes_payload_through():
    client = _FakePollyClient(b"ID3fake-mp3")
    engine = PollyTtsEngine(voice_id="Zhiyu", language_code="cmn-CN", boto3_client=client)

    assert engine.synthesize("你好") == b"ID3fake-mp3"
    assert client.requests[0]["VoiceId"] == "Zhiyu"
    assert client.requests[0]["OutputFormat"] == "mp3"


def test_empty_payload_raises_synthesis_error():
    engine = PollyTtsEngine(voice_id="Joanna", boto3_client=_FakePollyClient(b""))
    with pytest.raises(SynthesisError):
        engine.synthesize("hello")
