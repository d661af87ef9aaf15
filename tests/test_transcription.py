import time

import pytest
import requests

from lecture_assistant import transcription
from lecture_assistant.config import TRANSCRIPTION_SETTINGS
from lecture_assistant.errors import TranscriptionError, TranscriptionItemError
from lecture_assistant.models import AudioChunk
from lecture_assistant.transcription import TranscriptionEngine


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _chunks(count):
    return [AudioChunk(index=i, data=b"RIFF" + bytes([i])) for i in range(count)]


def _chunk_index(files):
    name = files["file"][0]
    return int(name.split("_")[1].split(".")[0])


def test_chunk_request_shape(monkeypatch, settings):
    captured = {}

    def fake_post(url, headers, files, data, timeout):
        captured.update(url=url, headers=headers, files=files, data=data, timeout=timeout)
        return FakeResponse(payload={"text": "  Hello   class.  "})

    monkeypatch.setattr(transcription.requests, "post", fake_post)

    text = TranscriptionEngine(settings).transcribe_chunk(AudioChunk(index=3, data=b"RIFF"))

    assert text == "Hello class."
    assert captured["url"] == settings.transcription_url
    assert captured["headers"]["Authorization"] == "Bearer test-groq-key"
    assert captured["files"]["file"] == ("chunk_003.wav", b"RIFF", "audio/wav")
    assert captured["data"]["model"] == settings.transcription_model
    assert captured["data"]["response_format"] == TRANSCRIPTION_SETTINGS["response_format"]
    assert captured["timeout"] == settings.request_timeout_seconds


def test_transcripts_merge_in_chunk_order(monkeypatch, settings):
    def fake_post(url, headers, files, data, timeout):
        index = _chunk_index(files)
        # Later chunks answer first
        time.sleep(0.02 * (4 - index))
        return FakeResponse(payload={"text": f"part{index}"})

    monkeypatch.setattr(transcription.requests, "post", fake_post)

    assert TranscriptionEngine(settings).transcribe_chunks(_chunks(4)) == "part0 part1 part2 part3"


def test_failed_chunk_is_dropped(monkeypatch, settings):
    def fake_post(url, headers, files, data, timeout):
        index = _chunk_index(files)
        if index == 1:
            return FakeResponse(status_code=500, text="server exploded")
        return FakeResponse(payload={"text": f"part{index}"})

    monkeypatch.setattr(transcription.requests, "post", fake_post)

    assert TranscriptionEngine(settings).transcribe_chunks(_chunks(3)) == "part0 part2"


def test_every_chunk_failing_raises(monkeypatch, settings):
    def fake_post(url, headers, files, data, timeout):
        raise requests.ConnectionError("network down")

    monkeypatch.setattr(transcription.requests, "post", fake_post)

    with pytest.raises(TranscriptionError) as excinfo:
        TranscriptionEngine(settings).transcribe_chunks(_chunks(2))
    assert excinfo.value.status_code == 500


def test_silent_chunks_give_empty_transcript(monkeypatch, settings):
    monkeypatch.setattr(
        transcription.requests, "post",
        lambda url, headers, files, data, timeout: FakeResponse(payload={"text": ""}),
    )

    assert TranscriptionEngine(settings).transcribe_chunks(_chunks(2)) == ""


def test_chunks_sent_in_batches_with_delay(monkeypatch, settings):
    settings.batch_size = 2
    settings.batch_delay_seconds = 1.2
    sleeps = []
    monkeypatch.setattr("lecture_assistant.batching.time.sleep", sleeps.append)
    monkeypatch.setattr(
        transcription.requests, "post",
        lambda url, headers, files, data, timeout: FakeResponse(payload={"text": "x"}),
    )

    TranscriptionEngine(settings).transcribe_chunks(_chunks(5))

    assert sleeps == [1.2, 1.2]


@pytest.mark.parametrize("response", [
    FakeResponse(status_code=429, text="rate limited"),
    FakeResponse(status_code=200, payload=None),
])
def test_bad_responses_raise_item_error(monkeypatch, settings, response):
    monkeypatch.setattr(transcription.requests, "post", lambda url, headers, files, data, timeout: response)

    with pytest.raises(TranscriptionItemError) as excinfo:
        TranscriptionEngine(settings).transcribe_chunk(AudioChunk(index=7, data=b""))
    assert excinfo.value.index == 7


def test_timeout_raises_item_error(monkeypatch, settings):
    def fake_post(url, headers, files, data, timeout):
        raise requests.Timeout()

    monkeypatch.setattr(transcription.requests, "post", fake_post)

    with pytest.raises(TranscriptionItemError, match="timed out"):
        TranscriptionEngine(settings).transcribe_chunk(AudioChunk(index=0, data=b""))


def test_missing_api_key(settings):
    settings.groq_api_key = ""
    with pytest.raises(TranscriptionItemError, match="GROQ_API_KEY"):
        TranscriptionEngine(settings).transcribe_chunk(AudioChunk(index=0, data=b""))


def test_response_format_comes_from_settings(monkeypatch, settings):
    formats = []

    def fake_post(url, headers, files, data, timeout):
        formats.append(data["response_format"])
        return FakeResponse(payload={"text": "hi", "segments": []})

    monkeypatch.setitem(TRANSCRIPTION_SETTINGS, "response_format", "verbose_json")
    monkeypatch.setattr(transcription.requests, "post", fake_post)

    assert TranscriptionEngine(settings).transcribe_chunk(AudioChunk(index=0, data=b"")) == "hi"
    assert formats == ["verbose_json"]
