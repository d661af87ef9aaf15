import io

import pytest

from lecture_assistant import web
from lecture_assistant.errors import TranscriptionError
from lecture_assistant.web import create_app, detect_audio_format

from conftest import failing_responder


@pytest.fixture
def client_for(make_pipeline):
    def _client(**pipeline_kwargs):
        pipeline = make_pipeline(**pipeline_kwargs)
        app = create_app(pipeline=pipeline)
        app.config["TESTING"] = True
        return app.test_client(), pipeline
    return _client


def _upload(client, data=b"fake audio", filename="lecture.wav", **form):
    payload = dict(form)
    if filename is not None:
        payload["audio"] = (io.BytesIO(data), filename)
    return client.post("/api/process-audio", data=payload, content_type="multipart/form-data")


def test_process_audio_returns_study_material(client_for):
    client, pipeline = client_for(transcript="Entropy is disorder.")

    response = _upload(client, marksList="[2, 10]", mode="theory")

    assert response.status_code == 200
    body = response.get_json()
    assert set(body) == {"transcription", "summary", "structuredNotes", "qaPairs"}
    assert body["transcription"] == "Entropy is disorder."
    assert body["structuredNotes"] == [{"heading": "Entropy", "points": ["Definition", "Second law"]}]
    assert [pair["marks"] for pair in body["qaPairs"]] == [2, 10]
    assert len(pipeline.store) == 1


def test_invalid_marks_fall_back_to_defaults(client_for):
    client, _ = client_for()

    body = _upload(client, marksList="[1, 99]").get_json()

    assert sorted(pair["marks"] for pair in body["qaPairs"]) == [2, 5]


def test_numerical_mode_reaches_prompts(client_for):
    client, pipeline = client_for()

    _upload(client, mode="numerical")

    assert any("Formula or Concept" in prompt for prompt in pipeline.chat_client.prompts)


def test_missing_file_is_400(client_for):
    client, _ = client_for()

    response = _upload(client, filename=None)

    assert response.status_code == 400
    assert response.get_json() == {"message": "No audio file provided"}


def test_unsupported_format_is_400(client_for):
    client, _ = client_for()
    response = _upload(client, filename="slides.pdf")
    assert response.status_code == 400
    assert "Unsupported format" in response.get_json()["message"]


def test_oversized_upload_is_413(client_for, settings):
    settings.max_upload_mb = 1
    client, pipeline = client_for()

    response = _upload(client, data=b"x" * (2 * 1024 * 1024))

    assert response.status_code == 413
    assert "1 MB" in response.get_json()["message"]
    assert pipeline.audio_processor.calls == []


def test_no_speech_is_400(client_for):
    client, _ = client_for(transcript="")

    response = _upload(client)

    assert response.status_code == 400
    assert response.get_json() == {"message": "No speech detected in the audio"}


def test_transcription_failure_is_500(client_for):
    client, _ = client_for(transcription_error=TranscriptionError("Transcription failed for all 2 audio chunk(s)"))

    response = _upload(client)

    assert response.status_code == 500
    assert "Transcription failed" in response.get_json()["message"]


def test_unexpected_error_is_generic_500(client_for):
    client, pipeline = client_for()
    pipeline.audio_processor.split_audio = lambda data, fmt: 1 / 0

    response = _upload(client)

    assert response.status_code == 500
    assert response.get_json() == {"message": "Failed to process audio"}


def test_fallback_result_is_still_200(client_for):
    client, _ = client_for(transcript="Only words.", responder=failing_responder)

    body = _upload(client).get_json()

    assert body["transcription"] == "Only words."
    assert body["structuredNotes"] == []
    assert body["qaPairs"] == []


def test_healthz(client_for, monkeypatch):
    client, _ = client_for()

    monkeypatch.setattr(web, "check_ffmpeg_installed", lambda: True)
    ok = client.get("/healthz")
    assert ok.status_code == 200
    assert ok.get_json() == {"status": "ok", "ffmpeg": True, "stored_results": 0}

    monkeypatch.setattr(web, "check_ffmpeg_installed", lambda: False)
    assert client.get("/healthz").status_code == 503


def test_unknown_route_is_404(client_for):
    client, _ = client_for()
    assert client.get("/nope").status_code == 404


@pytest.mark.parametrize("name, mimetype, expected", [
    ("lecture.MP3", "audio/mpeg", "mp3"),
    ("blob", "audio/webm", "webm"),
    ("blob", "audio/x-wav", "wav"),
    ("blob", None, "webm"),
])
def test_detect_audio_format(name, mimetype, expected):
    assert detect_audio_format(name, mimetype) == expected


def test_non_ascii_digit_marks_fall_back_to_defaults(client_for):
    client, _ = client_for()

    response = _upload(client, marksList='["²"]')

    assert response.status_code == 200
    assert sorted(pair["marks"] for pair in response.get_json()["qaPairs"]) == [2, 5]
