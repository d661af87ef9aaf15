import json
import threading

import pytest

from lecture_assistant.audio_processor import AudioProcessor
from lecture_assistant.config import PipelineSettings
from lecture_assistant.errors import LLMRequestError
from lecture_assistant.models import AudioChunk
from lecture_assistant.pipeline import LecturePipeline
from lecture_assistant.question_generator import QuestionGenerator
from lecture_assistant.storage import LectureStore
from lecture_assistant.summarization import LectureSummarizer


class FakeChatClient:
    """Stands in for ChatClient; ``responder`` maps a prompt to a reply or raises."""

    def __init__(self, responder):
        self.responder = responder
        self.prompts = []
        self._lock = threading.Lock()

    def complete(self, prompt, system=None, max_tokens=None):
        with self._lock:
            self.prompts.append(prompt)
        reply = self.responder(prompt)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeAudioProcessor(AudioProcessor):
    def __init__(self, settings, chunk_count=2):
        super().__init__(settings)
        self.chunk_count = chunk_count
        self.calls = []

    def split_audio(self, data, audio_format):
        self.calls.append((len(data), audio_format))
        return [AudioChunk(index=i, data=b"RIFF") for i in range(self.chunk_count)]


class FakeTranscriptionEngine:
    def __init__(self, transcript="", error=None):
        self.transcript = transcript
        self.error = error
        self.calls = 0

    def transcribe_chunks(self, chunks):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.transcript


def summary_reply(summary="Entropy measures disorder.", notes=None):
    if notes is None:
        notes = [{"heading": "Entropy", "points": ["Definition", "Second law"]}]
    return json.dumps({"summary": summary, "structuredNotes": notes})


def qa_reply(*marks):
    return json.dumps({
        "qaPairs": [
            {"question": f"Question worth {m}?", "answer": f"Answer worth {m}.", "marks": m}
            for m in marks
        ]
    })


def lecture_responder(prompt):
    """Answers summary prompts with notes and question prompts with 2/5/10 mark pairs."""
    if "qaPairs" in prompt:
        return qa_reply(2, 5, 10)
    return summary_reply()


@pytest.fixture
def settings(tmp_path):
    return PipelineSettings(
        groq_api_key="test-groq-key",
        batch_delay_seconds=0,
        request_timeout_seconds=5,
        temp_dir=tmp_path / "work",
    )


@pytest.fixture
def make_pipeline(settings):
    def _make(transcript="Entropy is a measure of disorder.", responder=lecture_responder,
              transcription_error=None, chunk_count=2):
        chat_client = FakeChatClient(responder)
        pipeline = LecturePipeline(
            audio_processor=FakeAudioProcessor(settings, chunk_count=chunk_count),
            transcription_engine=FakeTranscriptionEngine(transcript, transcription_error),
            summarizer=LectureSummarizer(chat_client, settings),
            question_generator=QuestionGenerator(chat_client),
            store=LectureStore(),
            settings=settings,
        )
        pipeline.chat_client = chat_client
        return pipeline
    return _make


def failing_responder(prompt):
    return LLMRequestError("All API providers failed")
