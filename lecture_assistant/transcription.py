"""
Speech-to-text for audio chunks using an OpenAI-compatible Whisper endpoint
"""
from typing import List, Optional, Sequence

import requests

from .batching import run_in_batches
from .config import TRANSCRIPTION_SETTINGS, PipelineSettings
from .errors import TranscriptionError, TranscriptionItemError
from .logger import setup_logger
from .models import AudioChunk

logger = setup_logger(__name__)


class TranscriptionEngine:
    """Transcribe audio chunks in rate-limited concurrent batches"""

    def __init__(self, settings: Optional[PipelineSettings] = None, api_key: Optional[str] = None):
        self.settings = settings or PipelineSettings()
        self.api_key = api_key or self.settings.groq_api_key
        self.api_url = self.settings.transcription_url
        self.model = self.settings.transcription_model

    def transcribe_chunk(self, chunk: AudioChunk) -> str:
        """
        Transcribe one audio chunk.

        Args:
            chunk: WAV chunk produced by the audio processor

        Returns:
            str: Transcript text, empty when no speech was recognised

        Raises:
            TranscriptionItemError: on any request or response failure
        """
        if not self.api_key:
            raise TranscriptionItemError(
                "Groq API key not found. Please set GROQ_API_KEY in .env file.",
                index=chunk.index
            )

        try:
            response = requests.post(
                url=self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                files={
                    "file": (f"chunk_{chunk.index:03d}.{chunk.format}", chunk.data, f"audio/{chunk.format}")
                },
                data={
                    "model": self.model,
                    "response_format": TRANSCRIPTION_SETTINGS["response_format"],
                },
                timeout=self.settings.request_timeout_seconds
            )
        except requests.Timeout:
            raise TranscriptionItemError(
                f"Chunk {chunk.index} timed out after {self.settings.request_timeout_seconds}s",
                index=chunk.index
            )
        except requests.RequestException as e:
            raise TranscriptionItemError(f"Chunk {chunk.index} request failed: {str(e)}", index=chunk.index)

        if response.status_code != 200:
            raise TranscriptionItemError(
                f"API error {response.status_code}: {response.text[:300]}",
                index=chunk.index
            )

        try:
            text = response.json().get("text") or ""
        except (ValueError, AttributeError):
            raise TranscriptionItemError(
                f"Chunk {chunk.index} returned a malformed response",
                index=chunk.index
            )

        text = " ".join(str(text).split())
        logger.info(f"Chunk {chunk.index} transcribed ({len(text.split())} words)")
        return text

    def transcribe_chunks(self, chunks: Sequence[AudioChunk]) -> str:
        """
        Transcribe all chunks and merge them in chunk order.

        A chunk that fails is dropped and contributes nothing. Only when every
        chunk fails is the recording considered untranscribable.

        Args:
            chunks: AudioChunk objects in chronological order

        Returns:
            str: Merged transcript (may be empty if no speech was found)

        Raises:
            TranscriptionError: if every chunk failed
        """
        if not chunks:
            return ""

        results = run_in_batches(
            chunks,
            self.transcribe_chunk,
            batch_size=self.settings.batch_size,
            delay_seconds=self.settings.batch_delay_seconds,
            timeout_seconds=self.settings.batch_timeout_seconds,
            label="chunk",
        )

        failed = [result for result in results if not result.ok]
        if failed:
            logger.warning(f"{len(failed)} of {len(results)} chunk(s) failed and were dropped")
        if len(failed) == len(results):
            raise TranscriptionError(f"Transcription failed for all {len(results)} audio chunk(s)")

        texts: List[str] = [result.value for result in results if result.ok and result.value]
        transcript = " ".join(texts)

        logger.info(f"Merged transcript: {len(transcript.split())} words from {len(results)} chunk(s)")
        return transcript
