"""
End-to-end lecture processing: audio in, study material out
"""
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .audio_processor import AudioProcessor
from .config import PipelineSettings
from .errors import NoFileProvidedError, NoSpeechDetectedError, UploadTooLargeError
from .llm_client import ChatClient
from .logger import setup_logger
from .models import LectureMode, LectureResult, MarksRequest
from .question_generator import QuestionGenerator
from .storage import LectureStore
from .summarization import LectureSummarizer
from .transcription import TranscriptionEngine

logger = setup_logger(__name__)

FALLBACK_SUMMARY = (
    "A summary could not be generated for this lecture. "
    "The full transcription is still available."
)


class PipelineStage(str, Enum):
    RECEIVED = "received"
    SPLITTING = "splitting"
    TRANSCRIBING = "transcribing"
    SUMMARIZING = "summarizing"
    GENERATING_QUESTIONS = "generating_questions"
    AGGREGATED = "aggregated"
    DELIVERED = "delivered"
    FALLBACK = "fallback"


class LecturePipeline:
    """
    Coordinate splitting, transcription, summarization and question generation.

    Transcription must succeed; everything after it is best-effort. If the
    study-material stages fail the caller still gets the transcription with
    a placeholder summary and empty notes and questions.
    """

    def __init__(
        self,
        audio_processor: AudioProcessor,
        transcription_engine: TranscriptionEngine,
        summarizer: LectureSummarizer,
        question_generator: QuestionGenerator,
        store: Optional[LectureStore] = None,
        settings: Optional[PipelineSettings] = None,
    ):
        self.audio_processor = audio_processor
        self.transcription_engine = transcription_engine
        self.summarizer = summarizer
        self.question_generator = question_generator
        self.store = store if store is not None else LectureStore()
        self.settings = settings or PipelineSettings()

    @classmethod
    def from_settings(cls, settings: Optional[PipelineSettings] = None, store: Optional[LectureStore] = None):
        """Wire the pipeline with the real HTTP and FFmpeg collaborators."""
        settings = settings or PipelineSettings.from_env()
        chat_client = ChatClient(settings)
        return cls(
            audio_processor=AudioProcessor(settings),
            transcription_engine=TranscriptionEngine(settings),
            summarizer=LectureSummarizer(chat_client, settings),
            question_generator=QuestionGenerator(chat_client),
            store=store,
            settings=settings,
        )

    def process(
        self,
        audio_bytes: bytes,
        file_name: str,
        mode: LectureMode = LectureMode.THEORY,
        marks: Optional[MarksRequest] = None,
        audio_format: Optional[str] = None,
        progress_callback: Optional[Callable[[PipelineStage], None]] = None,
    ) -> LectureResult:
        """
        Process one lecture recording.

        Args:
            audio_bytes: Raw uploaded audio
            file_name: Original file name, used for the format and the store
            mode: Lecture mode (theory or numerical)
            marks: Requested question weights; settings default when None
            audio_format: Format override when the file name has no extension
            progress_callback: Optional callback receiving each PipelineStage

        Returns:
            LectureResult: stored, then returned

        Raises:
            NoFileProvidedError, UploadTooLargeError, UnsupportedFormatError,
            MediaProbeError, SegmentationError, TranscriptionError,
            NoSpeechDetectedError
        """
        def enter(stage: PipelineStage):
            logger.info(f"[{file_name}] stage: {stage.value}")
            if progress_callback:
                progress_callback(stage)

        enter(PipelineStage.RECEIVED)

        if not audio_bytes:
            raise NoFileProvidedError("No audio file provided")
        if len(audio_bytes) > self.settings.max_upload_bytes:
            raise UploadTooLargeError(
                f"File size exceeds {self.settings.max_upload_mb} MB limit"
            )

        file_format = self.audio_processor.normalize_format(audio_format or Path(file_name).suffix)
        marks = marks or MarksRequest(tuple(self.settings.default_marks))
        mode = LectureMode(mode)

        logger.info(
            f"Processing {file_name} ({len(audio_bytes) / (1024 * 1024):.2f} MB, "
            f"mode={mode.value}, marks={list(marks)})"
        )

        enter(PipelineStage.SPLITTING)
        chunks = self.audio_processor.split_audio(audio_bytes, file_format)

        enter(PipelineStage.TRANSCRIBING)
        transcription = self.transcription_engine.transcribe_chunks(chunks)
        del chunks

        if not transcription.strip():
            raise NoSpeechDetectedError("No speech detected in the audio")

        try:
            result = self._build_study_material(transcription, mode, marks, enter)
        except Exception as e:
            # Study material is best-effort; never lose a finished transcription
            logger.error(f"Study material generation failed: {str(e)}", exc_info=True)
            result = self._fallback_result(transcription)

        self.store.add(file_name, result)

        enter(PipelineStage.FALLBACK if result.fallback else PipelineStage.DELIVERED)
        return result

    def _build_study_material(
        self,
        transcription: str,
        mode: LectureMode,
        marks: MarksRequest,
        enter: Callable[[PipelineStage], None],
    ) -> LectureResult:
        enter(PipelineStage.SUMMARIZING)
        summary = self.summarizer.summarize(transcription, mode)
        if summary is None or not summary.summary.strip():
            logger.warning("No summary produced, returning transcription only")
            return self._fallback_result(transcription)

        enter(PipelineStage.GENERATING_QUESTIONS)
        qa_pairs = self.question_generator.generate(summary.summary, marks, mode)

        enter(PipelineStage.AGGREGATED)
        return LectureResult(
            transcription=transcription,
            summary=summary.summary,
            structured_notes=tuple(summary.structured_notes),
            qa_pairs=tuple(qa_pairs),
        )

    def _fallback_result(self, transcription: str) -> LectureResult:
        return LectureResult(
            transcription=transcription,
            summary=FALLBACK_SUMMARY,
            structured_notes=(),
            qa_pairs=(),
            fallback=True,
        )
