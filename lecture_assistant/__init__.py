"""
Lecture Assistant - turn lecture recordings into study material

This package takes a recorded lecture, transcribes it and produces a
summary, structured notes and mark-weighted exam questions.

Modules:
    - config: Settings, model catalogue and prompt templates
    - logger: Logging setup
    - audio_processor: Audio validation and FFmpeg splitting
    - transcription: Speech-to-text over bounded audio chunks
    - text_chunker: Sentence-boundary transcript chunking
    - summarization: Summary and structured notes generation
    - question_generator: Exam question generation and marks filtering
    - pipeline: End-to-end orchestration
    - file_exporter: Export results to TXT, Markdown and JSON
    - web: Flask HTTP API
"""

__version__ = "2.0.0"
__description__ = "Lecture transcription, summarization and exam question system"

from .audio_processor import AudioProcessor
from .file_exporter import FileExporter
from .logger import setup_logger
from .models import LectureMode, LectureResult, MarksRequest
from .pipeline import LecturePipeline
from .question_generator import QuestionGenerator
from .summarization import LectureSummarizer
from .transcription import TranscriptionEngine

__all__ = [
    'AudioProcessor',
    'FileExporter',
    'LectureMode',
    'LecturePipeline',
    'LectureResult',
    'LectureSummarizer',
    'MarksRequest',
    'QuestionGenerator',
    'TranscriptionEngine',
    'setup_logger',
]
