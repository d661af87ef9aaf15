"""
Configuration settings for the Lecture Assistant pipeline
"""
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Console-only logging and system temp directories when deployed
IS_CLOUD_DEPLOYMENT = os.getenv("IS_DEPLOYMENT", "false").lower() == "true"

# Base paths
BASE_DIR = Path(__file__).parent.parent

if IS_CLOUD_DEPLOYMENT:
    TEMP_DIR = Path(tempfile.gettempdir()) / "lecture_assistant"
    OUTPUTS_DIR = TEMP_DIR / "outputs"
    LOGS_DIR = TEMP_DIR / "logs"
else:
    OUTPUTS_DIR = BASE_DIR / "outputs"
    LOGS_DIR = BASE_DIR / "logs"
    TEMP_DIR = BASE_DIR / "temp"

# Create directories if they don't exist (with error handling for read-only filesystems)
try:
    TEMP_DIR.mkdir(exist_ok=True, parents=True)
    OUTPUTS_DIR.mkdir(exist_ok=True, parents=True)
    LOGS_DIR.mkdir(exist_ok=True, parents=True)
except (OSError, PermissionError):
    TEMP_DIR = Path(tempfile.gettempdir()) / "lecture_assistant"
    OUTPUTS_DIR = TEMP_DIR / "outputs"
    LOGS_DIR = TEMP_DIR / "logs"
    TEMP_DIR.mkdir(exist_ok=True, parents=True)
    OUTPUTS_DIR.mkdir(exist_ok=True, parents=True)
    LOGS_DIR.mkdir(exist_ok=True, parents=True)


def get_api_key(key_name: str) -> str:
    """Get API key from environment (including values loaded from .env)"""
    return os.getenv(key_name, "")


GROQ_API_KEY = get_api_key("GROQ_API_KEY")
OPENROUTER_API_KEY = get_api_key("OPENROUTER_API_KEY")

# Audio Processing Settings
AUDIO_SETTINGS = {
    "supported_formats": ["mp3", "wav", "m4a", "flac", "ogg", "webm", "mp4"],
    "sample_rate": 16000,
    "channels": 1,
    "codec": "pcm_s16le",
    "chunk_duration_seconds": 180,
}

# Speech-to-text endpoint (OpenAI-compatible /audio/transcriptions)
TRANSCRIPTION_SETTINGS = {
    "api_url": "https://api.groq.com/openai/v1/audio/transcriptions",
    "model": "whisper-large-v3",
    "response_format": "json",
}

# Chat completion providers, tried in order
LLM_PROVIDERS = {
    "groq": {
        "api_url": "https://api.groq.com/openai/v1/chat/completions",
        "default_model": "llama-3.1-8b-instant",
    },
    "openrouter": {
        "api_url": "https://openrouter.ai/api/v1/chat/completions",
        "default_model": "meta-llama/llama-3.3-70b-instruct",
    },
}

# Summary Models Configuration
SUMMARY_MODELS = {
    "groq:llama-3.1-8b-instant": {
        "name": "Groq: Llama 3.1 8B Instant",
        "max_tokens": 4096,
        "description": "Fast default for chunk summaries and questions"
    },
    "groq:llama-3.3-70b-versatile": {
        "name": "Groq: Llama 3.3 70B",
        "max_tokens": 8192,
        "description": "Slower, better structured notes"
    },
    "openrouter:meta-llama/llama-3.3-70b-instruct": {
        "name": "OpenRouter: Llama 3.3 70B",
        "max_tokens": 8192,
        "description": "Fallback provider"
    },
}

# Processing Settings
PROCESSING_SETTINGS = {
    "max_file_size_mb": 200,
    "batch_size": 5,
    "batch_delay_seconds": 1.2,
    "timeout_seconds": 120,
    "text_chunk_words": 600,
    "long_transcript_words": 1000,
    "temperature": 0.2,
}

# Exam question weights
MARKS_SETTINGS = {
    "default": (2, 5),
    "min": 2,
    "max": 20,
    "max_entries": 2,
}

LECTURE_MODES = ("theory", "numerical")
DEFAULT_MODE = "theory"

# Accepted range for the text chunk target
TEXT_CHUNK_WORD_RANGE = (500, 800)

# Export Settings
EXPORT_SETTINGS = {
    "include_timestamp": True,
    "include_metadata": True,
}

# HTTP server
SERVER_SETTINGS = {
    "host": os.getenv("HOST", "0.0.0.0"),
    "port": int(os.getenv("PORT", "5000")),
}

# Logging Configuration
LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S"
        },
        "simple": {
            "format": "%(levelname)s - %(message)s"
        }
    },
    "handlers": {
        "file": {
            "class": "logging.FileHandler",
            "filename": str(LOGS_DIR / "app.log"),
            "formatter": "detailed",
            "level": "INFO"
        },
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
            "level": "INFO"
        }
    },
    "root": {
        "level": "INFO",
        "handlers": ["file", "console"]
    }
}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


@dataclass
class PipelineSettings:
    """Settings shared by every pipeline component.

    Built once (normally with ``from_env``) and passed to each collaborator,
    so tests can construct the pipeline with their own values.
    """
    groq_api_key: str = ""
    openrouter_api_key: str = ""
    chunk_duration_seconds: int = AUDIO_SETTINGS["chunk_duration_seconds"]
    sample_rate: int = AUDIO_SETTINGS["sample_rate"]
    channels: int = AUDIO_SETTINGS["channels"]
    codec: str = AUDIO_SETTINGS["codec"]
    supported_formats: Tuple[str, ...] = tuple(AUDIO_SETTINGS["supported_formats"])
    transcription_url: str = TRANSCRIPTION_SETTINGS["api_url"]
    transcription_model: str = TRANSCRIPTION_SETTINGS["model"]
    summary_model: str = "groq:llama-3.1-8b-instant"
    batch_size: int = PROCESSING_SETTINGS["batch_size"]
    batch_delay_seconds: float = PROCESSING_SETTINGS["batch_delay_seconds"]
    request_timeout_seconds: float = PROCESSING_SETTINGS["timeout_seconds"]
    text_chunk_words: int = PROCESSING_SETTINGS["text_chunk_words"]
    long_transcript_words: int = PROCESSING_SETTINGS["long_transcript_words"]
    temperature: float = PROCESSING_SETTINGS["temperature"]
    max_upload_mb: int = PROCESSING_SETTINGS["max_file_size_mb"]
    default_marks: Tuple[int, ...] = MARKS_SETTINGS["default"]
    marks_range: Tuple[int, int] = (MARKS_SETTINGS["min"], MARKS_SETTINGS["max"])
    max_marks_entries: int = MARKS_SETTINGS["max_entries"]
    temp_dir: Optional[Path] = field(default=None)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def batch_timeout_seconds(self) -> float:
        # Members of a batch run in parallel, so one request timeout plus slack
        return self.request_timeout_seconds + 10

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """Build settings from the module constants and LECTURE_* overrides."""
        return cls(
            groq_api_key=GROQ_API_KEY,
            openrouter_api_key=OPENROUTER_API_KEY,
            chunk_duration_seconds=_env_int(
                "LECTURE_CHUNK_SECONDS", AUDIO_SETTINGS["chunk_duration_seconds"]
            ),
            summary_model=os.getenv("LECTURE_SUMMARY_MODEL", "groq:llama-3.1-8b-instant"),
            transcription_model=os.getenv(
                "LECTURE_TRANSCRIPTION_MODEL", TRANSCRIPTION_SETTINGS["model"]
            ),
            batch_size=_env_int("LECTURE_BATCH_SIZE", PROCESSING_SETTINGS["batch_size"]),
            batch_delay_seconds=_env_float(
                "LECTURE_BATCH_DELAY", PROCESSING_SETTINGS["batch_delay_seconds"]
            ),
            request_timeout_seconds=_env_float(
                "LECTURE_REQUEST_TIMEOUT", PROCESSING_SETTINGS["timeout_seconds"]
            ),
            max_upload_mb=_env_int("LECTURE_MAX_UPLOAD_MB", PROCESSING_SETTINGS["max_file_size_mb"]),
            temp_dir=TEMP_DIR,
        )


# Prompt Templates
LANGUAGE_RULES = """IMPORTANT LANGUAGE RULES:
- The transcript may be in Hindi, English or a mix of languages.
- Internally translate everything into clear academic English.
- The final output must be 100% English.
- Do NOT include any Hindi words.
- Do NOT mix languages.
- Do NOT transliterate Hindi into English letters.
- Rewrite unclear phrases into proper academic English."""

MODE_INSTRUCTIONS = {
    "theory": {
        "role": "You are an academic lecture assistant.",
        "heading": "Topic",
        "focus": "Focus on concepts, definitions, explanations and examples.",
    },
    "numerical": {
        "role": "You are a numerical subject academic assistant.",
        "heading": "Formula or Concept",
        "focus": "Focus on formulas, derivations, solution steps and worked examples.",
    },
}

SUMMARY_PROMPTS = {
    "structure": """{role}

{language_rules}

{focus}

Write a clear summary of the lecture below and organise its content into structured study notes.

Return ONLY valid JSON in this exact format:

{{
  "summary": "academic English summary of the whole lecture",
  "structuredNotes": [
    {{
      "heading": "{heading}",
      "points": ["point1", "point2"]
    }}
  ]
}}

Transcript:
{transcript}
""",

    "mini_summary": """{role}

{language_rules}

{focus}

The text below is one part of a longer lecture. Condense it into a 100-150 word summary and list its main points.

Return ONLY valid JSON in this exact format:

{{
  "summary": "100-150 word academic English summary of this part",
  "structuredNotes": [
    {{
      "heading": "{heading}",
      "points": ["point1", "point2"]
    }}
  ]
}}

Transcript part:
{transcript}
""",

    "consolidate": """{role}

{language_rules}

{focus}

The text below is a sequence of summaries of consecutive parts of ONE lecture, in order. Merge them into a single coherent summary and structured study notes. Remove repetition but keep every distinct topic.

Return ONLY valid JSON in this exact format:

{{
  "summary": "academic English summary of the whole lecture",
  "structuredNotes": [
    {{
      "heading": "{heading}",
      "points": ["point1", "point2"]
    }}
  ]
}}

Part summaries:
{transcript}
""",
}

QUESTION_PROMPT = """You are a university-level exam question generator.

IMPORTANT LANGUAGE RULES:
- The content must be strictly in English.
- Do NOT include Hindi words.
- Do NOT mix languages.
- Do NOT transliterate Hindi.
- Maintain academic tone.
- Ensure answers are clear and structured.

{focus}

Based on this lecture summary:

{summary}

Generate exam-style questions with model answers.

Allowed marks types:
{marks_lines}

STRICT RULES:
- Only use the marks listed above: {marks_values}
- Do NOT invent other marks
- Match answer length and structure to the marks: low marks get a short, precise answer; high marks get a longer answer with several distinct points
- University-level quality
- Return ONLY valid JSON:

{{
  "qaPairs": [
    {{
      "question": "",
      "answer": "",
      "marks": number
    }}
  ]
}}
"""
